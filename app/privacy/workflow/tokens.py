"""
Confirmation token generation and hashing.

Tokens are random hex strings. Only a bcrypt hash of a token is ever stored.
"""
import secrets

from passlib.context import CryptContext

TOKEN_BYTES = 16


def generate_token() -> str:
    """Random 32 character hex token."""
    return secrets.token_hex(TOKEN_BYTES)


class TokenHasher:
    """Slow salted hashing for confirmation tokens."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, token: str) -> str:
        return self.context.hash(token)

    def verify(self, token: str, hashed: str) -> bool:
        if not token or not hashed:
            return False
        return self.context.verify(token, hashed)
