"""
Requester identity.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header


@dataclass(frozen=True)
class Identity:
    id: Optional[str] = None

    @property
    def guest(self) -> bool:
        return not self.id


GUEST = Identity()


def get_current_identity(x_user_id: Optional[str] = Header(default=None)) -> Identity:
    """Authenticated when an ``X-User-Id`` header is present, guest otherwise."""
    if x_user_id and x_user_id.strip():
        return Identity(id=x_user_id.strip())
    return GUEST
