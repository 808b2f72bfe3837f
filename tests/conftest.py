"""
Shared pytest fixtures: in-memory SQLite, a recording mail transport and
the FastAPI TestClient.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("TOKEN_HASH_ROUNDS", "4")
os.environ.setdefault("SITE_NAME", "Test Site")
os.environ.setdefault("SITE_URL", "http://example.org/")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from pydantic import BaseModel  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config import Settings  # noqa: E402
from app.main import app  # noqa: E402
from app.privacy.database import Base, get_db  # noqa: E402
from app.privacy.errors import MailTransportError  # noqa: E402
from app.privacy.models import PrivacyRequestModel  # noqa: E402,F401 register model
from app.privacy.repository import PrivacyRequestRepository  # noqa: E402
from app.privacy.routers.request import get_mail_transport  # noqa: E402
from app.privacy.workflow import RequestModel  # noqa: E402
from app.privacy.workflow.identity import GUEST  # noqa: E402

TOKEN = "0123456789abcdef0123456789abcdef"

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


class RecordingTransport:
    """Mail transport double. ``mode`` is ``ok``, ``false`` or ``raise``."""

    def __init__(self, mode: str = "ok", error: str = "SMTP connect() failed."):
        self.mode = mode
        self.error = error
        self.error_info = ""
        self.sent = []

    def send(self, message):
        if self.mode == "raise":
            raise MailTransportError(self.error)
        if self.mode == "false":
            self.error_info = self.error
            return False
        self.sent.append(message)
        return True


class BrokenCountRepository(PrivacyRequestRepository):
    def count_open(self, email, request_type, user_id=None):
        raise OperationalError("SELECT COUNT", {}, Exception("database is locked"))


class BrokenSaveRepository(PrivacyRequestRepository):
    def save(self, data):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))


class LooseForm(BaseModel):
    """Accepts any request type, so the email step sees unknown ones."""
    email: str
    request_type: str


class LooseRequestModel(RequestModel):
    form_name = "privacy.loose"


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def settings():
    return Settings(
        SITE_NAME="Test Site",
        SITE_URL="http://example.org/",
        TOKEN_HASH_ROUNDS=4,
    )


@pytest.fixture()
def make_model(db, transport, settings):
    def _make(identity=GUEST, repository=None, model_class=RequestModel, **overrides):
        return model_class(
            repository=repository or PrivacyRequestRepository(db),
            transport=overrides.pop("transport", transport),
            identity=identity,
            settings=overrides.pop("settings", settings),
            token_factory=lambda: TOKEN,
            **overrides,
        )

    return _make


@pytest.fixture()
def client(db, transport):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_mail_transport] = lambda: transport
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
