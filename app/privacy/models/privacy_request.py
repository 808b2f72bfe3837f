"""
Privacy request model
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer, Index, func, literal_column, text
from app.privacy.database import Base


class RequestStatus(enum.IntEnum):
    INVALID = -1
    PENDING = 0
    CONFIRMED = 1
    COMPLETED = 2


# Statuses that still block a new request for the same email and type
OPEN_STATUSES = (RequestStatus.PENDING, RequestStatus.CONFIRMED)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PrivacyRequestModel(Base):
    """Data export / removal request"""
    __tablename__ = "privacy_requests"

    id = Column(String, primary_key=True)
    email = Column(String(100), nullable=False, index=True)  # punycode form
    request_type = Column(String, nullable=False)  # export, remove
    user_id = Column(String, index=True)  # null for guest requests

    status = Column(Integer, nullable=False, default=int(RequestStatus.PENDING))
    requested_at = Column(DateTime, default=_utcnow, nullable=False)

    # Only the hash of the token is stored
    confirm_token = Column(String, nullable=False, default="")
    confirm_token_created_at = Column(DateTime)


_open_statuses_sql = text(
    "status IN (%s)" % ", ".join(str(int(s)) for s in OPEN_STATUSES)
)

OPEN_REQUEST_INDEX = "uq_privacy_requests_open"

Index(
    OPEN_REQUEST_INDEX,
    PrivacyRequestModel.email,
    PrivacyRequestModel.request_type,
    func.coalesce(PrivacyRequestModel.user_id, literal_column("''")),
    unique=True,
    sqlite_where=_open_statuses_sql,
    postgresql_where=_open_statuses_sql,
)
