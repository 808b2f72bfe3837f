"""
Persistence access for privacy requests.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.privacy.models.privacy_request import OPEN_STATUSES, PrivacyRequestModel

logger = logging.getLogger(__name__)


class PrivacyRequestRepository:
    """Thin wrapper over the session for the ``privacy_requests`` table."""

    table = PrivacyRequestModel

    def __init__(self, db: Session):
        self.db = db

    def count_open(self, email: str, request_type: str, user_id: Optional[str] = None) -> int:
        """Count open requests for an email and type.

        When ``user_id`` is given the count is further restricted to that user.
        """
        query = self.db.query(func.count(PrivacyRequestModel.id)).filter(
            PrivacyRequestModel.email == email,
            PrivacyRequestModel.request_type == request_type,
            PrivacyRequestModel.status.in_([int(s) for s in OPEN_STATUSES]),
        )
        if user_id is not None:
            query = query.filter(PrivacyRequestModel.user_id == user_id)
        return int(query.scalar() or 0)

    def save(self, data: dict) -> PrivacyRequestModel:
        """Insert a new row and commit. Rolls back and re-raises on failure."""
        record = PrivacyRequestModel(id=data.get("id") or str(uuid.uuid4()), **{
            k: v for k, v in data.items() if k != "id"
        })
        request_id = record.id
        self.db.add(record)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Stored privacy request %s", request_id)
        return record

    def delete(self, record: PrivacyRequestModel) -> None:
        request_id = record.id
        self.db.delete(record)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Deleted privacy request %s", request_id)

    def get(self, request_id: str) -> Optional[PrivacyRequestModel]:
        return self.db.query(PrivacyRequestModel).filter(PrivacyRequestModel.id == request_id).first()
