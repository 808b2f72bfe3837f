"""
Privacy request API router

POST /api/privacy/requests          — create an export / remove request
GET  /api/privacy/requests/{id}     — public view of one request
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import settings
from app.privacy.database import get_db
from app.privacy.errors import ErrorCodes, FormLoadError
from app.privacy.models.privacy_request import PrivacyRequestModel
from app.privacy.repository import PrivacyRequestRepository
from app.privacy.schemas.request import CreateRequestResponse, PrivacyRequestResponse
from app.privacy.workflow import RequestModel
from app.privacy.workflow.identity import Identity, get_current_identity
from app.privacy.workflow.mailer import MailTransport, SmtpTransport

logger = logging.getLogger(__name__)
router = APIRouter()

STATUS_BY_CODE = {
    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.UNKNOWN_REQUEST_TYPE: 400,
    ErrorCodes.PENDING_REQUEST_OPEN: 409,
    ErrorCodes.DATABASE_ERROR: 500,
    ErrorCodes.MAIL_FAILED: 502,
    ErrorCodes.EXISTING_REQUEST_CHECK_FAILED: 503,
}


def get_mail_transport() -> MailTransport:
    """Mail transport dependency"""
    return SmtpTransport.from_settings(settings)


def get_request_model(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    transport: MailTransport = Depends(get_mail_transport),
) -> RequestModel:
    return RequestModel(
        repository=PrivacyRequestRepository(db),
        transport=transport,
        identity=identity,
    )


def transform_request(model: PrivacyRequestModel) -> PrivacyRequestResponse:
    """Convert PrivacyRequestModel to PrivacyRequestResponse"""
    return PrivacyRequestResponse(
        id=model.id,
        email=model.email,
        request_type=model.request_type,
        status=model.status,
        requested_at=model.requested_at,
        confirm_token_created_at=model.confirm_token_created_at,
    )


# ── POST /api/privacy/requests ──────────────────────────────────────────────
@router.post("/privacy/requests", response_model=CreateRequestResponse, status_code=201)
def create_privacy_request(
    data: Dict[str, Any] = Body(...),
    model: RequestModel = Depends(get_request_model),
):
    """Create an information request and send the confirmation email"""
    try:
        result = model.create_request(data)
    except FormLoadError as exc:
        logger.error("Request form unavailable: %s", exc.message)
        raise HTTPException(status_code=500, detail={"code": exc.code, "errors": [exc.message]})

    if not result.success:
        status_code = STATUS_BY_CODE.get(result.error_code, 500)
        logger.info("Privacy request refused (%s): %d error(s)", result.error_code, len(result.errors))
        raise HTTPException(status_code=status_code, detail={"code": result.error_code, "errors": result.errors})

    return CreateRequestResponse(request_id=result.request_id)


# ── GET /api/privacy/requests/{request_id} ──────────────────────────────────
@router.get("/privacy/requests/{request_id}", response_model=PrivacyRequestResponse)
def get_privacy_request(
    request_id: str,
    db: Session = Depends(get_db),
):
    """Fetch one request"""
    request = PrivacyRequestRepository(db).get(request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    return transform_request(request)
