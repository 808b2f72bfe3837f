"""
Privacy request schemas
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequestType(str, enum.Enum):
    EXPORT = "export"
    REMOVE = "remove"


class RequestForm(BaseModel):
    """Fields accepted by the request form.

    Whitespace is stripped and unknown fields are dropped before validation.
    The email is expected in punycode form already and is kept as given.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    email: str = Field(..., title="Email Address", max_length=100)
    request_type: RequestType = Field(..., title="Request Type")

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(str(exc)) from exc
        if not value.rpartition("@")[2].isascii():
            raise ValueError("The domain name is not valid punycode.")
        return value


class PrivacyParams(BaseModel):
    """Component parameters loaded into the model state"""
    site_name: str
    site_url: str
    force_ssl: int = Field(default=0, ge=0, le=2)
    notify: int = 14
    rollback_on_mail_failure: bool = False


class CreateRequestResult(BaseModel):
    """Outcome of the request creation workflow"""
    success: bool
    request_id: Optional[str] = None
    error_code: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class CreateRequestResponse(BaseModel):
    request_id: str
    status: str = "pending"


class PrivacyRequestResponse(BaseModel):
    """Public view of a stored request. The token hash is never exposed."""
    id: str
    email: str
    request_type: str
    status: int
    requested_at: datetime
    confirm_token_created_at: Optional[datetime] = None
