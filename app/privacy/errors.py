"""
Error types and codes for the privacy request workflow.
"""
from typing import Optional


class ErrorCodes:
    """Codes attached to failed request results."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PENDING_REQUEST_OPEN = "PENDING_REQUEST_OPEN"
    EXISTING_REQUEST_CHECK_FAILED = "EXISTING_REQUEST_CHECK_FAILED"
    DATABASE_ERROR = "DATABASE_ERROR"
    UNKNOWN_REQUEST_TYPE = "UNKNOWN_REQUEST_TYPE"
    MAIL_FAILED = "MAIL_FAILED"
    FORM_LOAD_ERROR = "FORM_LOAD_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PrivacyError(Exception):
    """Base error with a human readable message and a code."""

    def __init__(self, message: str, code: str = ErrorCodes.INTERNAL_ERROR, details: Optional[dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class FormLoadError(PrivacyError):
    """The requested form schema could not be loaded."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCodes.FORM_LOAD_ERROR)


class MailTransportError(PrivacyError):
    """Raised by a mail transport configured to throw on failure."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCodes.MAIL_FAILED)
