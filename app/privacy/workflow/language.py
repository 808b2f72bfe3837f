"""
Message catalog for user facing strings.
"""
from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

EN_GB: dict[str, str] = {
    "PRIVACY_EMAIL_REQUEST_SUBJECT": "Information Request Created at [SITENAME]",
    "PRIVACY_EMAIL_REQUEST_BODY_EXPORT_REQUEST": (
        "Someone has created a request to export all personal information related to this email address "
        "at [URL]. As a security measure, you must confirm that this is a valid request for your personal "
        "information from this website.\\n\\nIf you did not make this request, you can ignore this message."
        "\\n\\nIn order to confirm this request, you can complete one of the following tasks:\\n\\n"
        "1. Visit the following URL: [TOKENURL]\\n\\n"
        "2. Copy your token from this email, visit the referenced URL, and paste your token into the form."
        "\\nURL: [FORMURL]\\nToken: [TOKEN]\\n\\nPlease note that this token is only valid for 24 hours "
        "from the time this email was sent."
    ),
    "PRIVACY_EMAIL_REQUEST_BODY_REMOVE_REQUEST": (
        "Someone has created a request to remove all personal information related to this email address "
        "at [URL]. As a security measure, you must confirm that this is a valid request for your personal "
        "information to be removed from this website.\\n\\nIf you did not make this request, you can ignore "
        "this message.\\n\\nIn order to confirm this request, you can complete one of the following tasks:"
        "\\n\\n1. Visit the following URL: [TOKENURL]\\n\\n"
        "2. Copy your token from this email, visit the referenced URL, and paste your token into the form."
        "\\nURL: [FORMURL]\\nToken: [TOKEN]\\n\\nPlease note that this token is only valid for 24 hours "
        "from the time this email was sent."
    ),
    "PRIVACY_ERROR_CHECKING_FOR_EXISTING_REQUESTS": (
        "There was an error checking for existing information requests. Please try again."
    ),
    "PRIVACY_ERROR_PENDING_REQUEST_OPEN": (
        "There is already an open information request for this email address and request type. "
        "Please contact the site owner for updates about this request."
    ),
    "PRIVACY_ERROR_UNKNOWN_REQUEST_TYPE": "Unknown information request type.",
    "PRIVACY_ERROR_SAVE_FAILED": "Save failed with the following error: %s",
}


class Translator:
    """Resolves message keys. Unknown keys are returned as is."""

    def __init__(self, catalog: Optional[dict[str, str]] = None):
        self.catalog = dict(EN_GB if catalog is None else catalog)

    def translate(self, key: str) -> str:
        try:
            return self.catalog[key]
        except KeyError:
            logger.debug("Missing language string: %s", key)
            return key

    def sprintf(self, key: str, *args) -> str:
        return self.translate(key) % args
