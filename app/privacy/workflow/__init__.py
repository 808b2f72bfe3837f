"""
Privacy request creation workflow.

Orchestrates: normalize email → validate form → check for open requests →
store hashed token → send confirmation email.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Type

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.config import settings as app_settings
from app.privacy.errors import ErrorCodes
from app.privacy.models.privacy_request import OPEN_REQUEST_INDEX, PrivacyRequestModel, RequestStatus
from app.privacy.repository import PrivacyRequestRepository
from app.privacy.schemas.request import CreateRequestResult, PrivacyParams
from app.privacy.workflow.forms import load_form, validate_form
from app.privacy.workflow.identity import GUEST, Identity
from app.privacy.workflow.language import Translator
from app.privacy.workflow.links import LinkBuilder
from app.privacy.workflow.mailer import MailMessage, MailTransport, send_mail
from app.privacy.workflow.punycode import email_to_punycode
from app.privacy.workflow.tokens import TokenHasher, generate_token

logger = logging.getLogger(__name__)

CONFIRM_PATH = "privacy/confirm"

EMAIL_BODY_KEYS = {
    "export": "PRIVACY_EMAIL_REQUEST_BODY_EXPORT_REQUEST",
    "remove": "PRIVACY_EMAIL_REQUEST_BODY_REMOVE_REQUEST",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestModel:
    """Creates privacy requests.

    All collaborators are passed in; nothing is looked up globally except the
    application settings used as the default parameter source.
    """

    form_name = "privacy.request"

    def __init__(
        self,
        repository: PrivacyRequestRepository,
        transport: MailTransport,
        identity: Identity = GUEST,
        translator: Optional[Translator] = None,
        token_hasher: Optional[TokenHasher] = None,
        links: Optional[LinkBuilder] = None,
        settings: Any = None,
        clock: Callable[[], datetime] = _utcnow,
        token_factory: Callable[[], str] = generate_token,
    ):
        self.settings = settings or app_settings
        self.repository = repository
        self.transport = transport
        self.identity = identity
        self.translator = translator or Translator()
        self.token_hasher = token_hasher or TokenHasher(rounds=self.settings.TOKEN_HASH_ROUNDS)
        self._links = links
        self.clock = clock
        self.token_factory = token_factory
        self._errors: list[str] = []
        self._state: dict[str, Any] = {}
        self._state_populated = False

    # ── errors ───────────────────────────────────────────────────────────
    def set_error(self, message: str) -> None:
        self._errors.append(message)

    def get_errors(self) -> list[str]:
        return list(self._errors)

    def get_error(self) -> Optional[str]:
        return self._errors[-1] if self._errors else None

    def _fail(self, code: str) -> CreateRequestResult:
        return CreateRequestResult(success=False, error_code=code, errors=self.get_errors())

    # ── state ────────────────────────────────────────────────────────────
    def populate_state(self) -> None:
        """Load the component parameters into the model state."""
        params = PrivacyParams(
            site_name=self.settings.SITE_NAME,
            site_url=self.settings.SITE_URL,
            force_ssl=self.settings.FORCE_SSL,
            notify=self.settings.PRIVACY_NOTIFY_DAYS,
            rollback_on_mail_failure=self.settings.PRIVACY_ROLLBACK_ON_MAIL_FAILURE,
        )
        self._state["params"] = params

    def get_state(self, key: str, default: Any = None) -> Any:
        if not self._state_populated:
            self._state_populated = True
            self.populate_state()
        return self._state.get(key, default)

    def set_state(self, key: str, value: Any) -> None:
        self._state[key] = value

    @property
    def params(self) -> PrivacyParams:
        return self.get_state("params")

    @property
    def links(self) -> LinkBuilder:
        if self._links is None:
            self._links = LinkBuilder(self.params.site_url, self.params.force_ssl)
        return self._links

    # ── form / table ─────────────────────────────────────────────────────
    def get_form(self) -> Type[BaseModel]:
        """Raises ``FormLoadError`` when the form is not registered."""
        return load_form(self.form_name)

    def get_table(self) -> PrivacyRequestRepository:
        return self.repository

    # ── workflow ─────────────────────────────────────────────────────────
    def create_request(self, data: dict) -> CreateRequestResult:
        """Create an information request and email its confirmation token."""
        self._errors = []
        # Resolve configuration before anything is stored
        links = self.links
        data = dict(data)
        if isinstance(data.get("email"), str):
            data["email"] = email_to_punycode(data["email"].strip())

        form = self.get_form()
        fields, form_errors = validate_form(form, data)
        if form_errors:
            for message in form_errors:
                self.set_error(message)
            return self._fail(ErrorCodes.VALIDATION_ERROR)

        user_id = None
        if not self.identity.guest:
            user_id = self.identity.id
            fields["user_id"] = user_id

        # Search for an open request matching the email and type
        try:
            existing = self.repository.count_open(fields["email"], fields["request_type"], user_id)
        except SQLAlchemyError:
            logger.exception("Checking for existing privacy requests failed")
            self.set_error(self.translator.translate("PRIVACY_ERROR_CHECKING_FOR_EXISTING_REQUESTS"))
            return self._fail(ErrorCodes.EXISTING_REQUEST_CHECK_FAILED)

        if existing > 0:
            logger.info("Open %s request already exists, refusing a new one", fields["request_type"])
            self.set_error(self.translator.translate("PRIVACY_ERROR_PENDING_REQUEST_OPEN"))
            return self._fail(ErrorCodes.PENDING_REQUEST_OPEN)

        token = self.token_factory()
        fields["status"] = int(RequestStatus.PENDING)
        fields["confirm_token"] = self.token_hasher.hash(token)
        fields["confirm_token_created_at"] = self.clock()

        try:
            record = self.repository.save(fields)
        except IntegrityError as exc:
            if OPEN_REQUEST_INDEX not in str(exc.orig):
                logger.exception("Saving privacy request failed")
                self.set_error(self.translator.sprintf("PRIVACY_ERROR_SAVE_FAILED", exc.orig))
                return self._fail(ErrorCodes.DATABASE_ERROR)
            # Lost the race against a concurrent submission
            logger.info("Open request index rejected a duplicate %s request", fields["request_type"])
            self.set_error(self.translator.translate("PRIVACY_ERROR_PENDING_REQUEST_OPEN"))
            return self._fail(ErrorCodes.PENDING_REQUEST_OPEN)
        except SQLAlchemyError as exc:
            logger.exception("Saving privacy request failed")
            self.set_error(self.translator.sprintf("PRIVACY_ERROR_SAVE_FAILED", getattr(exc, "orig", None) or exc))
            return self._fail(ErrorCodes.DATABASE_ERROR)

        request_id = record.id

        message = self.build_email(fields["request_type"], fields["email"], token, links)
        if message is None:
            self.set_error(self.translator.translate("PRIVACY_ERROR_UNKNOWN_REQUEST_TYPE"))
            self._abandon(record)
            return self._fail(ErrorCodes.UNKNOWN_REQUEST_TYPE)

        result = send_mail(self.transport, message)
        if not result.ok:
            logger.warning("Confirmation email for request %s failed: %s", request_id, result.error)
            self.set_error(result.error)
            self._abandon(record)
            return self._fail(ErrorCodes.MAIL_FAILED)

        logger.info("Created %s request %s", fields["request_type"], request_id)
        return CreateRequestResult(success=True, request_id=request_id)

    def build_email(
        self, request_type: str, recipient: str, token: str, links: Optional[LinkBuilder] = None
    ) -> Optional[MailMessage]:
        """Fill in the subject and body templates. ``None`` for an unknown type."""
        links = links or self.links
        body_key = EMAIL_BODY_KEYS.get(request_type)
        if body_key is None:
            return None

        substitutions = {
            "[SITENAME]": self.params.site_name,
            "[URL]": links.root(),
            "[TOKENURL]": links.link(CONFIRM_PATH, {"confirm_token": token}),
            "[FORMURL]": links.link(CONFIRM_PATH),
            "[TOKEN]": token,
            "\\n": "\n",
        }

        subject = self.translator.translate("PRIVACY_EMAIL_REQUEST_SUBJECT")
        body = self.translator.translate(body_key)
        for key, value in substitutions.items():
            subject = subject.replace(key, value)
            body = body.replace(key, value)

        return MailMessage(subject=subject, body=body, recipients=[recipient])

    def _abandon(self, record: PrivacyRequestModel) -> None:
        """Delete a saved request when no email went out, if configured to."""
        if not self.params.rollback_on_mail_failure:
            return
        request_id = record.id
        try:
            self.repository.delete(record)
        except SQLAlchemyError:
            logger.exception("Could not remove request %s after mail failure", request_id)
            self.set_error(self.translator.sprintf("PRIVACY_ERROR_SAVE_FAILED", "request could not be removed"))
