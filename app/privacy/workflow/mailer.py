"""
Outbound mail.

A transport reports failure either by returning ``False`` (details in
``error_info``) or by raising ``MailTransportError``, depending on how it is
configured. ``send_mail`` turns both into a ``MailResult``.
"""
from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import List, Optional, Protocol

from app.privacy.errors import MailTransportError

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    subject: str
    body: str
    recipients: List[str] = field(default_factory=list)


@dataclass
class MailResult:
    ok: bool
    error: Optional[str] = None


class MailTransport(Protocol):
    error_info: str

    def send(self, message: MailMessage) -> bool:
        ...


class SmtpTransport:
    """SMTP transport built on ``smtplib``."""

    def __init__(
        self,
        host: str,
        port: int = 25,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
        timeout: float = 10.0,
        sender: str = "no-reply@localhost",
        sender_name: str = "",
        throw_errors: bool = True,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.sender = sender
        self.sender_name = sender_name
        self.throw_errors = throw_errors
        self.error_info = ""

    @classmethod
    def from_settings(cls, settings) -> "SmtpTransport":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT,
            sender=settings.MAIL_FROM,
            sender_name=settings.MAIL_FROM_NAME,
            throw_errors=settings.MAIL_THROW_ERRORS,
        )

    def build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = formataddr((self.sender_name, self.sender)) if self.sender_name else self.sender
        msg["To"] = ", ".join(message.recipients)
        msg.set_content(message.body)
        return msg

    def send(self, message: MailMessage) -> bool:
        self.error_info = ""
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(self.build(message))
        except (smtplib.SMTPException, OSError) as exc:
            self.error_info = str(exc) or exc.__class__.__name__
            logger.warning("SMTP send to %s:%s failed: %s", self.host, self.port, self.error_info)
            if self.throw_errors:
                raise MailTransportError(self.error_info) from exc
            return False
        logger.info("Mail sent to %d recipient(s)", len(message.recipients))
        return True


def send_mail(transport: MailTransport, message: MailMessage) -> MailResult:
    """Send ``message`` and normalize both failure conventions."""
    try:
        sent = transport.send(message)
    except MailTransportError as exc:
        return MailResult(ok=False, error=exc.message)
    if not sent:
        return MailResult(ok=False, error=getattr(transport, "error_info", "") or "Mail could not be sent")
    return MailResult(ok=True)
