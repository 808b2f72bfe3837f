"""
Unit tests for the workflow collaborators: punycode, links, tokens,
language, forms, identity and mail transport.
"""
import smtplib

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.config import Settings
from app.privacy.errors import FormLoadError, MailTransportError
from app.privacy.models import PrivacyRequestModel, RequestStatus
from app.privacy.schemas import PrivacyParams, RequestForm
from app.privacy.workflow.forms import load_form, validate_form
from app.privacy.workflow.identity import GUEST, get_current_identity
from app.privacy.workflow.language import Translator
from app.privacy.workflow.links import ForceSSL, LinkBuilder
from app.privacy.workflow.mailer import MailMessage, SmtpTransport, send_mail
from app.privacy.workflow.punycode import email_to_punycode
from app.privacy.workflow.tokens import TokenHasher, generate_token


# =====================================================================
# Punycode
# =====================================================================
class TestPunycode:
    def test_idn_domain(self):
        assert email_to_punycode("user@exämple.com") == "user@xn--exmple-cua.com"

    def test_idn_subdomain(self):
        assert email_to_punycode("info@mail.bücher.example") == "info@mail.xn--bcher-kva.example"

    def test_ascii_unchanged(self):
        assert email_to_punycode("User.Name+tag@Example.com") == "User.Name+tag@Example.com"

    def test_surrounding_whitespace_stripped(self):
        assert email_to_punycode(" user@mail.bücher ") == "user@mail.xn--bcher-kva"

    @pytest.mark.parametrize("value", ["", "no-at-sign", "a@b@c"])
    def test_malformed_unchanged(self, value):
        assert email_to_punycode(value) == value


# =====================================================================
# Links
# =====================================================================
class TestLinks:
    def test_root_and_link(self):
        links = LinkBuilder("http://example.org/site/")
        assert links.root() == "http://example.org/site/"
        assert (
            links.link("privacy/confirm", {"confirm_token": "abc"})
            == "http://example.org/site/privacy/confirm?confirm_token=abc"
        )

    def test_root_without_trailing_slash(self):
        assert LinkBuilder("http://example.org").root() == "http://example.org/"

    def test_redirect_mode_keeps_scheme(self):
        links = LinkBuilder("http://example.org/", ForceSSL.REDIRECT)
        assert links.link("privacy/confirm") == "http://example.org/privacy/confirm"

    def test_entire_site_forces_https(self):
        links = LinkBuilder("http://example.org/", ForceSSL.ENTIRE_SITE)
        assert links.link("privacy/confirm") == "https://example.org/privacy/confirm"
        assert links.root() == "http://example.org/"


# =====================================================================
# Tokens
# =====================================================================
class TestTokens:
    def test_generate_token(self):
        token = generate_token()
        assert len(token) == 32
        int(token, 16)
        assert token != generate_token()

    def test_hash_is_salted(self):
        hasher = TokenHasher(rounds=4)
        first, second = hasher.hash("abc"), hasher.hash("abc")
        assert first != second
        assert hasher.verify("abc", first)
        assert hasher.verify("abc", second)

    def test_verify_rejects_empty(self):
        hasher = TokenHasher(rounds=4)
        assert not hasher.verify("", hasher.hash("abc"))
        assert not hasher.verify("abc", "")


# =====================================================================
# Language, forms and identity
# =====================================================================
class TestLanguage:
    def test_missing_key_returned(self):
        assert Translator().translate("PRIVACY_NOPE") == "PRIVACY_NOPE"

    def test_custom_catalog(self):
        translator = Translator({"GREETING": "Hello %s"})
        assert translator.sprintf("GREETING", "there") == "Hello there"


class TestForms:
    def test_load_unknown_form(self):
        with pytest.raises(FormLoadError):
            load_form("privacy.unknown")

    def test_valid_data(self):
        data, errors = validate_form(RequestForm, {"email": "a@example.com", "request_type": "remove"})
        assert errors == []
        assert data == {"email": "a@example.com", "request_type": "remove"}

    def test_email_too_long(self):
        data, errors = validate_form(
            RequestForm, {"email": "a" * 90 + "@example.com", "request_type": "export"}
        )
        assert data is None
        assert len(errors) == 1

    def test_unicode_domain_rejected(self):
        data, errors = validate_form(RequestForm, {"email": "user@bücher.de", "request_type": "export"})
        assert data is None
        assert errors == ["Invalid field: Email Address. Value error, The domain name is not valid punycode."]


class TestSettings:
    @pytest.mark.parametrize("value", [-1, 3])
    def test_force_ssl_out_of_range(self, value):
        with pytest.raises(ValidationError):
            Settings(FORCE_SSL=value)

    def test_force_ssl_from_string(self):
        assert Settings(FORCE_SSL="2").FORCE_SSL == 2

    def test_params_force_ssl_out_of_range(self):
        with pytest.raises(ValidationError):
            PrivacyParams(site_name="Test Site", site_url="http://example.org/", force_ssl=3)


class TestIdentity:
    def test_guest_without_header(self):
        assert get_current_identity(None) is GUEST
        assert get_current_identity("  ").guest

    def test_authenticated(self):
        identity = get_current_identity("7")
        assert not identity.guest
        assert identity.id == "7"


# =====================================================================
# Open request index
# =====================================================================
class TestOpenRequestIndex:
    def _row(self, rid, status=RequestStatus.PENDING, user_id=None):
        return PrivacyRequestModel(
            id=rid,
            email="user@example.com",
            request_type="export",
            user_id=user_id,
            status=int(status),
            confirm_token="hash",
        )

    def test_two_open_guest_requests_rejected(self, db):
        db.add(self._row("a"))
        db.commit()
        db.add(self._row("b"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_closed_requests_not_constrained(self, db):
        db.add_all([
            self._row("a", RequestStatus.COMPLETED),
            self._row("b", RequestStatus.COMPLETED),
            self._row("c"),
            self._row("d", user_id="42"),
        ])
        db.commit()
        assert db.query(PrivacyRequestModel).count() == 4


# =====================================================================
# Mail transport
# =====================================================================
class FakeSMTP:
    instances = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.sent = []
        self.started_tls = False
        self.login_args = None
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, user, password):
        self.login_args = (user, password)

    def send_message(self, msg):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.sent.append(msg)


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


MESSAGE = MailMessage(subject="Subject", body="Body\nline", recipients=["user@example.com"])


class TestSmtpTransport:
    def test_send(self, fake_smtp):
        transport = SmtpTransport(
            "mail.example.org", 587, username="u", password="p", use_tls=True,
            sender="privacy@example.org", sender_name="Privacy",
        )
        assert transport.send(MESSAGE) is True

        smtp = fake_smtp.instances[0]
        assert (smtp.host, smtp.port) == ("mail.example.org", 587)
        assert smtp.started_tls
        assert smtp.login_args == ("u", "p")
        msg = smtp.sent[0]
        assert msg["To"] == "user@example.com"
        assert msg["Subject"] == "Subject"
        assert "privacy@example.org" in msg["From"]
        assert msg.get_content().startswith("Body\nline")

    def test_failure_returns_false(self, fake_smtp):
        fake_smtp.fail_with = smtplib.SMTPServerDisconnected("Connection unexpectedly closed")
        transport = SmtpTransport("localhost", throw_errors=False)

        assert transport.send(MESSAGE) is False
        assert transport.error_info == "Connection unexpectedly closed"

        result = send_mail(transport, MESSAGE)
        assert not result.ok
        assert result.error == "Connection unexpectedly closed"

    def test_failure_raises(self, fake_smtp):
        fake_smtp.fail_with = ConnectionRefusedError(111, "Connection refused")
        transport = SmtpTransport("localhost", throw_errors=True)

        with pytest.raises(MailTransportError):
            transport.send(MESSAGE)

        result = send_mail(transport, MESSAGE)
        assert not result.ok
        assert "Connection refused" in result.error

    def test_send_mail_success(self, fake_smtp):
        result = send_mail(SmtpTransport("localhost"), MESSAGE)
        assert result.ok
        assert result.error is None
