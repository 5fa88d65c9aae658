"""
BoxIT Backend — Email Service Tests
====================================

What we test:
    verification and reset messages carry working, escaped links
    the Resend sender hands the expected payload to the SDK and retries
    rate limits, 5xx answers and network errors
    dispatch_email never raises, so a mail outage cannot fail signup
"""

from unittest.mock import MagicMock, patch

import pytest
import resend
from httpx import ASGITransport, AsyncClient
from resend.exceptions import ResendError

from boxit.config import Settings
from boxit.exceptions import UpstreamServiceError
from boxit.main import create_app
from boxit.services.email_service import (
    ConsoleEmailSender,
    EmailMessage,
    EmailSender,
    ResendEmailSender,
    build_email_sender,
    dispatch_email,
    is_transient_resend_error,
    password_reset_email,
    verification_email,
)


@pytest.fixture
def mail_settings() -> Settings:
    return Settings(
        email_backend="resend",
        resend_api_key="re_test",
        email_from="BoxIT <noreply@boxit.test>",
        public_base_url="https://boxit.test/",
        retry_max_attempts=2,
        retry_min_wait=0,
        retry_max_wait=0,
    )


class TestMessages:

    def test_verification_link(self, mail_settings):
        message = verification_email(mail_settings, "dana@example.com", "Dana <script>", "tok_123")

        assert message.to == "dana@example.com"
        assert "https://boxit.test/api/auth/verify?token=tok_123" in message.html
        assert "<script>" not in message.html

    def test_reset_link_mentions_expiry(self, mail_settings):
        message = password_reset_email(mail_settings, "dana@example.com", None, "tok_456")

        assert "https://boxit.test/auth/reset-password?token=tok_456" in message.html
        assert "60 minutes" in message.html
        assert "Hi there" in message.html


class TransientResendError(ResendError):
    """ResendError with only the attributes the sender inspects."""

    def __init__(self, code, message="boom"):
        Exception.__init__(self, message)
        self.code = code


class TestSenders:

    def test_factory(self, mail_settings):
        assert isinstance(build_email_sender(mail_settings), ResendEmailSender)
        assert isinstance(build_email_sender(Settings(email_backend="console")), ConsoleEmailSender)

    def test_api_key_configured(self, mail_settings):
        ResendEmailSender(mail_settings)

        assert resend.api_key == "re_test"

    @pytest.mark.asyncio
    async def test_resend_payload(self, mail_settings):
        sender = ResendEmailSender(mail_settings)

        with patch("resend.Emails.send", return_value={"id": "email_1"}) as send:
            await sender.send(EmailMessage(to="dana@example.com", subject="Hi", html="<p>Hi</p>"))

        send.assert_called_once_with({
            "from": "BoxIT <noreply@boxit.test>",
            "to": ["dana@example.com"],
            "subject": "Hi",
            "html": "<p>Hi</p>",
        })

    @pytest.mark.asyncio
    async def test_resend_retries_then_fails(self, mail_settings):
        sender = ResendEmailSender(mail_settings)
        send = MagicMock(side_effect=TransientResendError(500))

        with patch("resend.Emails.send", send):
            with pytest.raises(UpstreamServiceError):
                await sender.send(EmailMessage(to="dana@example.com", subject="Hi", html=""))
        assert send.call_count == 2

    @pytest.mark.asyncio
    async def test_network_error_is_retried(self, mail_settings):
        sender = ResendEmailSender(mail_settings)
        send = MagicMock(side_effect=[ConnectionError("reset"), {"id": "email_2"}])

        with patch("resend.Emails.send", send):
            await sender.send(EmailMessage(to="dana@example.com", subject="Hi", html=""))
        assert send.call_count == 2

    @pytest.mark.asyncio
    async def test_rejection_is_not_retried(self, mail_settings):
        sender = ResendEmailSender(mail_settings)
        send = MagicMock(side_effect=TransientResendError(422, "Invalid `to` field"))

        with patch("resend.Emails.send", send):
            with pytest.raises(UpstreamServiceError) as exc:
                await sender.send(EmailMessage(to="not-an-email", subject="Hi", html=""))
        assert send.call_count == 1
        assert exc.value.message == "Email delivery was rejected."

    @pytest.mark.parametrize(
        "error,transient",
        [
            (TransientResendError(429), True),
            (TransientResendError("503"), True),
            (TransientResendError(401), False),
            (TimeoutError(), True),
            (ValueError(), False),
        ],
    )
    def test_transient_classification(self, error, transient):
        assert is_transient_resend_error(error) is transient


class FailingSender(EmailSender):
    name = "failing"

    async def send(self, message: EmailMessage) -> None:
        raise UpstreamServiceError(service="email")


class TestDispatch:

    @pytest.mark.asyncio
    async def test_dispatch_swallows_failures(self):
        await dispatch_email(FailingSender(), EmailMessage(to="a@b.c", subject="s", html="h"))

    @pytest.mark.asyncio
    async def test_console_sender_keeps_outbox(self):
        sender = ConsoleEmailSender(keep=2)
        for n in range(3):
            await dispatch_email(sender, EmailMessage(to=f"{n}@example.com", subject="s", html="h"))

        assert [m.to for m in sender.outbox] == ["1@example.com", "2@example.com"]

    @pytest.mark.asyncio
    async def test_signup_succeeds_when_mail_is_down(self, test_settings):
        app = create_app(test_settings, email_sender=FailingSender())
        await app.state.database.create_all()
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/api/auth/signup", json={"email": "eve@example.com", "password": "long-enough-pw"}
            )
        await app.state.database.dispose()

        assert response.status_code == 201
