"""
BoxIT Backend — Transactional Email
====================================

What:  Sends verification and password-reset emails.
How:   `EmailSender` is the transport contract. `ResendEmailSender` sends
       through the Resend SDK under the shared tenacity retry policy;
       `ConsoleEmailSender` logs messages instead (development default).
When:  Scheduled with FastAPI BackgroundTasks by the auth routes, so the
       send happens after the response. `dispatch_email` logs failures and
       never raises: a lost email must not fail signup or reset requests.
"""

import html
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional
from urllib.parse import urlencode

import resend
from resend.exceptions import ResendError
from tenacity import RetryError, retry_if_exception

from boxit.config import Settings
from boxit.exceptions import UpstreamServiceError
from boxit.services.upstream import RETRYABLE_STATUS_CODES, call_with_retry

logger = logging.getLogger(__name__)


def is_transient_resend_error(error: BaseException) -> bool:
    """Rate limits, Resend 5xx answers and network failures are retried."""
    if isinstance(error, ResendError):
        return str(error.code) in {str(code) for code in RETRYABLE_STATUS_CODES}
    return isinstance(error, OSError)


RETRY_ON = retry_if_exception(is_transient_resend_error)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str


class EmailSender(ABC):
    name = "abstract"

    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Deliver one message. Raises UpstreamServiceError on failure."""
        ...

    async def aclose(self) -> None:
        return None


class ConsoleEmailSender(EmailSender):
    """Logs outgoing mail and keeps the most recent messages in memory."""

    name = "console"

    def __init__(self, keep: int = 50):
        self.outbox: Deque[EmailMessage] = deque(maxlen=keep)

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        logger.info("Email to %s: %s", message.to, message.subject)


class ResendEmailSender(EmailSender):
    name = "resend"

    def __init__(self, settings: Settings):
        self.settings = settings
        # The SDK reads the key from module-level state
        resend.api_key = settings.resend_api_key

    async def send(self, message: EmailMessage) -> None:
        params = {
            "from": self.settings.email_from,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        try:
            sent = await call_with_retry(self.settings, RETRY_ON, resend.Emails.send, params)
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            raise UpstreamServiceError(
                message="Email delivery is temporarily unavailable.",
                service="email",
                context={"error": str(last)},
            )
        except ResendError as e:
            raise UpstreamServiceError(
                message="Email delivery was rejected.",
                service="email",
                context={"code": str(e.code), "error": str(e)},
            )
        logger.info(
            "Email accepted by Resend for %s: %s (id=%s)", message.to, message.subject, sent.get("id")
        )


def build_email_sender(settings: Settings) -> EmailSender:
    if settings.email_backend == "resend":
        return ResendEmailSender(settings)
    return ConsoleEmailSender()


# ══════════════════════════════════════════════════════════════════════════
# Message builders
# ══════════════════════════════════════════════════════════════════════════

def verification_link(settings: Settings, token: str) -> str:
    return f"{settings.public_base_url}/api/auth/verify?{urlencode({'token': token})}"


def password_reset_link(settings: Settings, token: str) -> str:
    return f"{settings.public_base_url}/auth/reset-password?{urlencode({'token': token})}"


def _link_body(greeting: str, text: str, link: str, action: str) -> str:
    safe_link = html.escape(link, quote=True)
    return (
        f"<p>{html.escape(greeting)}</p>"
        f"<p>{html.escape(text)}</p>"
        f'<p><a href="{safe_link}">{html.escape(action)}</a></p>'
        f"<p>{safe_link}</p>"
    )


def verification_email(settings: Settings, to: str, name: Optional[str], token: str) -> EmailMessage:
    return EmailMessage(
        to=to,
        subject="Verify your BoxIT account",
        html=_link_body(
            f"Hi {name or 'there'},",
            "Confirm your email address to start using BoxIT.",
            verification_link(settings, token),
            "Verify email",
        ),
    )


def password_reset_email(settings: Settings, to: str, name: Optional[str], token: str) -> EmailMessage:
    return EmailMessage(
        to=to,
        subject="Reset your BoxIT password",
        html=_link_body(
            f"Hi {name or 'there'},",
            f"Use the link below to choose a new password. It expires in "
            f"{settings.password_reset_ttl_minutes} minutes.",
            password_reset_link(settings, token),
            "Reset password",
        ),
    )


async def dispatch_email(sender: EmailSender, message: EmailMessage) -> None:
    """Background-task entry point: send, log any failure, never raise."""
    try:
        await sender.send(message)
    except Exception as e:
        logger.error(
            "Failed to send '%s' email to %s via %s: %s",
            message.subject,
            message.to,
            sender.name,
            str(e),
        )
