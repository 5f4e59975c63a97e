"""
Email delivery.

Sends plain-text mail over SMTP. smtplib is blocking, so each send runs in
a worker thread. Transient SMTP/socket errors are retried with exponential
backoff; a final failure is raised as DeliverySoftError for the outbox
dispatcher to record.
"""

import asyncio
import smtplib
from email.mime.text import MIMEText
from typing import Dict, Optional, Tuple

import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import Settings, settings as default_settings
from app.core.exceptions import DeliverySoftError
from app.utils.constants import EmailTemplate

logger = structlog.get_logger(__name__)

SIGNATURE = "\n\n-------------------\nInternship Matching App"


def render_email(template: str, context: Dict[str, str], base_url: str) -> Tuple[str, str]:
    """Return (subject, body) for a template and its payload."""
    template = EmailTemplate(template)
    recipient = context.get("recipient_name") or "there"
    company = context.get("company_name") or "the company"
    job = context.get("job_title") or "the position"

    if template == EmailTemplate.OFFER:
        subject = f"[Important] You received a matching offer from {company}"
        body = (
            f"Dear {recipient},\n\n"
            f"{company} would like to talk with you about the following position "
            f"and has sent you a matching offer.\n\n"
            f"Position: {job}\n"
        )
        if context.get("message"):
            body += f"\nMessage from the company:\n{context['message']}\n"
        body += (
            f"\nPlease review the offer and accept it here:\n"
            f"{base_url}/student/applications"
        )
    elif template == EmailTemplate.REJECTION:
        subject = f"[Selection result] Your application to {company}"
        body = (
            f"Dear {recipient},\n\n"
            f"Thank you for applying to \"{job}\" at {company}.\n\n"
            f"After careful consideration we regret to inform you that we are "
            f"unable to move forward with your application this time.\n\n"
            f"We wish you every success in the future."
        )
    else:
        student = context.get("student_name") or "The student"
        subject = f"[Matched] {student} accepted your offer"
        body = (
            f"Dear {recipient},\n\n"
            f"{student} has accepted your offer for \"{job}\". "
            f"You can start preparing the internship here:\n"
            f"{base_url}/company/intern/{context.get('match_id', '')}"
        )

    return subject, body + SIGNATURE


class EmailSender:
    """SMTP client with retry."""

    def __init__(self, config: Optional[Settings] = None):
        self.settings = config or default_settings
        self.enabled = self.settings.EMAIL_ENABLED and bool(self.settings.SMTP_HOST)

    def _send_sync(self, to_address: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.settings.EMAIL_FROM
        msg["To"] = to_address

        with smtplib.SMTP(
            self.settings.SMTP_HOST,
            self.settings.SMTP_PORT,
            timeout=self.settings.SMTP_TIMEOUT,
        ) as server:
            if self.settings.SMTP_USE_TLS:
                server.starttls()
            if self.settings.SMTP_USER:
                server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD)
            server.sendmail(self.settings.EMAIL_FROM, [to_address], msg.as_string())

    async def send(self, to_address: str, subject: str, body: str) -> None:
        """Send one email or raise DeliverySoftError."""
        if not self.enabled:
            raise DeliverySoftError("Email delivery is disabled", retryable=False)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.EMAIL_SEND_ATTEMPTS),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                retry=retry_if_exception_type((smtplib.SMTPException, OSError)),
            ):
                with attempt:
                    await asyncio.to_thread(self._send_sync, to_address, subject, body)
        except RetryError as e:
            cause = e.last_attempt.exception()
            raise DeliverySoftError(f"SMTP delivery failed: {cause}") from cause
        except Exception as e:
            # Errors tenacity does not retry are final
            raise DeliverySoftError(f"Email delivery failed: {e!r}", retryable=False) from e

        logger.info("email_sent", to=to_address, subject=subject)
