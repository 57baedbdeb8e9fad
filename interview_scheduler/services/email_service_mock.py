"""Email delivery: the Notifier interface and a mock that records instead of sending."""

import logging
from datetime import datetime
from typing import Optional, Protocol

import pytz

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Outbound email."""

    def send_email(self, to: str, subject: str, body: str, from_email: Optional[str] = None) -> dict: ...


class EmailServiceMock:
    """Mock email service that logs emails instead of sending them."""

    def __init__(self):
        """Initialize email service."""
        self.sent_emails: list[dict] = []

    def send_email(self, to: str, subject: str, body: str, from_email: Optional[str] = None) -> dict:
        """
        Send an email (mock).

        Returns:
            dict with email details
        """
        if not to:
            raise ValueError("Recipient address is required")

        email_record = {
            "to": to,
            "from": from_email,
            "subject": subject,
            "body": body,
            "sent_at": datetime.now(pytz.UTC),
        }
        self.sent_emails.append(email_record)
        logger.info("Recorded email to %s: %s", to, subject)
        return email_record

    def get_sent_emails(self) -> list[dict]:
        """Get all sent emails."""
        return self.sent_emails.copy()

    def clear_emails(self):
        """Clear email log (for testing/reset)."""
        self.sent_emails = []
