import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from config import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """An outgoing notification e-mail."""
    to: str
    subject: str
    body: str
    sender: str = field(default_factory=lambda: settings.notification_from_email)
    created_at: datetime = field(default_factory=datetime.now)


class EmailService:
    """Notification contract: fire-and-forget ``send_email``."""

    def send_email(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class LoggingEmailService(EmailService):
    """Writes e-mails to the log instead of delivering them."""

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.enable_email_notifications if enabled is None else enabled

    def send_email(self, to: str, subject: str, body: str) -> None:
        if not self.enabled:
            logger.debug(f"Email notifications disabled, dropping mail to {to}: {subject}")
            return
        message = EmailMessage(to=to, subject=subject, body=body)
        logger.info(f"Email from={message.sender} to={message.to} subject={message.subject!r}")


class OutboxEmailService(EmailService):
    """Keeps every e-mail in memory instead of delivering it."""

    def __init__(self):
        self.outbox: List[EmailMessage] = []

    def send_email(self, to: str, subject: str, body: str) -> None:
        self.outbox.append(EmailMessage(to=to, subject=subject, body=body))
