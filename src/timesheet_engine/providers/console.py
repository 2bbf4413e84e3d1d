"""Notifier that only logs, for local development and tests.

Used when no SMTP relay is configured; every message is reported as sent.
"""

from __future__ import annotations

import logging
import uuid

from timesheet_engine.providers.base import EmailMessageSpec, SendResult

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Logs messages instead of delivering them."""

    name = "logging"

    def __init__(self) -> None:
        # Kept for inspection in development shells and tests
        self.sent: list[EmailMessageSpec] = []

    def send(self, message: EmailMessageSpec) -> SendResult:
        self.sent.append(message)
        logger.info(
            "Email (not delivered): to=%s subject=%r attachments=%s",
            ", ".join(message.to),
            message.subject,
            [a.filename for a in message.attachments],
        )
        return SendResult(success=True, message_id=f"mock-{uuid.uuid4().hex}")
