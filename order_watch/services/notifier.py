"""
Notification transports.
Delivers alert messages to a subscriber's SMS gateway address, or prints
them for local runs.
"""

import asyncio
import smtplib
import sys
from email.mime.text import MIMEText
from typing import Protocol, TextIO

from order_watch.config import Settings, settings
from order_watch.infrastructure.observability.logging import get_logger
from order_watch.models.domain.destination import Destination

logger = get_logger(__name__)


class SendError(Exception):
    """Raised when a notification cannot be delivered."""

    def __init__(self, message: str, destination: str | None = None):
        super().__init__(message)
        self.destination = destination


class Notifier(Protocol):
    async def send(self, message: str, from_identity: str, destination: Destination) -> None: ...


class StdoutNotifier:
    """Writes notifications to a stream instead of sending them."""

    def __init__(self, stream: TextIO | None = None):
        self._stream = stream

    async def send(self, message: str, from_identity: str, destination: Destination) -> None:
        stream = self._stream or sys.stdout
        try:
            stream.write(f"From: {from_identity}\nTo: {destination.address}\n{message}\n\n")
            stream.flush()
        except (OSError, ValueError) as e:
            raise SendError(f"Failed to write notification: {e}", str(destination)) from e


class SmtpNotifier:
    """Sends plain text email to the carrier's SMS gateway."""

    def __init__(self, host: str, port: int, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def _send_blocking(self, message: str, from_identity: str, to_address: str) -> None:
        mime = MIMEText(message)
        mime["From"] = from_identity
        mime["To"] = to_address
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.sendmail(from_identity, [to_address], mime.as_string())

    async def send(self, message: str, from_identity: str, destination: Destination) -> None:
        try:
            await asyncio.to_thread(
                self._send_blocking, message, from_identity, destination.address
            )
        except (smtplib.SMTPException, OSError) as e:
            raise SendError(f"SMTP delivery failed: {e}", destination.address) from e

        logger.debug("Notification sent", destination=destination.address, host=self.host)


def build_notifier(app_settings: Settings = settings) -> Notifier:
    """Select the notification backend from settings."""
    if app_settings.NOTIFIER_BACKEND == "smtp":
        return SmtpNotifier(
            host=app_settings.SMTP_HOST,
            port=app_settings.SMTP_PORT,
            timeout=app_settings.SMTP_TIMEOUT_SECONDS,
        )
    return StdoutNotifier()
