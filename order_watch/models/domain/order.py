# models/domain/order.py
"""
Tracked order domain models.
"""

from dataclasses import dataclass
from datetime import datetime

from order_watch.models.domain.status import Status


@dataclass(slots=True)
class OrderRecord:
    """A single tracked order for one subscriber."""

    external_id: str
    status: Status
    first_seen: datetime


@dataclass(frozen=True, slots=True)
class NotificationEvent:
    """Request to alert a subscriber about a status transition."""

    subscriber: str
    external_id: str
    previous_status: Status
    status: Status
    observed_at: datetime

    @property
    def message(self) -> str:
        return f"Order #{self.external_id}\n{self.status.describe()}"

    def to_log_fields(self) -> dict:
        """Flatten the event for structured log lines."""
        return {
            "subscriber": self.subscriber,
            "order_id": self.external_id,
            "previous_status": self.previous_status.value,
            "status": self.status.value,
        }
