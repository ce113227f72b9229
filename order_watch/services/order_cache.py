"""
Per-subscriber order cache.
Tracks the last observed status of each order and decides, via the status
ordering, which observations become notifications.

Not thread-safe: the poll loop is the only writer and applies observations
for a subscriber sequentially.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from order_watch.infrastructure.observability.logging import get_logger
from order_watch.models.api.order_response import NoOrder, TrackedOrder
from order_watch.models.domain.order import NotificationEvent, OrderRecord
from order_watch.models.domain.status import compare, is_notifiable_transition

logger = get_logger(__name__)

STALE_AFTER = timedelta(hours=12)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class OrderCache:
    """Mapping of external order ID to OrderRecord for one subscriber."""

    def __init__(self, subscriber: str, clock: Clock = utc_now):
        self.subscriber = subscriber
        self._clock = clock
        self._records: dict[str, OrderRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._records

    def get(self, external_id: str) -> OrderRecord | None:
        return self._records.get(external_id)

    def observe(self, response: TrackedOrder | NoOrder) -> NotificationEvent | None:
        """
        Apply one freshly fetched tracker response.

        The first sighting of an order only records a baseline. Later sightings
        update the cached status and produce a notification for any comparable
        change, forward or backward, except moves into a silent status. Orders reaching a terminal status are dropped.

        Args:
            response: Parsed tracker response

        Returns:
            NotificationEvent | None: Event for an alert-worthy transition
        """
        if isinstance(response, NoOrder):
            logger.debug("No order reported", subscriber=self.subscriber, message=response.message)
            return None

        now = self._clock()
        record = self._records.get(response.order_id)

        if record is None:
            self._records[response.order_id] = OrderRecord(
                external_id=response.order_id,
                status=response.status,
                first_seen=now,
            )
            logger.info(
                "Tracking new order",
                subscriber=self.subscriber,
                order_id=response.order_id,
                status=response.status.value,
            )
            return None

        previous = record.status
        record.status = response.status
        event = None

        if is_notifiable_transition(previous, response.status):
            event = NotificationEvent(
                subscriber=self.subscriber,
                external_id=record.external_id,
                previous_status=previous,
                status=response.status,
                observed_at=now,
            )
        elif previous is not response.status:
            logger.debug(
                "Status change suppressed",
                subscriber=self.subscriber,
                order_id=record.external_id,
                previous_status=previous.value,
                status=response.status.value,
                ordering=compare(response.status, previous).value,
            )

        if response.status.is_terminal():
            del self._records[record.external_id]
            logger.info(
                "Order complete, no longer tracking",
                subscriber=self.subscriber,
                order_id=record.external_id,
                status=response.status.value,
            )

        return event

    def expire(self, now: datetime | None = None) -> int:
        """
        Drop orders first seen more than 12 hours ago, whatever their status.

        Returns:
            int: Number of records removed
        """
        now = now or self._clock()
        stale = [
            external_id
            for external_id, record in self._records.items()
            if now - record.first_seen > STALE_AFTER
        ]
        for external_id in stale:
            del self._records[external_id]

        if stale:
            logger.debug("Removed stale orders", subscriber=self.subscriber, count=len(stale))
        return len(stale)
