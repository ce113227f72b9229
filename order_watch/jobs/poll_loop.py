"""
Order poll loop.
Drives one tick at a time: reloads the watch file when its fingerprint
moves, looks up every subscriber at every tracker, feeds the results through
each subscriber's OrderCache and delivers the resulting notifications.

Errors from individual lookups, deliveries and reloads are logged and
counted, never fatal on their own. A tick with any error extends the
consecutive-error streak and stretches the next delay linearly; once the
streak exceeds the configured limit the loop gives up.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from order_watch.config import settings
from order_watch.infrastructure.observability.logging import get_logger, log_tick_summary
from order_watch.models.api.order_response import NoOrder, TrackedOrder
from order_watch.models.domain.config_domain import ConfigError, ConfigSnapshot, Subscriber, Target
from order_watch.models.domain.destination import Destination
from order_watch.models.domain.order import NotificationEvent
from order_watch.models.domain.phone import PhoneKey
from order_watch.services.notifier import SendError
from order_watch.services.order_cache import OrderCache, utc_now
from order_watch.services.order_status_client import FetchError

logger = get_logger(__name__)


class OrderFetcher(Protocol):
    async def fetch(self, target: Target, phone_dashed: str) -> TrackedOrder | NoOrder: ...


class NotificationSender(Protocol):
    async def send(self, message: str, from_identity: str, destination: Destination) -> None: ...


class ConfigSource(Protocol):
    def reload_if_changed(self, current: ConfigSnapshot) -> ConfigSnapshot | None: ...


class SustainedFailureError(Exception):
    """Raised when the consecutive-error streak exceeds the configured limit."""

    def __init__(self, consecutive_errors: int, limit: int):
        super().__init__(
            f"{consecutive_errors} consecutive ticks with errors exceeds limit of {limit}"
        )
        self.consecutive_errors = consecutive_errors
        self.limit = limit


class PollTickMetrics:
    """Counters for a single poll tick."""

    def __init__(self, tick: int):
        self.tick = tick
        self.started_at = utc_now()
        self.fetches = 0
        self.fetch_errors = 0
        self.orders_seen = 0
        self.notifications_sent = 0
        self.send_errors = 0
        self.config_errors = 0
        self.config_reloaded = False
        self.orders_expired = 0
        self.consecutive_errors = 0
        self.delay_seconds = 0.0
        self.duration_seconds = 0.0

    @property
    def errored(self) -> bool:
        return bool(self.fetch_errors or self.send_errors or self.config_errors)

    def record_fetch_error(self, subscriber: str, target: str, error: Exception):
        self.fetch_errors += 1
        logger.error(
            "Error updating orders",
            subscriber=subscriber,
            target=target,
            error=str(error),
            error_type=type(error).__name__,
        )

    def record_send_error(self, event: NotificationEvent, error: Exception):
        self.send_errors += 1
        logger.error(
            "Error sending update",
            error=str(error),
            error_type=type(error).__name__,
            **event.to_log_fields(),
        )

    def record_config_error(self, error: Exception):
        self.config_errors += 1
        logger.error(
            "Watch file reload failed, keeping previous configuration",
            error=str(error),
            error_type=type(error).__name__,
            path=getattr(error, "path", None),
        )

    def finalize(self):
        self.duration_seconds = (utc_now() - self.started_at).total_seconds()

    def to_dict(self) -> dict:
        return {
            "tick": self.tick,
            "start_time": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "fetches": self.fetches,
            "fetch_errors": self.fetch_errors,
            "orders_seen": self.orders_seen,
            "notifications_sent": self.notifications_sent,
            "send_errors": self.send_errors,
            "config_errors": self.config_errors,
            "config_reloaded": self.config_reloaded,
            "orders_expired": self.orders_expired,
            "errored": self.errored,
            "consecutive_errors": self.consecutive_errors,
            "delay_seconds": self.delay_seconds,
        }


class PollLoop:
    """
    Single owner of the live configuration and every subscriber's order cache.

    Lookups within a tick run concurrently; cache updates and deliveries are
    applied sequentially afterwards, in subscriber then target order.
    """

    def __init__(
        self,
        snapshot: ConfigSnapshot,
        config_source: ConfigSource,
        fetcher: OrderFetcher,
        notifier: NotificationSender,
        clock: Callable[[], datetime] = utc_now,
        max_concurrency: int = settings.FETCH_MAX_CONCURRENCY,
    ):
        self._snapshot = snapshot
        self._config_source = config_source
        self._fetcher = fetcher
        self._notifier = notifier
        self._clock = clock
        self._max_concurrency = max(1, max_concurrency)
        self._caches: dict[PhoneKey, OrderCache] = {}
        self._stop = asyncio.Event()

        self.consecutive_errors = 0
        self.ticks = 0
        self.last_tick_time: datetime | None = None
        self.last_metrics: PollTickMetrics | None = None

        self._sync_caches(snapshot)

    @property
    def snapshot(self) -> ConfigSnapshot:
        return self._snapshot

    def cache_for(self, phone: PhoneKey) -> OrderCache | None:
        return self._caches.get(phone)

    def request_stop(self) -> None:
        """Ask the loop to stop after the current tick."""
        if not self._stop.is_set():
            logger.info("Poll loop stop requested")
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def _sync_caches(self, snapshot: ConfigSnapshot) -> None:
        """Keep caches for subscribers still configured, drop the rest."""
        caches: dict[PhoneKey, OrderCache] = {}
        for subscriber in snapshot.subscribers:
            cache = self._caches.get(subscriber.phone)
            if cache is None:
                cache = OrderCache(subscriber.name, clock=self._clock)
            cache.subscriber = subscriber.name
            caches[subscriber.phone] = cache

        dropped = len(set(self._caches) - set(caches))
        if dropped:
            logger.info("Dropped caches for removed subscribers", count=dropped)
        self._caches = caches

    def _reload(self, metrics: PollTickMetrics) -> None:
        try:
            fresh = self._config_source.reload_if_changed(self._snapshot)
        except ConfigError as e:
            metrics.record_config_error(e)
            return

        if fresh is not None:
            self._snapshot = fresh
            metrics.config_reloaded = True
            logger.info("Watch file reloaded, applies from next tick", **fresh.summary())

    async def _fetch_one(
        self,
        semaphore: asyncio.Semaphore,
        subscriber: Subscriber,
        target: Target,
        metrics: PollTickMetrics,
    ) -> TrackedOrder | NoOrder | None:
        async with semaphore:
            metrics.fetches += 1
            try:
                return await self._fetcher.fetch(target, subscriber.phone.dashed)
            except FetchError as e:
                metrics.record_fetch_error(subscriber.name, target.name, e)
            except Exception as e:
                logger.exception("Unexpected error from tracker client", target=target.name)
                metrics.record_fetch_error(subscriber.name, target.name, e)
            return None

    async def _deliver(
        self,
        snapshot: ConfigSnapshot,
        subscriber: Subscriber,
        event: NotificationEvent,
        metrics: PollTickMetrics,
    ) -> None:
        try:
            await self._notifier.send(event.message, snapshot.from_identity, subscriber.destination)
        except SendError as e:
            metrics.record_send_error(event, e)
            return
        except Exception as e:
            logger.exception("Unexpected error from notifier", subscriber=subscriber.name)
            metrics.record_send_error(event, e)
            return

        metrics.notifications_sent += 1
        logger.info("Successfully sent update", **event.to_log_fields())

    def _complete_tick(self, snapshot: ConfigSnapshot, metrics: PollTickMetrics) -> None:
        if metrics.errored:
            self.consecutive_errors += 1
        else:
            self.consecutive_errors = 0

        metrics.consecutive_errors = self.consecutive_errors
        metrics.delay_seconds = snapshot.poll_interval_seconds * max(1, self.consecutive_errors)
        metrics.finalize()
        self.last_metrics = metrics
        self.last_tick_time = metrics.started_at

        if self.consecutive_errors > snapshot.consecutive_errors_limit:
            logger.error(
                "Too many consecutive errors, exiting",
                consecutive_errors=self.consecutive_errors,
                limit=snapshot.consecutive_errors_limit,
            )
            raise SustainedFailureError(self.consecutive_errors, snapshot.consecutive_errors_limit)

    async def run_tick(self) -> PollTickMetrics:
        """
        Run one tick.

        Returns:
            PollTickMetrics: Counters for the tick, including the delay before the next one

        Raises:
            SustainedFailureError: If this tick pushes the error streak past the limit
            PhoneNumberError: If a reloaded watch file has a malformed phone number
        """
        self.ticks += 1
        metrics = PollTickMetrics(self.ticks)

        # This tick runs under the snapshot that was live when it started
        snapshot = self._snapshot
        self._sync_caches(snapshot)
        self._reload(metrics)

        pairs = [
            (subscriber, target)
            for subscriber in snapshot.subscribers
            for target in snapshot.targets
        ]
        semaphore = asyncio.Semaphore(self._max_concurrency)
        results = await asyncio.gather(
            *(self._fetch_one(semaphore, subscriber, target, metrics) for subscriber, target in pairs)
        )

        events: list[tuple[Subscriber, NotificationEvent]] = []
        for (subscriber, target), result in zip(pairs, results, strict=True):
            if result is None:
                continue
            if isinstance(result, TrackedOrder):
                metrics.orders_seen += 1
            event = self._caches[subscriber.phone].observe(result)
            if event is not None:
                logger.info("Status change detected", target=target.name, **event.to_log_fields())
                events.append((subscriber, event))

        now = self._clock()
        for subscriber in snapshot.subscribers:
            metrics.orders_expired += self._caches[subscriber.phone].expire(now)

        for subscriber, event in events:
            await self._deliver(snapshot, subscriber, event, metrics)

        self._complete_tick(snapshot, metrics)
        log_tick_summary(metrics.to_dict())
        return metrics

    async def _wait(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=delay)
        except TimeoutError:
            pass

    async def run(self) -> None:
        """
        Tick until stopped.

        Raises:
            SustainedFailureError: When the error streak exceeds the limit
        """
        logger.info("Starting poll loop", **self._snapshot.summary())

        while not self._stop.is_set():
            metrics = await self.run_tick()
            if self._stop.is_set():
                break
            await self._wait(metrics.delay_seconds)

        logger.info("Poll loop stopped", ticks=self.ticks)

    def get_status(self) -> dict:
        """Current loop status for diagnostics."""
        return {
            "job_name": "order_poll",
            "ticks": self.ticks,
            "consecutive_errors": self.consecutive_errors,
            "consecutive_errors_limit": self._snapshot.consecutive_errors_limit,
            "poll_interval_seconds": self._snapshot.poll_interval_seconds,
            "subscriber_count": len(self._snapshot.subscribers),
            "target_count": len(self._snapshot.targets),
            "tracked_orders": sum(len(cache) for cache in self._caches.values()),
            "last_tick_time": self.last_tick_time.isoformat() if self.last_tick_time else None,
            "last_tick_metrics": self.last_metrics.to_dict() if self.last_metrics else None,
        }
