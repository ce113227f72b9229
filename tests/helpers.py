from datetime import UTC, datetime, timedelta

from order_watch.models.api.order_response import NoOrder, TrackedOrder
from order_watch.models.domain.config_domain import ConfigSnapshot, Subscriber, Target
from order_watch.models.domain.destination import Carrier, Destination
from order_watch.models.domain.phone import PhoneKey
from order_watch.models.domain.status import Status


class FrozenClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 18, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeFetcher:
    """Returns queued responses per (target url, phone); exceptions are raised."""

    def __init__(self):
        self.responses: dict[tuple[str, str], list] = {}
        self.default = NoOrder(message="No orders found")
        self.calls: list[tuple[str, str]] = []

    def queue(self, target: Target, phone: str, *responses) -> None:
        self.responses.setdefault((target.url, phone), []).extend(responses)

    async def fetch(self, target: Target, phone_dashed: str):
        self.calls.append((target.url, phone_dashed))
        queued = self.responses.get((target.url, phone_dashed))
        response = queued.pop(0) if queued else self.default
        if isinstance(response, Exception):
            raise response
        return response


class FakeNotifier:
    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail_with: Exception | None = None

    async def send(self, message: str, from_identity: str, destination: Destination) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((message, from_identity, destination.address))


class FakeConfigSource:
    def __init__(self):
        self.next_snapshot: ConfigSnapshot | None = None
        self.error: Exception | None = None
        self.calls = 0

    def reload_if_changed(self, current: ConfigSnapshot) -> ConfigSnapshot | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        snapshot, self.next_snapshot = self.next_snapshot, None
        if snapshot is not None and not current.is_stale(snapshot.fingerprint):
            return None
        return snapshot


def order(order_id: str, status: Status) -> TrackedOrder:
    return TrackedOrder(order_id=order_id, order_key=f"key-{order_id}", status=status)


def make_subscriber(name: str = "Robert", phone: str = "555-123-4567") -> Subscriber:
    key = PhoneKey.parse(phone)
    return Subscriber(
        name=name,
        phone=key,
        destination=Destination(number=key.undashed, carrier=Carrier.VERIZON),
    )


def make_snapshot(
    subscribers=None,
    targets=None,
    interval: float = 30.0,
    limit: int = 3,
    fingerprint: int = 1,
) -> ConfigSnapshot:
    return ConfigSnapshot(
        poll_interval_seconds=interval,
        consecutive_errors_limit=limit,
        from_identity="alerts@example.com",
        subscribers=tuple(subscribers if subscribers is not None else [make_subscriber()]),
        targets=tuple(
            targets if targets is not None else [Target(name="main", url="https://t.example/")]
        ),
        fingerprint=fingerprint,
    )
