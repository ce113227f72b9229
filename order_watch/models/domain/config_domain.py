# models/domain/config_domain.py
"""
Watch configuration domain models.

A ConfigSnapshot is an immutable view of the watch file at one point in
time. Snapshots are compared by fingerprint (the file's modification
time), never by content: touching the file without editing it still
counts as a change and triggers a reload. Do not replace this with a deep
equality check, it would change when reloads happen.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from order_watch.models.domain.destination import Destination
    from order_watch.models.domain.phone import PhoneKey


class ConfigError(Exception):
    """Raised when the watch file cannot be located, read or validated."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True, slots=True)
class Target:
    """A remote tracker endpoint; the dashed phone number is appended to ``url``."""

    name: str
    url: str


@dataclass(frozen=True, slots=True)
class Subscriber:
    """Someone whose orders are being watched."""

    name: str
    phone: "PhoneKey"
    destination: "Destination"


@dataclass(frozen=True, slots=True, eq=False)
class ConfigSnapshot:
    """Loaded watch configuration plus its change fingerprint."""

    poll_interval_seconds: float
    consecutive_errors_limit: int
    from_identity: str
    subscribers: tuple[Subscriber, ...] = field(default_factory=tuple)
    targets: tuple[Target, ...] = field(default_factory=tuple)
    fingerprint: int = 0
    source: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigSnapshot):
            return NotImplemented
        return self.fingerprint == other.fingerprint

    def __hash__(self) -> int:
        return hash(self.fingerprint)

    def is_stale(self, fingerprint: int) -> bool:
        """True when ``fingerprint`` differs from the one this snapshot was loaded with."""
        return fingerprint != self.fingerprint

    def summary(self) -> dict:
        return {
            "poll_interval_seconds": self.poll_interval_seconds,
            "consecutive_errors_limit": self.consecutive_errors_limit,
            "subscriber_count": len(self.subscribers),
            "target_count": len(self.targets),
            "fingerprint": self.fingerprint,
        }
