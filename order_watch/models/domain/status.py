# models/domain/status.py
"""
Order Status Domain Model
Closed status vocabulary reported by the remote order tracker and the
partial order used to decide which transitions are worth an alert.
"""

from enum import Enum


class Status(str, Enum):
    """Order lifecycle states, valued by their tracker wire names."""

    MAKING = "MAKING"
    COOKING = "COOKING"
    MAKING_EMULATED = "MAKING_EMULATED"
    COOKING_EMULATED = "COOKING_EMULATED"
    ON_THE_WAY = "ON_THE_WAY"
    PICKUP_READY = "PICKUP_READY"
    DELIVERED = "DELIVERED"
    PICKED_UP = "PICKED_UP"
    DEFERRED = "DEFERRED"
    QUESTIONNAIRE = "QUESTIONNAIRE"
    SUSPENDED = "SUSPENDED"
    CANCELED = "CANCELED"
    REVIEWING = "REVIEWING"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: object) -> "Status":
        """Map a wire value onto a status, falling back to UNKNOWN."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return cls.UNKNOWN
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return cls.UNKNOWN

    def is_terminal(self) -> bool:
        """Terminal statuses end tracking for an order."""
        return self in TERMINAL_STATUSES

    def describe(self) -> str:
        """Human-readable line used in notification messages."""
        return _DESCRIPTIONS[self]


class Ordering(str, Enum):
    """Result of comparing two statuses."""

    LESS = "less"
    EQUAL = "equal"
    GREATER = "greater"
    INCOMPARABLE = "incomparable"

    def inverse(self) -> "Ordering":
        if self is Ordering.LESS:
            return Ordering.GREATER
        if self is Ordering.GREATER:
            return Ordering.LESS
        return self


TERMINAL_STATUSES = frozenset({Status.DELIVERED, Status.PICKED_UP})

# Kitchen statuses are interchangeable aliases of one another
COOKING_GROUP = frozenset(
    {Status.MAKING, Status.COOKING, Status.MAKING_EMULATED, Status.COOKING_EMULATED}
)

_BOTTOM = frozenset({Status.QUESTIONNAIRE, Status.CANCELED})
_BEFORE_KITCHEN = _BOTTOM | {Status.REVIEWING}
_BEFORE_DRIVER = _BEFORE_KITCHEN | COOKING_GROUP
_BEFORE_HANDOFF = _BEFORE_DRIVER | {Status.ON_THE_WAY}
_BEFORE_TERMINAL = _BEFORE_HANDOFF | {Status.PICKUP_READY}

# status -> statuses it strictly outranks. A pair never appears in both
# directions; pairs absent in both directions are incomparable.
RANKS_ABOVE: dict[Status, frozenset[Status]] = {
    Status.QUESTIONNAIRE: frozenset(),
    Status.CANCELED: frozenset(),
    Status.REVIEWING: _BOTTOM,
    # Deferred is a hold: moving into or out of it is never suppressed
    Status.DEFERRED: frozenset(_BEFORE_TERMINAL | TERMINAL_STATUSES),
    **{status: frozenset(_BEFORE_KITCHEN) for status in COOKING_GROUP},
    Status.ON_THE_WAY: frozenset(_BEFORE_DRIVER),
    Status.PICKUP_READY: frozenset(_BEFORE_HANDOFF),
    Status.DELIVERED: frozenset(_BEFORE_TERMINAL),
    Status.PICKED_UP: frozenset(_BEFORE_TERMINAL),
    Status.SUSPENDED: frozenset(set(Status) - {Status.SUSPENDED, Status.UNKNOWN}),
    Status.UNKNOWN: frozenset(),
}

_DESCRIPTIONS: dict[Status, str] = {
    Status.MAKING: "The cooks are working on your order now!",
    Status.COOKING: "The cooks are working on your order now!",
    Status.MAKING_EMULATED: "The cooks are working on your order now!",
    Status.COOKING_EMULATED: "The cooks are working on your order now!",
    Status.ON_THE_WAY: "The driver is heading to your house!",
    Status.PICKUP_READY: "Your order is ready for pickup!",
    Status.DELIVERED: "You are eating pizza!",
    Status.PICKED_UP: "You picked up your order, enjoy!",
    Status.DEFERRED: "Deferred, the store might not be open?",
    Status.QUESTIONNAIRE: "The store wants to know how your order went.",
    Status.SUSPENDED: "Your order has been suspended, you may want to call the store.",
    Status.CANCELED: "Your order was canceled.",
    Status.REVIEWING: "Reviewing, management is checking things over apparently.",
    Status.UNKNOWN: "I don't know what status this is, are you sure you ordered a pizza?",
}


def compare(a: Status, b: Status) -> Ordering:
    """
    Compare two statuses under the tracker's partial order.

    Args:
        a: Left-hand status
        b: Right-hand status

    Returns:
        Ordering: GREATER when ``a`` outranks ``b``, LESS when ``b`` outranks ``a``,
        EQUAL for identical or interchangeable statuses, INCOMPARABLE otherwise
    """
    if a is b or (a in COOKING_GROUP and b in COOKING_GROUP):
        return Ordering.EQUAL
    if b in RANKS_ABOVE[a]:
        return Ordering.GREATER
    if a in RANKS_ABOVE[b]:
        return Ordering.LESS
    return Ordering.INCOMPARABLE


# Moving into these never alerts, whatever the previous status
SILENT_STATUSES = _BOTTOM


def is_notifiable_transition(old: Status, new: Status) -> bool:
    """
    Any comparable status change is alert-worthy, forward or backward.

    Equal and incomparable pairs stay silent, as do moves into SILENT_STATUSES.
    """
    if new in SILENT_STATUSES:
        return False
    return compare(old, new) in (Ordering.GREATER, Ordering.LESS)
