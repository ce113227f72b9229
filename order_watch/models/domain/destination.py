# models/domain/destination.py
"""
SMS gateway addressing for subscribers.
"""

from dataclasses import dataclass
from enum import Enum

from order_watch.models.domain.config_domain import ConfigError


class Carrier(str, Enum):
    """Mobile carriers with an email-to-SMS gateway."""

    VERIZON = "verizon"
    ATT = "att"
    TMOBILE = "tmobile"
    SPRINT = "sprint"
    US_CELLULAR = "uscellular"
    CRICKET = "cricket"
    BOOST = "boost"
    METRO_PCS = "metropcs"
    GOOGLE_FI = "googlefi"

    @classmethod
    def parse(cls, raw: str) -> "Carrier":
        """
        Accept loose spellings such as ``AT&T``, ``T-Mobile`` or ``Google Fi``.

        Raises:
            ConfigError: If the carrier is not supported
        """
        normalized = "".join(ch for ch in str(raw).lower() if ch.isalnum())
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigError(f"Unsupported carrier: {raw!r}") from None

    @property
    def gateway(self) -> str:
        return _GATEWAYS[self]


_ALIASES = {
    "atandt": "att",
    "verizonwireless": "verizon",
    "uscc": "uscellular",
    "boostmobile": "boost",
    "metro": "metropcs",
    "metrobytmobile": "metropcs",
    "fi": "googlefi",
    "projectfi": "googlefi",
    "tmo": "tmobile",
}

_GATEWAYS = {
    Carrier.VERIZON: "vtext.com",
    Carrier.ATT: "txt.att.net",
    Carrier.TMOBILE: "tmomail.net",
    Carrier.SPRINT: "messaging.sprintpcs.com",
    Carrier.US_CELLULAR: "email.uscc.net",
    Carrier.CRICKET: "sms.cricketwireless.net",
    Carrier.BOOST: "sms.myboostmobile.com",
    Carrier.METRO_PCS: "mymetropcs.com",
    Carrier.GOOGLE_FI: "msg.fi.google.com",
}


@dataclass(frozen=True, slots=True)
class Destination:
    """Where a subscriber's notifications are delivered."""

    number: str
    carrier: Carrier

    @property
    def address(self) -> str:
        return f"{self.number}@{self.carrier.gateway}"

    def __str__(self) -> str:
        return self.address
