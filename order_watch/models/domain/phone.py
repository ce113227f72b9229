# models/domain/phone.py
"""
Phone number key for subscribers.
Parsed once from free-form configuration input and used as the stable
key for a subscriber's order cache.
"""

from dataclasses import dataclass

MIN_LENGTH = 10
SEPARATORS = ("-", ".")


class PhoneNumberError(ValueError):
    """Raised when a phone number cannot be parsed."""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw


@dataclass(frozen=True, slots=True)
class PhoneKey:
    """Validated phone number split into its three groups."""

    area_code: str
    prefix: str
    suffix: str

    @classmethod
    def parse(cls, raw: str) -> "PhoneKey":
        """
        Parse ``5551234567``, ``555-123-4567`` or ``555.123.4567`` style input.

        Separators between groups are optional. Digit content is not checked.

        Raises:
            PhoneNumberError: If the input is too short for the groups it declares
        """
        if not isinstance(raw, str):
            raise PhoneNumberError(f"Phone number must be a string, got {type(raw).__name__}")

        required = MIN_LENGTH
        area_code = raw[0:3]
        cursor = 3

        if raw[cursor : cursor + 1] in SEPARATORS:
            cursor += 1
            required += 1
            if len(raw) < required:
                raise PhoneNumberError("Phone number not long enough after area code", raw=raw)

        prefix = raw[cursor : cursor + 3]
        cursor += 3

        if raw[cursor : cursor + 1] in SEPARATORS:
            cursor += 1
            required += 1
            if len(raw) < required:
                raise PhoneNumberError("Phone number not long enough after prefix", raw=raw)

        if len(raw) < required:
            raise PhoneNumberError(
                f"Phone numbers must be at least {MIN_LENGTH} digits, found {len(raw)}", raw=raw
            )

        suffix = raw[cursor : cursor + 4]
        return cls(area_code=area_code, prefix=prefix, suffix=suffix)

    @property
    def dashed(self) -> str:
        """Rendering used for outbound tracker queries."""
        return f"{self.area_code}-{self.prefix}-{self.suffix}"

    @property
    def undashed(self) -> str:
        """Rendering used for downstream addressing (SMS gateways)."""
        return f"{self.area_code}{self.prefix}{self.suffix}"

    def __str__(self) -> str:
        return self.dashed
