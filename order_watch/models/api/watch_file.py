"""
Watch file schema.
Validates the raw TOML document before it is turned into a ConfigSnapshot.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TargetEntry(BaseModel):
    """A tracker endpoint given as a ``{name, url}`` table."""

    name: str = Field(..., min_length=1, description="Display name for logs")
    url: str = Field(..., min_length=1, description="Base URL; the dashed phone number is appended")


class UserEntry(BaseModel):
    """A subscriber entry from ``[[users]]``."""

    name: str = Field(..., min_length=1, description="Display name")
    carrier: str = Field(..., description="Mobile carrier used for the SMS gateway")
    phone_number: str = Field(..., description="Free-form phone number")


class WatchFile(BaseModel):
    """Top-level watch file document."""

    model_config = ConfigDict(extra="ignore")

    check_interval: int = Field(..., gt=0, description="Milliseconds between ticks")
    consecutive_errors_limit: int = Field(..., ge=0, description="Error streak before exit")
    from_addr: str = Field(..., min_length=1, description="Sender identity for notifications")
    check_addresses: list[TargetEntry] = Field(default_factory=list)
    users: list[UserEntry] = Field(default_factory=list)

    @field_validator("check_addresses", mode="before")
    @classmethod
    def _expand_bare_urls(cls, value):
        if not isinstance(value, list):
            return value
        return [{"name": item, "url": item} if isinstance(item, str) else item for item in value]
