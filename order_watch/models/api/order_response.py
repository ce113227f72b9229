"""
Order tracker response models.
The tracker returns either an order object or a bare message object with
no discriminator field; the shape alone decides which one was sent.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from order_watch.models.domain.status import Status


class TrackedOrder(BaseModel):
    """An order currently known to the tracker for a phone number."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    order_id: str = Field(..., description="Tracker order ID")
    order_key: str = Field(..., description="Tracker order key")
    status: Status = Field(..., description="Current tracker status")

    @field_validator("order_id", mode="before")
    @classmethod
    def _coerce_order_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> Status:
        return Status.parse(value)


class NoOrder(BaseModel):
    """The tracker has no order for the phone number."""

    model_config = ConfigDict(extra="ignore")

    message: str = Field(..., description="Tracker explanation")


OrderStatusResponse = Annotated[TrackedOrder | NoOrder, Field(union_mode="left_to_right")]

_response_adapter: TypeAdapter[TrackedOrder | NoOrder] = TypeAdapter(OrderStatusResponse)


def parse_order_status_response(payload: Any) -> TrackedOrder | NoOrder:
    """
    Parse a decoded tracker payload, trying the order shape first.

    Raises:
        pydantic.ValidationError: If the payload matches neither shape
    """
    return _response_adapter.validate_python(payload)
