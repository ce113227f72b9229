import pytest
from pydantic import ValidationError

from order_watch.models.api.order_response import (
    NoOrder,
    TrackedOrder,
    parse_order_status_response,
)
from order_watch.models.domain.status import Status


def test_order_shape_is_tried_first():
    result = parse_order_status_response(
        {
            "orderId": "42",
            "orderKey": "abc",
            "status": "ON_THE_WAY",
            "message": "ignored",
            "driverName": "Sam",
        }
    )

    assert isinstance(result, TrackedOrder)
    assert result.order_id == "42"
    assert result.order_key == "abc"
    assert result.status is Status.ON_THE_WAY


def test_numeric_order_id_is_normalized():
    result = parse_order_status_response({"orderId": 1234, "orderKey": "k", "status": "COOKING"})

    assert result.order_id == "1234"


def test_unknown_status_falls_back():
    result = parse_order_status_response({"orderId": "1", "orderKey": "k", "status": "BEAMED"})

    assert result.status is Status.UNKNOWN


def test_message_shape_is_no_order():
    result = parse_order_status_response({"message": "No orders found for this number"})

    assert isinstance(result, NoOrder)
    assert result.message == "No orders found for this number"


def test_partial_order_falls_back_to_no_order_when_message_present():
    result = parse_order_status_response({"orderId": "1", "message": "Processing"})

    assert isinstance(result, NoOrder)


@pytest.mark.parametrize("payload", [{}, [], "nope", {"orderId": "1"}])
def test_unrecognized_shapes_are_rejected(payload):
    with pytest.raises(ValidationError):
        parse_order_status_response(payload)
