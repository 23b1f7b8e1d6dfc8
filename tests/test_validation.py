import pytest
from returns.result import Success

from order_fulfillment.core.domain.model.errors import ValidationError
from order_fulfillment.core.domain.service.validation import validate_request
from order_fulfillment.core.ports.inbound.commit_order import OrderRequest, RequestedItem


def _req(name="Ivan", email="ivan@example.com", items=((1, 1),)):
    return OrderRequest(
        client_name=name,
        client_email=email,
        items=tuple(RequestedItem(p, q) for p, q in items),
    )


def test_valid_request_passes_through():
    req = _req()
    assert validate_request(req) == Success(req)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"name": ""}, "client_name is required"),
        ({"name": "   "}, "client_name is required"),
        ({"email": ""}, "client_email is required"),
        ({"items": ()}, "at least one item is required"),
        ({"items": ((1, 0),)}, "items[0].quantity must be > 0"),
        ({"items": ((1, 2), (2, -1))}, "items[1].quantity must be > 0"),
    ],
)
def test_invalid_requests_are_rejected(kwargs, message):
    err = validate_request(_req(**kwargs)).failure()
    assert isinstance(err, ValidationError)
    assert err.message == message


def test_name_is_checked_before_items():
    err = validate_request(_req(name="", items=())).failure()
    assert err.message == "client_name is required"
