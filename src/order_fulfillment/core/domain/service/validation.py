from __future__ import annotations

from returns.result import Failure, Result, Success

from order_fulfillment.core.domain.model.errors import OrderError, ValidationError
from order_fulfillment.core.ports.inbound.commit_order import OrderRequest


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_client(req: OrderRequest) -> Result[OrderRequest, OrderError]:
    if _is_blank(req.client_name):
        return Failure(ValidationError("client_name is required"))
    if _is_blank(req.client_email):
        return Failure(ValidationError("client_email is required"))
    return Success(req)


def validate_items(req: OrderRequest) -> Result[OrderRequest, OrderError]:
    if not req.items:
        return Failure(ValidationError("at least one item is required"))
    for i, it in enumerate(req.items):
        if it.quantity <= 0:
            return Failure(ValidationError(f"items[{i}].quantity must be > 0"))
    return Success(req)


def validate_request(req: OrderRequest) -> Result[OrderRequest, OrderError]:
    return Success(req).bind(validate_client).bind(validate_items)
