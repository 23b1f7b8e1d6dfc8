from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.domain.model.order import Money, OrderId


@dataclass(frozen=True)
class RequestedItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class OrderRequest:
    client_name: str
    client_email: str
    items: Sequence[RequestedItem]
    client_phone: str | None = None


@dataclass(frozen=True)
class OrderConfirmation:
    order_id: OrderId
    total_amount: Money


class CommitOrderUseCase(Protocol):
    def commit(
        self, request: OrderRequest
    ) -> Result[OrderConfirmation, OrderError]: ...
