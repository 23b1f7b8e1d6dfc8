from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.domain.model.order import Client, Money, OrderId


@dataclass(frozen=True)
class GetOrderQuery:
    order_id: str  # integer id as received from the caller


@dataclass(frozen=True)
class OrderLineView:
    product_id: int
    product_name: str
    unit_price: Money
    quantity: int
    subtotal: Money


@dataclass(frozen=True)
class OrderView:
    order_id: OrderId
    client: Client
    status: str
    total_amount: Money
    created_at: datetime
    lines: Sequence[OrderLineView]


class GetOrderUseCase(Protocol):
    def get_order(self, query: GetOrderQuery) -> Result[OrderView, OrderError]: ...
