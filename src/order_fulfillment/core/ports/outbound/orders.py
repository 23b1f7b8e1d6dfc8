from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.domain.model.order import NewOrder, Order, OrderId


class OrderLedger(Protocol):
    def append_order(self, order: NewOrder) -> Result[OrderId, OrderError]: ...

    def get_order(self, order_id: OrderId) -> Result[Order, OrderError]: ...

    def list_orders(
        self, offset: int, limit: int
    ) -> Result[Sequence[Order], OrderError]:
        """Most recent first."""
        ...
