from __future__ import annotations

from dataclasses import dataclass

from returns.result import Failure, Result

from order_fulfillment.core.domain.model.errors import OrderError, ValidationError
from order_fulfillment.core.domain.model.order import Order, OrderId
from order_fulfillment.core.ports.inbound.get_order import (
    GetOrderQuery,
    GetOrderUseCase,
    OrderLineView,
    OrderView,
)
from order_fulfillment.core.ports.outbound.unit_of_work import Storage, UnitOfWork


@dataclass(frozen=True)
class GetOrderDeps:
    storage: Storage


@dataclass(frozen=True)
class GetOrderService(GetOrderUseCase):
    deps: GetOrderDeps

    def get_order(self, query: GetOrderQuery) -> Result[OrderView, OrderError]:
        try:
            oid = OrderId(int(query.order_id))
        except (TypeError, ValueError):
            return Failure(ValidationError("order_id must be an integer"))
        if oid.value <= 0:
            return Failure(ValidationError("order_id must be > 0"))

        return self.deps.storage.begin().bind(lambda uow: _read(uow, oid))


def _read(uow: UnitOfWork, order_id: OrderId) -> Result[OrderView, OrderError]:
    try:
        return uow.orders.get_order(order_id).map(to_order_view)
    finally:
        uow.rollback()


def to_order_view(order: Order) -> OrderView:
    lines = tuple(
        OrderLineView(
            product_id=li.product_id.value,
            product_name=li.product_name,
            unit_price=li.unit_price,
            quantity=li.quantity,
            subtotal=li.subtotal(),
        )
        for li in order.items
    )
    return OrderView(
        order_id=order.order_id,
        client=order.client,
        status=order.status.value,
        total_amount=order.total_amount,
        created_at=order.created_at,
        lines=lines,
    )
