from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result

from order_fulfillment.core.domain.model.errors import OrderError, ValidationError
from order_fulfillment.core.domain.model.order import Order
from order_fulfillment.core.domain.service.get_order_service import to_order_view
from order_fulfillment.core.ports.inbound.get_order import OrderView
from order_fulfillment.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from order_fulfillment.core.ports.outbound.unit_of_work import Storage, UnitOfWork

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListOrdersDeps:
    storage: Storage


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    deps: ListOrdersDeps

    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], OrderError]:
        if query.offset < 0:
            return Failure(ValidationError(message="offset must be >= 0"))
        if query.limit <= 0:
            return Failure(ValidationError(message="limit must be > 0"))
        if query.limit > MAX_PAGE_SIZE:
            return Failure(
                ValidationError(message=f"limit must be <= {MAX_PAGE_SIZE}")
            )

        return self.deps.storage.begin().bind(lambda uow: _read(uow, query))


def _read(
    uow: UnitOfWork, query: ListOrdersQuery
) -> Result[Sequence[OrderView], OrderError]:
    try:
        return uow.orders.list_orders(query.offset, query.limit).map(_to_views)
    finally:
        uow.rollback()


def _to_views(orders: Sequence[Order]) -> Sequence[OrderView]:
    return tuple(to_order_view(o) for o in orders)
