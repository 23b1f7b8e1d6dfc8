from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.ports.inbound.get_order import OrderView


@dataclass(frozen=True)
class ListOrdersQuery:
    offset: int = 0
    limit: int = 50


class ListOrdersUseCase(Protocol):
    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], OrderError]: ...
