from __future__ import annotations

from typing import Protocol

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.domain.model.order import (
    DEFAULT_CATEGORY,
    Money,
    Product,
    ProductId,
)


class InventoryStore(Protocol):
    def get_product(self, product_id: ProductId) -> Result[Product, OrderError]: ...

    def count_products(self) -> Result[int, OrderError]: ...

    def decrement_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[None, OrderError]:
        """Check-and-decrement; fails with CommitFailed if stock < amount."""
        ...

    def add_product(
        self,
        name: str,
        unit_price: Money,
        quantity: int,
        description: str = "",
        category: str = DEFAULT_CATEGORY,
    ) -> Result[Product, OrderError]: ...

    def restock(self, product_id: ProductId, amount: int) -> Result[Product, OrderError]: ...

    def change_price(
        self, product_id: ProductId, unit_price: Money
    ) -> Result[Product, OrderError]: ...
