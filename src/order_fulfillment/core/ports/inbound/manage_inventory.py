from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.domain.model.order import Product


@dataclass(frozen=True)
class AddProductCommand:
    name: str
    unit_price: Decimal
    quantity: int = 0
    description: str = ""
    category: str | None = None  # blank or missing means DEFAULT_CATEGORY


@dataclass(frozen=True)
class RestockCommand:
    product_id: int
    amount: int


@dataclass(frozen=True)
class ChangePriceCommand:
    product_id: int
    unit_price: Decimal


class ManageInventoryUseCase(Protocol):
    def add_product(self, command: AddProductCommand) -> Result[Product, OrderError]: ...

    def restock(self, command: RestockCommand) -> Result[Product, OrderError]: ...

    def change_price(
        self, command: ChangePriceCommand
    ) -> Result[Product, OrderError]: ...
