from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable

from returns.pipeline import is_successful
from returns.result import Failure, Result, Success

from order_fulfillment.core.domain.model.errors import (
    CommitFailed,
    OrderError,
    ValidationError,
)
from order_fulfillment.core.domain.model.order import (
    DEFAULT_CATEGORY,
    Money,
    Product,
    ProductId,
)
from order_fulfillment.core.ports.inbound.manage_inventory import (
    AddProductCommand,
    ChangePriceCommand,
    ManageInventoryUseCase,
    RestockCommand,
)
from order_fulfillment.core.ports.outbound.unit_of_work import Storage, UnitOfWork

logger = logging.getLogger(__name__)

# upper bound for a single stock write
MAX_QUANTITY = 1_000_000_000

InventoryAction = Callable[[UnitOfWork], Result[Product, OrderError]]


@dataclass(frozen=True)
class ManageInventoryDeps:
    storage: Storage


@dataclass(frozen=True)
class ManageInventoryService(ManageInventoryUseCase):
    deps: ManageInventoryDeps

    def add_product(self, command: AddProductCommand) -> Result[Product, OrderError]:
        if not command.name.strip():
            return Failure(ValidationError("name is required"))
        if command.quantity < 0:
            return Failure(ValidationError("quantity must be >= 0"))
        if command.quantity > MAX_QUANTITY:
            return Failure(ValidationError(f"quantity must be <= {MAX_QUANTITY}"))
        category = (command.category or "").strip() or DEFAULT_CATEGORY

        return _parse_price(command.unit_price).bind(
            lambda price: self._write(
                lambda uow: uow.inventory.add_product(
                    command.name.strip(),
                    price,
                    command.quantity,
                    description=command.description.strip(),
                    category=category,
                ),
                "Product added",
            )
        )

    def restock(self, command: RestockCommand) -> Result[Product, OrderError]:
        if command.amount <= 0:
            return Failure(ValidationError("amount must be > 0"))
        if command.amount > MAX_QUANTITY:
            return Failure(ValidationError(f"amount must be <= {MAX_QUANTITY}"))

        return self._write(
            lambda uow: uow.inventory.restock(
                ProductId(command.product_id), command.amount
            ),
            "Product restocked",
        )

    def change_price(self, command: ChangePriceCommand) -> Result[Product, OrderError]:
        return _parse_price(command.unit_price).bind(
            lambda price: self._write(
                lambda uow: uow.inventory.change_price(
                    ProductId(command.product_id), price
                ),
                "Product repriced",
            )
        )

    def _write(self, action: InventoryAction, what: str) -> Result[Product, OrderError]:
        result = self.deps.storage.begin().bind(lambda uow: _apply(uow, action))
        if is_successful(result):
            p = result.unwrap()
            logger.info(
                "%s: product_id=%s price=%s stock=%s",
                what,
                p.product_id.value,
                p.unit_price.amount,
                p.available_quantity,
            )
        return result


def _apply(uow: UnitOfWork, action: InventoryAction) -> Result[Product, OrderError]:
    result: Result[Product, OrderError] = Failure(CommitFailed("transaction aborted"))
    try:
        result = action(uow).bind(lambda p: uow.commit().map(lambda _: p))
    finally:
        if not is_successful(result):
            uow.rollback()
    return result


def _parse_price(raw: Decimal | int | str) -> Result[Money, OrderError]:
    try:
        price = Money.of(raw)
    except (InvalidOperation, ValueError):
        return Failure(ValidationError("unit_price must be a decimal number"))
    if not price.amount.is_finite() or price.is_negative():
        return Failure(ValidationError("unit_price must be >= 0"))
    return Success(price)
