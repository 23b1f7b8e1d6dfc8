from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Tuple

_CENTS = Decimal("0.01")

DEFAULT_CATEGORY = "Other"


@dataclass(frozen=True)
class ProductId:
    value: int


@dataclass(frozen=True)
class OrderId:
    value: int


@dataclass(frozen=True)
class Money:
    amount: Decimal

    @staticmethod
    def of(amount: Decimal | int | str) -> "Money":
        dec = Decimal(str(amount)).quantize(_CENTS, rounding=ROUND_HALF_UP)
        return Money(dec)

    @staticmethod
    def zero() -> "Money":
        return Money.of(0)

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def __mul__(self, n: int) -> "Money":
        return Money((self.amount * Decimal(n)).quantize(_CENTS, rounding=ROUND_HALF_UP))

    def is_negative(self) -> bool:
        return self.amount < 0


@dataclass(frozen=True)
class Product:
    product_id: ProductId
    name: str
    unit_price: Money
    available_quantity: int
    description: str = ""
    category: str = DEFAULT_CATEGORY


@dataclass(frozen=True)
class Client:
    name: str
    email: str
    phone: str | None = None


class OrderStatus(str, Enum):
    PENDING = "pending"


@dataclass(frozen=True)
class OrderItem:
    product_id: ProductId
    quantity: int
    unit_price: Money  # price at purchase, never re-read from the catalog
    product_name: str = ""

    def subtotal(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class NewOrder:
    """An order that has passed validation but has no id yet."""

    client: Client
    items: Tuple[OrderItem, ...]
    total_amount: Money

    @staticmethod
    def create(client: Client, items: Iterable[OrderItem]) -> "NewOrder":
        frozen = tuple(items)
        return NewOrder(
            client=client,
            items=frozen,
            total_amount=fold_money(it.subtotal() for it in frozen),
        )


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    client: Client
    items: Tuple[OrderItem, ...]
    total_amount: Money
    status: OrderStatus
    created_at: datetime


def fold_money(values: Iterable[Money]) -> Money:
    total = Money.zero()
    for v in values:
        total = total + v
    return total


def now_utc() -> datetime:
    return datetime.now(timezone.utc)
