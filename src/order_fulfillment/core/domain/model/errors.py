from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationError(OrderError):
    pass


@dataclass(frozen=True)
class ProductNotFound(OrderError):
    product_id: int

    def __str__(self) -> str:
        return f"product_not_found: {self.product_id} ({self.message})"


@dataclass(frozen=True)
class InsufficientStock(OrderError):
    product_id: int
    available: int
    requested: int

    def __str__(self) -> str:
        return (
            f"insufficient_stock: product={self.product_id} "
            f"available={self.available} requested={self.requested} ({self.message})"
        )


@dataclass(frozen=True)
class CommitFailed(OrderError):
    """The store could not apply the unit of work; safe to retry."""


@dataclass(frozen=True)
class OrderNotFound(OrderError):
    order_id: int

    def __str__(self) -> str:
        return f"order_not_found: {self.order_id} ({self.message})"
