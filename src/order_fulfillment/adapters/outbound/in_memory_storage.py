from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Dict, Sequence

from returns.result import Failure, Result, Success

from order_fulfillment.core.domain.model.errors import (
    CommitFailed,
    OrderError,
    OrderNotFound,
    ProductNotFound,
)
from order_fulfillment.core.domain.model.order import (
    DEFAULT_CATEGORY,
    Money,
    NewOrder,
    Order,
    OrderId,
    OrderStatus,
    Product,
    ProductId,
    now_utc,
)
from order_fulfillment.core.ports.outbound.inventory import InventoryStore
from order_fulfillment.core.ports.outbound.orders import OrderLedger
from order_fulfillment.core.ports.outbound.unit_of_work import Storage, UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class _State:
    products: Dict[int, Product] = field(default_factory=dict)
    orders: Dict[int, Order] = field(default_factory=dict)
    next_product_id: int = 1
    next_order_id: int = 1

    def copy(self) -> "_State":
        # values are frozen, a shallow copy is enough to stage changes
        return _State(
            products=dict(self.products),
            orders=dict(self.orders),
            next_product_id=self.next_product_id,
            next_order_id=self.next_order_id,
        )


@dataclass
class InMemoryInventory(InventoryStore):
    _state: _State

    def get_product(self, product_id: ProductId) -> Result[Product, OrderError]:
        product = self._state.products.get(product_id.value)
        if product is None:
            return Failure(
                ProductNotFound(message="product not found", product_id=product_id.value)
            )
        return Success(product)

    def count_products(self) -> Result[int, OrderError]:
        return Success(len(self._state.products))

    def decrement_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[None, OrderError]:
        product = self._state.products.get(product_id.value)
        if product is None or product.available_quantity < amount:
            return Failure(
                CommitFailed(message=f"stock changed for product {product_id.value}")
            )
        self._state.products[product_id.value] = replace(
            product, available_quantity=product.available_quantity - amount
        )
        return Success(None)

    def add_product(
        self,
        name: str,
        unit_price: Money,
        quantity: int,
        description: str = "",
        category: str = DEFAULT_CATEGORY,
    ) -> Result[Product, OrderError]:
        pid = self._state.next_product_id
        self._state.next_product_id += 1
        product = Product(
            product_id=ProductId(pid),
            name=name,
            unit_price=unit_price,
            available_quantity=quantity,
            description=description,
            category=category,
        )
        self._state.products[pid] = product
        return Success(product)

    def restock(self, product_id: ProductId, amount: int) -> Result[Product, OrderError]:
        return self.get_product(product_id).map(
            lambda p: self._put(
                replace(p, available_quantity=p.available_quantity + amount)
            )
        )

    def change_price(
        self, product_id: ProductId, unit_price: Money
    ) -> Result[Product, OrderError]:
        return self.get_product(product_id).map(
            lambda p: self._put(replace(p, unit_price=unit_price))
        )

    def _put(self, product: Product) -> Product:
        self._state.products[product.product_id.value] = product
        return product


@dataclass
class InMemoryOrderLedger(OrderLedger):
    _state: _State

    def append_order(self, order: NewOrder) -> Result[OrderId, OrderError]:
        oid = self._state.next_order_id
        self._state.next_order_id += 1
        self._state.orders[oid] = Order(
            order_id=OrderId(oid),
            client=order.client,
            items=order.items,
            total_amount=order.total_amount,
            status=OrderStatus.PENDING,
            created_at=now_utc(),
        )
        return Success(OrderId(oid))

    def get_order(self, order_id: OrderId) -> Result[Order, OrderError]:
        order = self._state.orders.get(order_id.value)
        if order is None:
            return Failure(
                OrderNotFound(message="order not found", order_id=order_id.value)
            )
        return Success(self._named(order))

    def list_orders(
        self, offset: int, limit: int
    ) -> Result[Sequence[Order], OrderError]:
        orders = sorted(
            self._state.orders.values(),
            key=lambda o: (o.created_at, o.order_id.value),
            reverse=True,
        )
        return Success(tuple(self._named(o) for o in orders[offset : offset + limit]))

    def _named(self, order: Order) -> Order:
        # line names follow the catalog, like a join against products
        items = tuple(
            replace(it, product_name=self._product_name(it.product_id))
            for it in order.items
        )
        return replace(order, items=items)

    def _product_name(self, product_id: ProductId) -> str:
        product = self._state.products.get(product_id.value)
        return product.name if product is not None else ""


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, storage: "InMemoryStorage", staged: _State) -> None:
        self._storage = storage
        self._staged = staged
        self._inventory = InMemoryInventory(staged)
        self._orders = InMemoryOrderLedger(staged)
        self._open = True

    @property
    def inventory(self) -> InMemoryInventory:
        return self._inventory

    @property
    def orders(self) -> InMemoryOrderLedger:
        return self._orders

    def commit(self) -> Result[None, OrderError]:
        if not self._open:
            return Failure(CommitFailed(message="unit of work is already closed"))
        self._storage._publish(self._staged)
        self._close()
        return Success(None)

    def rollback(self) -> None:
        if self._open:
            self._close()

    def _close(self) -> None:
        self._open = False
        self._storage._release()


@dataclass
class InMemoryStorage(Storage):
    """
    Process-local storage guarded by a single lock.

    A unit of work holds the lock from ``begin`` until commit or rollback,
    which serializes writers completely.
    """

    lock_timeout_seconds: float = 5.0
    _state: _State = field(default_factory=_State)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def begin(self) -> Result[UnitOfWork, OrderError]:
        if not self._lock.acquire(timeout=self.lock_timeout_seconds):
            logger.warning(
                "Timed out after %ss waiting for the in-memory store lock",
                self.lock_timeout_seconds,
            )
            return Failure(CommitFailed(message="timed out waiting for the store lock"))
        return Success(InMemoryUnitOfWork(self, self._state.copy()))

    def close(self) -> None:
        logger.info("In-memory storage closed")

    def _publish(self, staged: _State) -> None:
        self._state = staged

    def _release(self) -> None:
        self._lock.release()
