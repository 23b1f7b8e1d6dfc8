from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Sequence, TypeVar

from returns.result import Failure, Result, Success
from sqlalchemy import create_engine, event, func, insert, select, update
from sqlalchemy.engine import Connection, Engine, RootTransaction
from sqlalchemy.exc import SQLAlchemyError

from order_fulfillment.adapters.outbound.sql_schema import (
    metadata,
    order_items,
    orders,
    products,
)
from order_fulfillment.core.domain.model.errors import (
    CommitFailed,
    OrderError,
    OrderNotFound,
    ProductNotFound,
    ValidationError,
)
from order_fulfillment.core.domain.model.order import (
    DEFAULT_CATEGORY,
    Client,
    Money,
    NewOrder,
    Order,
    OrderId,
    OrderItem,
    OrderStatus,
    Product,
    ProductId,
    now_utc,
)
from order_fulfillment.core.ports.outbound.inventory import InventoryStore
from order_fulfillment.core.ports.outbound.orders import OrderLedger
from order_fulfillment.core.ports.outbound.unit_of_work import Storage, UnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ids are stored in signed 64-bit INTEGER columns
_MAX_ROW_ID = 2**63 - 1


def _guarded(action: str, op: Callable[[], Result[T, OrderError]]) -> Result[T, OrderError]:
    try:
        return op()
    except SQLAlchemyError as exc:
        logger.warning("Storage error during %s: %s", action, exc)
        return Failure(CommitFailed(message=f"{action} failed: {type(exc).__name__}"))
    except OverflowError:
        # raised by the driver while binding parameters, before SQL runs
        return Failure(ValidationError(message=f"{action}: value out of range"))


def _storable_id(value: int) -> bool:
    return 0 < value <= _MAX_ROW_ID


def _aware(ts: datetime) -> datetime:
    # SQLite drops the offset; everything is written in UTC
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def _product_from_row(row) -> Product:
    return Product(
        product_id=ProductId(row.id),
        name=row.name,
        unit_price=Money.of(row.price),
        available_quantity=row.in_stock,
        description=row.description,
        category=row.category,
    )


class SqlAlchemyInventory(InventoryStore):
    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def get_product(self, product_id: ProductId) -> Result[Product, OrderError]:
        if not _storable_id(product_id.value):
            return Failure(
                ProductNotFound(message="product not found", product_id=product_id.value)
            )

        def op() -> Result[Product, OrderError]:
            row = self._conn.execute(
                select(products)
                .where(products.c.id == product_id.value)
                .with_for_update()
            ).first()
            if row is None:
                return Failure(
                    ProductNotFound(message="product not found", product_id=product_id.value)
                )
            return Success(_product_from_row(row))

        return _guarded("get_product", op)

    def count_products(self) -> Result[int, OrderError]:
        return _guarded(
            "count_products",
            lambda: Success(
                self._conn.execute(select(func.count()).select_from(products)).scalar_one()
            ),
        )

    def decrement_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[None, OrderError]:
        def op() -> Result[None, OrderError]:
            res = self._conn.execute(
                update(products)
                .where(products.c.id == product_id.value, products.c.in_stock >= amount)
                .values(in_stock=products.c.in_stock - amount)
            )
            if res.rowcount != 1:
                return Failure(
                    CommitFailed(message=f"stock changed for product {product_id.value}")
                )
            return Success(None)

        return _guarded("decrement_stock", op)

    def add_product(
        self,
        name: str,
        unit_price: Money,
        quantity: int,
        description: str = "",
        category: str = DEFAULT_CATEGORY,
    ) -> Result[Product, OrderError]:
        def op() -> Result[Product, OrderError]:
            res = self._conn.execute(
                insert(products).values(
                    name=name,
                    description=description,
                    price=unit_price.amount,
                    category=category,
                    in_stock=quantity,
                )
            )
            pid = res.inserted_primary_key[0]
            return Success(
                Product(
                    product_id=ProductId(pid),
                    name=name,
                    unit_price=unit_price,
                    available_quantity=quantity,
                    description=description,
                    category=category,
                )
            )

        return _guarded("add_product", op)

    def restock(self, product_id: ProductId, amount: int) -> Result[Product, OrderError]:
        return self._update_and_get(
            "restock", product_id, in_stock=products.c.in_stock + amount
        )

    def change_price(
        self, product_id: ProductId, unit_price: Money
    ) -> Result[Product, OrderError]:
        return self._update_and_get("change_price", product_id, price=unit_price.amount)

    def _update_and_get(
        self, action: str, product_id: ProductId, **values
    ) -> Result[Product, OrderError]:
        if not _storable_id(product_id.value):
            return Failure(
                ProductNotFound(message="product not found", product_id=product_id.value)
            )

        def op() -> Result[None, OrderError]:
            res = self._conn.execute(
                update(products).where(products.c.id == product_id.value).values(**values)
            )
            if res.rowcount != 1:
                return Failure(
                    ProductNotFound(message="product not found", product_id=product_id.value)
                )
            return Success(None)

        return _guarded(action, op).bind(lambda _: self.get_product(product_id))


class SqlAlchemyOrderLedger(OrderLedger):
    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def append_order(self, order: NewOrder) -> Result[OrderId, OrderError]:
        def op() -> Result[OrderId, OrderError]:
            res = self._conn.execute(
                insert(orders).values(
                    client_name=order.client.name,
                    client_email=order.client.email,
                    client_phone=order.client.phone,
                    total_amount=order.total_amount.amount,
                    status=OrderStatus.PENDING.value,
                    created_at=now_utc(),
                )
            )
            oid = res.inserted_primary_key[0]
            self._conn.execute(
                insert(order_items),
                [
                    {
                        "order_id": oid,
                        "product_id": it.product_id.value,
                        "quantity": it.quantity,
                        "price": it.unit_price.amount,
                    }
                    for it in order.items
                ],
            )
            return Success(OrderId(oid))

        return _guarded("append_order", op)

    def get_order(self, order_id: OrderId) -> Result[Order, OrderError]:
        if not _storable_id(order_id.value):
            return Failure(
                OrderNotFound(message="order not found", order_id=order_id.value)
            )

        def op() -> Result[Order, OrderError]:
            row = self._conn.execute(
                select(orders).where(orders.c.id == order_id.value)
            ).first()
            if row is None:
                return Failure(
                    OrderNotFound(message="order not found", order_id=order_id.value)
                )
            items = self._items_for([row.id])
            return Success(_order_from_row(row, items.get(row.id, [])))

        return _guarded("get_order", op)

    def list_orders(
        self, offset: int, limit: int
    ) -> Result[Sequence[Order], OrderError]:
        def op() -> Result[Sequence[Order], OrderError]:
            rows = self._conn.execute(
                select(orders)
                .order_by(orders.c.created_at.desc(), orders.c.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            items = self._items_for([r.id for r in rows])
            return Success(tuple(_order_from_row(r, items.get(r.id, [])) for r in rows))

        return _guarded("list_orders", op)

    def _items_for(self, order_ids: List[int]) -> Dict[int, List[OrderItem]]:
        grouped: Dict[int, List[OrderItem]] = {}
        if not order_ids:
            return grouped
        rows = self._conn.execute(
            select(order_items, products.c.name.label("product_name"))
            .join(products, products.c.id == order_items.c.product_id)
            .where(order_items.c.order_id.in_(order_ids))
            .order_by(order_items.c.id)
        )
        for r in rows:
            grouped.setdefault(r.order_id, []).append(
                OrderItem(
                    product_id=ProductId(r.product_id),
                    quantity=r.quantity,
                    unit_price=Money.of(r.price),
                    product_name=r.product_name,
                )
            )
        return grouped


def _order_from_row(row, items: List[OrderItem]) -> Order:
    return Order(
        order_id=OrderId(row.id),
        client=Client(name=row.client_name, email=row.client_email, phone=row.client_phone),
        items=tuple(items),
        total_amount=Money.of(row.total_amount),
        status=OrderStatus(row.status),
        created_at=_aware(row.created_at),
    )


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, conn: Connection, tx: RootTransaction) -> None:
        self._conn = conn
        self._tx = tx
        self._inventory = SqlAlchemyInventory(conn)
        self._orders = SqlAlchemyOrderLedger(conn)
        self._open = True

    @property
    def inventory(self) -> SqlAlchemyInventory:
        return self._inventory

    @property
    def orders(self) -> SqlAlchemyOrderLedger:
        return self._orders

    def commit(self) -> Result[None, OrderError]:
        if not self._open:
            return Failure(CommitFailed(message="unit of work is already closed"))
        try:
            self._tx.commit()
        except SQLAlchemyError as exc:
            logger.warning("Commit failed: %s", exc)
            return Failure(CommitFailed(message=f"commit failed: {type(exc).__name__}"))
        finally:
            self._close()
        return Success(None)

    def rollback(self) -> None:
        if not self._open:
            return
        try:
            self._tx.rollback()
        except SQLAlchemyError:
            # closing the connection below discards the transaction anyway
            logger.exception("Rollback failed")
        finally:
            self._close()

    def _close(self) -> None:
        self._open = False
        self._conn.close()


class SqlAlchemyStorage(Storage):
    """
    Relational storage on SQLAlchemy Core.

    Product rows read inside a unit of work are locked with
    ``SELECT ... FOR UPDATE``. SQLite has no row locks, so there every unit of
    work starts with ``BEGIN IMMEDIATE`` and holds the database write lock.
    """

    def __init__(self, engine: Engine, lock_timeout_seconds: float = 5.0) -> None:
        self._engine = engine
        self._lock_timeout_seconds = lock_timeout_seconds

    @classmethod
    def from_url(
        cls, url: str, lock_timeout_seconds: float = 5.0, echo: bool = False
    ) -> "SqlAlchemyStorage":
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["timeout"] = lock_timeout_seconds
        engine = create_engine(url, echo=echo, connect_args=connect_args)
        if engine.dialect.name == "sqlite":
            _use_immediate_transactions(engine)
        return cls(engine, lock_timeout_seconds=lock_timeout_seconds)

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        metadata.create_all(self._engine)

    def begin(self) -> Result[UnitOfWork, OrderError]:
        try:
            conn = self._engine.connect()
        except SQLAlchemyError as exc:
            logger.warning("Could not connect to the database: %s", exc)
            return Failure(CommitFailed(message="database unavailable"))
        try:
            tx = conn.begin()
            if self._engine.dialect.name == "postgresql":
                ms = int(self._lock_timeout_seconds * 1000)
                conn.exec_driver_sql(f"SET LOCAL lock_timeout = {ms}")
        except SQLAlchemyError as exc:
            conn.close()
            logger.warning("Could not open a transaction: %s", exc)
            return Failure(CommitFailed(message="could not open a transaction"))
        return Success(SqlAlchemyUnitOfWork(conn, tx))

    def close(self) -> None:
        self._engine.dispose()
        logger.info("Database engine disposed")


def _use_immediate_transactions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:
        # stop pysqlite from issuing its own BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")
