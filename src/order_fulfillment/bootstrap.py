from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from returns.pipeline import is_successful

from order_fulfillment.adapters.outbound.in_memory_storage import InMemoryStorage
from order_fulfillment.adapters.outbound.sqlalchemy_storage import SqlAlchemyStorage
from order_fulfillment.config import Settings, get_settings
from order_fulfillment.core.domain.service.commit_order_service import (
    CommitOrderDeps,
    CommitOrderService,
)
from order_fulfillment.core.domain.service.get_order_service import (
    GetOrderDeps,
    GetOrderService,
)
from order_fulfillment.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from order_fulfillment.core.domain.service.manage_inventory_service import (
    ManageInventoryDeps,
    ManageInventoryService,
)
from order_fulfillment.core.ports.inbound.manage_inventory import AddProductCommand
from order_fulfillment.core.ports.outbound.unit_of_work import Storage

logger = logging.getLogger(__name__)

DEFAULT_CATALOG = (
    AddProductCommand(
        name="Samsung Galaxy smartphone",
        description="Smartphone with a 6.5\" screen",
        unit_price=Decimal("25000"),
        category="Smartphones",
        quantity=15,
    ),
    AddProductCommand(
        name="ASUS laptop",
        description="15.6\" laptop, Intel Core i5",
        unit_price=Decimal("45000"),
        category="Laptops",
        quantity=8,
    ),
    AddProductCommand(
        name="Sony headphones",
        description="Wireless headphones",
        unit_price=Decimal("5000"),
        category="Accessories",
        quantity=25,
    ),
    AddProductCommand(
        name="iPad tablet",
        description="10.2\" tablet",
        unit_price=Decimal("30000"),
        category="Tablets",
        quantity=12,
    ),
    AddProductCommand(
        name="Logitech mouse",
        description="Wireless mouse",
        unit_price=Decimal("1500"),
        category="Accessories",
        quantity=30,
    ),
)


@dataclass(frozen=True)
class UseCases:
    commit_order: CommitOrderService
    get_order: GetOrderService
    list_orders: ListOrdersService
    manage_inventory: ManageInventoryService
    storage: Storage


def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "memory":
        return InMemoryStorage(lock_timeout_seconds=settings.lock_timeout_seconds)

    storage = SqlAlchemyStorage.from_url(
        settings.database_url,
        lock_timeout_seconds=settings.lock_timeout_seconds,
        echo=settings.database_echo,
    )
    storage.create_schema()
    return storage


def build_usecases(settings: Settings | None = None) -> UseCases:
    settings = settings or get_settings()
    storage = build_storage(settings)

    usecases = UseCases(
        commit_order=CommitOrderService(CommitOrderDeps(storage=storage)),
        get_order=GetOrderService(GetOrderDeps(storage=storage)),
        list_orders=ListOrdersService(ListOrdersDeps(storage=storage)),
        manage_inventory=ManageInventoryService(ManageInventoryDeps(storage=storage)),
        storage=storage,
    )
    if settings.seed_catalog:
        seed_catalog(usecases)
    return usecases


def seed_catalog(usecases: UseCases) -> int:
    """Add the default catalog when the store has no products yet."""
    begun = usecases.storage.begin()
    if not is_successful(begun):
        raise begun.failure()
    uow = begun.unwrap()
    try:
        counted = uow.inventory.count_products()
    finally:
        uow.rollback()
    if not is_successful(counted):
        raise counted.failure()
    if counted.unwrap() > 0:
        return 0

    added = 0
    for cmd in DEFAULT_CATALOG:
        result = usecases.manage_inventory.add_product(cmd)
        if not is_successful(result):
            raise result.failure()
        added += 1
    logger.info("Catalog seeded with %s products", added)
    return added
