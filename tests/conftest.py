"""
Shared fixtures: every storage-backed test runs against both adapters.
"""
from decimal import Decimal

import pytest

from order_fulfillment.adapters.outbound.in_memory_storage import InMemoryStorage
from order_fulfillment.adapters.outbound.sqlalchemy_storage import SqlAlchemyStorage
from order_fulfillment.bootstrap import UseCases
from order_fulfillment.core.domain.model.order import ProductId
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
from order_fulfillment.core.ports.inbound.commit_order import OrderRequest, RequestedItem
from order_fulfillment.core.ports.inbound.manage_inventory import AddProductCommand


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    if request.param == "memory":
        store = InMemoryStorage(lock_timeout_seconds=5.0)
    else:
        store = SqlAlchemyStorage.from_url(
            f"sqlite:///{tmp_path / 'orders.db'}", lock_timeout_seconds=10.0
        )
        store.create_schema()
    yield store
    store.close()


def build_services(storage) -> UseCases:
    return UseCases(
        commit_order=CommitOrderService(CommitOrderDeps(storage=storage)),
        get_order=GetOrderService(GetOrderDeps(storage=storage)),
        list_orders=ListOrdersService(ListOrdersDeps(storage=storage)),
        manage_inventory=ManageInventoryService(ManageInventoryDeps(storage=storage)),
        storage=storage,
    )


@pytest.fixture
def services(storage) -> UseCases:
    return build_services(storage)


@pytest.fixture
def add_product(services):
    """Add a product and return its integer id."""

    def add(price="25000", quantity=15, name="Samsung Galaxy smartphone") -> int:
        result = services.manage_inventory.add_product(
            AddProductCommand(name=name, unit_price=Decimal(price), quantity=quantity)
        )
        return result.unwrap().product_id.value

    return add


@pytest.fixture
def read_product(storage):
    def read(product_id: int):
        uow = storage.begin().unwrap()
        try:
            return uow.inventory.get_product(ProductId(product_id)).unwrap()
        finally:
            uow.rollback()

    return read


@pytest.fixture
def snapshot(storage):
    """Everything observable in both stores for the given products."""

    def take(*product_ids: int):
        uow = storage.begin().unwrap()
        try:
            prods = tuple(
                uow.inventory.get_product(ProductId(p)).unwrap() for p in product_ids
            )
            orders = tuple(uow.orders.list_orders(0, 1000).unwrap())
        finally:
            uow.rollback()
        return prods, orders

    return take


def order_request(*items, name="Ivan Petrov", email="ivan@example.com", phone=None):
    """order_request((product_id, qty), ...)"""
    return OrderRequest(
        client_name=name,
        client_email=email,
        client_phone=phone,
        items=tuple(RequestedItem(product_id=p, quantity=q) for p, q in items),
    )


@pytest.fixture
def make_request():
    return order_request
