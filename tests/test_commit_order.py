import logging
from decimal import Decimal

from returns.pipeline import is_successful

from order_fulfillment.core.domain.model.errors import (
    InsufficientStock,
    ProductNotFound,
    ValidationError,
)
from order_fulfillment.core.domain.model.order import Money, OrderStatus
from order_fulfillment.core.ports.inbound.get_order import GetOrderQuery
from order_fulfillment.core.ports.inbound.manage_inventory import (
    ChangePriceCommand,
    RestockCommand,
)


def test_commit_reserves_stock_and_records_order(
    services, add_product, read_product, make_request
):
    p1 = add_product(price="25000", quantity=15)

    result = services.commit_order.commit(make_request((p1, 3)))

    confirmation = result.unwrap()
    assert confirmation.total_amount == Money.of(75000)
    assert read_product(p1).available_quantity == 12

    view = services.get_order.get_order(
        GetOrderQuery(str(confirmation.order_id.value))
    ).unwrap()
    assert view.status == OrderStatus.PENDING.value
    assert view.total_amount == Money.of(75000)
    assert [(ln.product_id, ln.quantity, ln.unit_price) for ln in view.lines] == [
        (p1, 3, Money.of(25000))
    ]


def test_insufficient_stock_leaves_stores_unchanged(
    services, add_product, snapshot, make_request
):
    p1 = add_product(quantity=2)
    before = snapshot(p1)

    err = services.commit_order.commit(make_request((p1, 5))).failure()

    assert isinstance(err, InsufficientStock)
    assert (err.product_id, err.available, err.requested) == (p1, 2, 5)
    assert snapshot(p1) == before


def test_unknown_product_creates_no_order(services, add_product, snapshot, make_request):
    p1 = add_product()
    before = snapshot(p1)

    err = services.commit_order.commit(make_request((9999, 1))).failure()

    assert isinstance(err, ProductNotFound)
    assert err.product_id == 9999
    assert snapshot(p1) == before
    assert snapshot(p1)[1] == ()


def test_empty_items_never_touch_the_store(storage, make_request):
    from order_fulfillment.core.domain.service.commit_order_service import (
        CommitOrderDeps,
        CommitOrderService,
    )

    class CountingStorage:
        def __init__(self, inner):
            self.inner = inner
            self.begins = 0

        def begin(self):
            self.begins += 1
            return self.inner.begin()

        def close(self):
            self.inner.close()

    counting = CountingStorage(storage)
    svc = CommitOrderService(CommitOrderDeps(storage=counting))

    err = svc.commit(make_request()).failure()

    assert isinstance(err, ValidationError)
    assert counting.begins == 0


def test_late_failure_rolls_back_earlier_lines(
    services, add_product, snapshot, make_request
):
    p1 = add_product(quantity=10)
    p2 = add_product(quantity=10, name="ASUS laptop")
    p3 = add_product(quantity=1, name="Sony headphones")
    before = snapshot(p1, p2, p3)

    err = services.commit_order.commit(make_request((p1, 2), (p2, 2), (p3, 5))).failure()

    assert isinstance(err, InsufficientStock)
    assert err.product_id == p3
    assert snapshot(p1, p2, p3) == before


def test_first_offending_item_in_request_order_is_reported(
    services, add_product, make_request
):
    p1 = add_product(quantity=1)
    p2 = add_product(quantity=1, name="ASUS laptop")

    err = services.commit_order.commit(
        make_request((p1, 1), (p2, 7), (9999, 1), (p1, 9))
    ).failure()

    assert isinstance(err, InsufficientStock)
    assert (err.product_id, err.available, err.requested) == (p2, 1, 7)


def test_repeated_product_lines_cannot_oversell(
    services, add_product, read_product, make_request
):
    p1 = add_product(quantity=15)

    err = services.commit_order.commit(make_request((p1, 10), (p1, 10))).failure()

    assert isinstance(err, InsufficientStock)
    assert (err.available, err.requested) == (5, 10)
    assert read_product(p1).available_quantity == 15


def test_repeated_product_lines_within_stock_are_all_recorded(
    services, add_product, read_product, make_request
):
    p1 = add_product(price="19.99", quantity=15)

    confirmation = services.commit_order.commit(
        make_request((p1, 10), (p1, 5))
    ).unwrap()

    assert confirmation.total_amount.amount == Decimal("299.85")
    assert read_product(p1).available_quantity == 0


def test_prices_are_frozen_at_purchase(services, add_product, make_request):
    p1 = add_product(price="1500", quantity=30)
    confirmation = services.commit_order.commit(make_request((p1, 2))).unwrap()

    services.manage_inventory.change_price(
        ChangePriceCommand(product_id=p1, unit_price=Decimal("9999.99"))
    ).unwrap()
    services.manage_inventory.restock(RestockCommand(product_id=p1, amount=5)).unwrap()

    view = services.get_order.get_order(
        GetOrderQuery(str(confirmation.order_id.value))
    ).unwrap()
    assert view.total_amount == Money.of(3000)
    assert view.lines[0].unit_price == Money.of(1500)

    later = services.commit_order.commit(make_request((p1, 1))).unwrap()
    assert later.total_amount == Money.of("9999.99")


def test_total_equals_sum_of_line_subtotals(services, add_product, make_request):
    p1 = add_product(price="19.99", quantity=10)
    p2 = add_product(price="0.01", quantity=10, name="Sticker")
    p3 = add_product(price="45000", quantity=8, name="ASUS laptop")

    confirmation = services.commit_order.commit(
        make_request((p1, 3), (p2, 7), (p3, 1))
    ).unwrap()
    view = services.get_order.get_order(
        GetOrderQuery(str(confirmation.order_id.value))
    ).unwrap()

    line_sum = sum((ln.quantity * ln.unit_price.amount for ln in view.lines), Decimal(0))
    assert view.total_amount.amount == line_sum == Decimal("45060.04")
    assert confirmation.total_amount == view.total_amount


def test_client_fields_are_normalized(services, add_product, make_request):
    p1 = add_product()

    with_phone = services.commit_order.commit(
        make_request((p1, 1), name="  Ivan ", email=" ivan@example.com ", phone=" +7 900 ")
    ).unwrap()
    without_phone = services.commit_order.commit(
        make_request((p1, 1), phone="   ")
    ).unwrap()

    first = services.get_order.get_order(GetOrderQuery(str(with_phone.order_id.value)))
    second = services.get_order.get_order(
        GetOrderQuery(str(without_phone.order_id.value))
    )
    assert first.unwrap().client.name == "Ivan"
    assert first.unwrap().client.email == "ivan@example.com"
    assert first.unwrap().client.phone == "+7 900"
    assert second.unwrap().client.phone is None


def test_order_ids_are_distinct_integers(services, add_product, make_request):
    p1 = add_product()
    ids = [
        services.commit_order.commit(make_request((p1, 1))).unwrap().order_id.value
        for _ in range(3)
    ]
    assert all(isinstance(i, int) for i in ids)
    assert len(set(ids)) == 3


def test_commit_outcomes_are_logged(services, add_product, make_request, caplog):
    p1 = add_product(quantity=1)

    with caplog.at_level(logging.INFO, logger="order_fulfillment"):
        assert is_successful(services.commit_order.commit(make_request((p1, 1))))
        assert not is_successful(services.commit_order.commit(make_request((p1, 1))))

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Order committed") for m in messages)
    assert any(m.startswith("Order rejected: InsufficientStock") for m in messages)


def test_product_id_beyond_storage_range_is_not_found(
    services, add_product, snapshot, make_request
):
    p1 = add_product(quantity=5)
    before = snapshot(p1)

    err = services.commit_order.commit(make_request((p1, 1), (2**70, 1))).failure()

    assert isinstance(err, ProductNotFound)
    assert err.product_id == 2**70
    assert snapshot(p1) == before


def test_order_lines_carry_the_product_name(services, add_product, make_request):
    p1 = add_product(name="Sony headphones", price="5000", quantity=4)
    confirmation = services.commit_order.commit(make_request((p1, 2))).unwrap()

    view = services.get_order.get_order(
        GetOrderQuery(str(confirmation.order_id.value))
    ).unwrap()

    assert [ln.product_name for ln in view.lines] == ["Sony headphones"]
