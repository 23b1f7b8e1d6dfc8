from decimal import Decimal

from order_fulfillment.core.domain.model.order import (
    Client,
    Money,
    NewOrder,
    OrderItem,
    ProductId,
    fold_money,
)


def test_money_is_quantized_to_cents():
    assert Money.of("19.999").amount == Decimal("20.00")
    assert Money.of("0.005").amount == Decimal("0.01")
    assert Money.of(25000).amount == Decimal("25000.00")


def test_money_multiplication_and_addition():
    assert (Money.of("19.99") * 3).amount == Decimal("59.97")
    assert (Money.of("0.10") + Money.of("0.20")).amount == Decimal("0.30")


def test_fold_money_of_nothing_is_zero():
    assert fold_money([]) == Money.zero()


def test_new_order_total_is_sum_of_frozen_line_prices():
    items = [
        OrderItem(ProductId(1), 3, Money.of("25000")),
        OrderItem(ProductId(2), 2, Money.of("19.99")),
        OrderItem(ProductId(3), 1, Money.of("0.01")),
    ]
    order = NewOrder.create(Client("Ivan", "ivan@example.com"), items)

    assert order.total_amount.amount == Decimal("75039.99")
    assert order.items == tuple(items)
