from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from returns.pipeline import flow, is_successful
from returns.pointfree import bind
from returns.result import Failure, Result, Success

from order_fulfillment.core.domain.model.errors import (
    CommitFailed,
    InsufficientStock,
    OrderError,
)
from order_fulfillment.core.domain.model.order import (
    Client,
    NewOrder,
    OrderId,
    OrderItem,
    ProductId,
)
from order_fulfillment.core.domain.service.validation import validate_request
from order_fulfillment.core.ports.inbound.commit_order import (
    CommitOrderUseCase,
    OrderConfirmation,
    OrderRequest,
)
from order_fulfillment.core.ports.outbound.inventory import InventoryStore
from order_fulfillment.core.ports.outbound.unit_of_work import Storage, UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitOrderDeps:
    storage: Storage


@dataclass(frozen=True)
class CommitOrderService(CommitOrderUseCase):
    """
    Validates a purchase against live inventory and records it atomically.

    All reads and writes of one call happen inside a single unit of work:
    every line is priced and checked (in request order, first failure wins)
    before anything is written, and any failure rolls the whole unit back.
    No retries are attempted here; CommitFailed is left to the caller.
    """

    deps: CommitOrderDeps

    def commit(self, request: OrderRequest) -> Result[OrderConfirmation, OrderError]:
        result = flow(
            request,
            validate_request,
            bind(self._run_in_transaction),
        )

        if is_successful(result):
            confirmation = result.unwrap()
            logger.info(
                "Order committed: order_id=%s total=%s items=%s",
                confirmation.order_id.value,
                confirmation.total_amount.amount,
                len(request.items),
            )
        else:
            err = result.failure()
            logger.warning("Order rejected: %s | %s", type(err).__name__, err)
        return result

    def _run_in_transaction(
        self, request: OrderRequest
    ) -> Result[OrderConfirmation, OrderError]:
        return self.deps.storage.begin().bind(lambda uow: _commit_with(uow, request))


# ---- transaction body ------------------------------------------------------


def _commit_with(
    uow: UnitOfWork, request: OrderRequest
) -> Result[OrderConfirmation, OrderError]:
    result: Result[OrderConfirmation, OrderError] = Failure(
        CommitFailed("transaction aborted")
    )
    try:
        result = flow(
            request,
            lambda req: _price_items(uow.inventory, req),
            bind(lambda items: _record(uow, request, items)),
            bind(lambda conf: uow.commit().map(lambda _: conf)),
        )
    finally:
        if not is_successful(result):
            uow.rollback()
    return result


def _price_items(
    inventory: InventoryStore, request: OrderRequest
) -> Result[Tuple[OrderItem, ...], OrderError]:
    # stock already claimed by earlier lines of this request, per product
    claimed: Dict[int, int] = {}
    items: List[OrderItem] = []

    for line in request.items:
        found = inventory.get_product(ProductId(line.product_id))
        if not is_successful(found):
            return Failure(found.failure())
        product = found.unwrap()

        available = product.available_quantity - claimed.get(line.product_id, 0)
        if available < line.quantity:
            return Failure(
                InsufficientStock(
                    message="not enough stock",
                    product_id=line.product_id,
                    available=available,
                    requested=line.quantity,
                )
            )

        claimed[line.product_id] = claimed.get(line.product_id, 0) + line.quantity
        items.append(
            OrderItem(
                product_id=product.product_id,
                quantity=line.quantity,
                unit_price=product.unit_price,
                product_name=product.name,
            )
        )

    return Success(tuple(items))


def _record(
    uow: UnitOfWork, request: OrderRequest, items: Tuple[OrderItem, ...]
) -> Result[OrderConfirmation, OrderError]:
    order = NewOrder.create(_client_of(request), items)

    def decrement_all(order_id: OrderId) -> Result[OrderConfirmation, OrderError]:
        for it in order.items:
            dec = uow.inventory.decrement_stock(it.product_id, it.quantity)
            if not is_successful(dec):
                return Failure(dec.failure())
        return Success(OrderConfirmation(order_id=order_id, total_amount=order.total_amount))

    return uow.orders.append_order(order).bind(decrement_all)


def _client_of(request: OrderRequest) -> Client:
    phone = request.client_phone.strip() if request.client_phone else ""
    return Client(
        name=request.client_name.strip(),
        email=request.client_email.strip(),
        phone=phone or None,
    )
