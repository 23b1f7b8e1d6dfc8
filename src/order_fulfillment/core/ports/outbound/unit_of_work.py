from __future__ import annotations

from typing import Protocol

from returns.result import Result

from order_fulfillment.core.domain.model.errors import OrderError
from order_fulfillment.core.ports.outbound.inventory import InventoryStore
from order_fulfillment.core.ports.outbound.orders import OrderLedger


class UnitOfWork(Protocol):
    """
    One serializable transaction over both stores.

    Nothing written through ``inventory`` or ``orders`` is visible to other
    units of work until ``commit`` succeeds. ``rollback`` is idempotent and is
    a no-op after a successful commit.
    """

    @property
    def inventory(self) -> InventoryStore: ...

    @property
    def orders(self) -> OrderLedger: ...

    def commit(self) -> Result[None, OrderError]: ...

    def rollback(self) -> None: ...


class Storage(Protocol):
    def begin(self) -> Result[UnitOfWork, OrderError]:
        """Open a unit of work; waits a bounded time, then CommitFailed."""
        ...

    def close(self) -> None: ...
