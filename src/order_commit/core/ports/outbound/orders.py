from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.order import CustomerId, Order, OrderId, OrderNumber


class OrderRepository(Protocol):
    """Committed orders. Writes happen only through a `Transaction`."""

    def get(self, order_number: OrderNumber) -> Result[Order, CheckoutError]: ...

    def find_by_idempotency(
        self, scope: str, key: str
    ) -> Result[Order | None, CheckoutError]: ...

    def list(
        self,
        offset: int,
        limit: int,
        customer_id: CustomerId | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Result[Sequence[Order], CheckoutError]: ...


class CommissionLedger(Protocol):
    def for_order(
        self, order_id: OrderId
    ) -> Result[Sequence[CommissionRecord], CheckoutError]: ...
