from __future__ import annotations

from typing import Callable, Protocol, Sequence, TypeVar

from returns.result import Result

from order_commit.core.domain.model.catalog import ProductId, StockLevel, StockState
from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.order import Order, OrderId, OrderNumber

T = TypeVar("T")


class Transaction(Protocol):
    """Handle for every write of a commit; all of them land together or not at all."""

    def find_order_by_idempotency(
        self, scope: str, key: str
    ) -> Result[Order | None, CheckoutError]: ...

    def get_order(self, order_number: OrderNumber) -> Result[Order, CheckoutError]:
        """Read an order for update within this transaction."""
        ...

    def insert_order(self, order: Order) -> Result[None, CheckoutError]: ...

    def update_order(self, order: Order) -> Result[None, CheckoutError]: ...

    def conditional_decrement_stock(
        self, product_id: ProductId, quantity: int
    ) -> Result[StockLevel | None, CheckoutError]:
        """Decrement only if stock >= quantity and the product is not out of stock.

        `Success(None)` means the condition did not hold and nothing was written.
        """
        ...

    def restore_stock(
        self, product_id: ProductId, quantity: int
    ) -> Result[StockLevel | None, CheckoutError]:
        """Add quantity back. `Success(None)` if the product no longer exists."""
        ...

    def set_stock_state(
        self, product_id: ProductId, state: StockState
    ) -> Result[None, CheckoutError]: ...

    def insert_commissions(
        self, records: Sequence[CommissionRecord]
    ) -> Result[None, CheckoutError]: ...

    def cancel_commissions(self, order_id: OrderId) -> Result[int, CheckoutError]: ...

    def increment_coupon_usage(self, coupon_id: str) -> Result[None, CheckoutError]: ...


class UnitOfWork(Protocol):
    def run(
        self, work: Callable[[Transaction], Result[T, CheckoutError]]
    ) -> Result[T, CheckoutError]:
        """Run `work` in one transaction.

        Commits when `work` returns `Success`; rolls back on `Failure` or on an
        exception (which is re-raised). A commit rejected by the idempotency
        uniqueness constraint yields `Failure(DuplicateIdempotencyKey)`.
        """
        ...
