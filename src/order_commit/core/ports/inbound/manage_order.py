from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from returns.result import Result

from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.order import Order


@dataclass(frozen=True)
class AdvanceSubOrderCommand:
    order_number: str
    vendor_id: str
    status: str


@dataclass(frozen=True)
class CancelOrderCommand:
    order_number: str
    reason: str | None = None
    customer_id: str | None = None


@dataclass(frozen=True)
class ReconcileStockCommand:
    order_number: str


class AdvanceSubOrderUseCase(Protocol):
    def advance_sub_order_status(
        self, command: AdvanceSubOrderCommand
    ) -> Result[Order, CheckoutError]: ...


class CancelOrderUseCase(Protocol):
    def cancel_order(self, command: CancelOrderCommand) -> Result[Order, CheckoutError]: ...

    def reconcile_stock_for_cancelled_order(
        self, command: ReconcileStockCommand
    ) -> Result[Order, CheckoutError]: ...
