from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.order import Order


@dataclass(frozen=True)
class GetOrderQuery:
    order_number: str


class GetOrderUseCase(Protocol):
    def get_order(self, query: GetOrderQuery) -> Result[Order, CheckoutError]: ...

    def list_commissions(
        self, query: GetOrderQuery
    ) -> Result[Sequence[CommissionRecord], CheckoutError]: ...
