from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence

from returns.result import Result

from order_commit.core.domain.model.errors import CheckoutError
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import (
    CustomerId,
    OrderNumber,
    OrderStatus,
)


@dataclass(frozen=True)
class ListOrdersQuery:
    offset: int = 0
    limit: int = 50
    customer_id: str | None = None
    sort_by: str = "created_at"  # created_at | total
    sort_dir: str = "desc"  # asc | desc


@dataclass(frozen=True)
class OrderSummaryView:
    order_number: OrderNumber
    customer_id: CustomerId | None
    status: OrderStatus
    total: Money
    created_at: datetime


class ListOrdersUseCase(Protocol):
    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderSummaryView], CheckoutError]: ...
