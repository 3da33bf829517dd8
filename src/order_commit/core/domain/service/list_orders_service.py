from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result

from order_commit.core.domain.model.errors import CheckoutError, ValidationError
from order_commit.core.domain.model.order import CustomerId, Order
from order_commit.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
    OrderSummaryView,
)
from order_commit.core.ports.outbound.orders import OrderRepository

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListOrdersDeps:
    orders: OrderRepository


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    """Pages through live (non-archived) orders."""

    deps: ListOrdersDeps

    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderSummaryView], CheckoutError]:
        if query.offset < 0:
            return Failure(ValidationError(message="offset must be >= 0"))
        if query.limit <= 0:
            return Failure(ValidationError(message="limit must be > 0"))
        if query.limit > MAX_PAGE_SIZE:
            return Failure(
                ValidationError(message=f"limit must be <= {MAX_PAGE_SIZE}")
            )

        customer: CustomerId | None = None
        if query.customer_id is not None:
            cid = query.customer_id.strip()
            if not cid:
                return Failure(
                    ValidationError(
                        message="customer_id must be non-empty when provided"
                    )
                )
            customer = CustomerId(cid)

        if query.sort_by not in {"created_at", "total"}:
            return Failure(
                ValidationError(message="sort_by must be one of: created_at, total")
            )
        if query.sort_dir not in {"asc", "desc"}:
            return Failure(ValidationError(message="sort_dir must be 'asc' or 'desc'"))

        return self.deps.orders.list(
            query.offset,
            query.limit,
            customer_id=customer,
            sort_by=query.sort_by,
            sort_dir=query.sort_dir,
        ).map(_to_summaries)


def _to_summaries(orders: Sequence[Order]) -> Sequence[OrderSummaryView]:
    return tuple(
        OrderSummaryView(
            order_number=o.order_number,
            customer_id=o.customer_id,
            status=o.status,
            total=o.total,
            created_at=o.created_at,
        )
        for o in orders
    )
