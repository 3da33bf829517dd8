from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from order_commit.adapters.outbound.in_memory_store import InMemoryDatabase
from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.errors import CheckoutError, OrderNotFound
from order_commit.core.domain.model.order import CustomerId, Order, OrderId, OrderNumber
from order_commit.core.ports.outbound.orders import CommissionLedger, OrderRepository


@dataclass
class InMemoryOrderRepository(OrderRepository):
    db: InMemoryDatabase

    def get(self, order_number: OrderNumber) -> Result[Order, CheckoutError]:
        with self.db.lock:
            order = self.db.orders.get(order_number.value)
        if order is None:
            return Failure(
                OrderNotFound(message="order not found", order_number=order_number.value)
            )
        return Success(order)

    def find_by_idempotency(
        self, scope: str, key: str
    ) -> Result[Order | None, CheckoutError]:
        with self.db.lock:
            number = self.db.idempotency_index.get((scope, key))
            order = self.db.orders.get(number) if number is not None else None
        return Success(order)

    def list(
        self,
        offset: int,
        limit: int,
        customer_id: CustomerId | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Result[Sequence[Order], CheckoutError]:
        orders = self.db.live_orders()  # insertion order

        if customer_id is not None:
            orders = [o for o in orders if o.customer_id == customer_id]

        reverse = sort_dir == "desc"

        if sort_by == "created_at":
            orders = sorted(orders, key=lambda o: o.created_at, reverse=reverse)
        elif sort_by == "total":
            orders = sorted(orders, key=lambda o: o.total.amount, reverse=reverse)

        return Success(tuple(orders[offset : offset + limit]))


@dataclass
class InMemoryCommissionLedger(CommissionLedger):
    db: InMemoryDatabase

    def for_order(
        self, order_id: OrderId
    ) -> Result[Sequence[CommissionRecord], CheckoutError]:
        with self.db.lock:
            return Success(tuple(self.db.commissions.get(order_id, ())))
