from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.errors import CheckoutError, ValidationError
from order_commit.core.domain.model.order import Order, OrderNumber
from order_commit.core.ports.inbound.get_order import GetOrderQuery, GetOrderUseCase
from order_commit.core.ports.outbound.orders import CommissionLedger, OrderRepository


@dataclass(frozen=True)
class GetOrderDeps:
    orders: OrderRepository
    commissions: CommissionLedger


@dataclass(frozen=True)
class GetOrderService(GetOrderUseCase):
    deps: GetOrderDeps

    def get_order(self, query: GetOrderQuery) -> Result[Order, CheckoutError]:
        return _order_number(query).bind(self.deps.orders.get)

    def list_commissions(
        self, query: GetOrderQuery
    ) -> Result[Sequence[CommissionRecord], CheckoutError]:
        return self.get_order(query).bind(
            lambda order: self.deps.commissions.for_order(order.order_id)
        )


def _order_number(query: GetOrderQuery) -> Result[OrderNumber, CheckoutError]:
    number = query.order_number.strip()
    if not number:
        return Failure(ValidationError(message="order_number is required"))
    return Success(OrderNumber(number))
