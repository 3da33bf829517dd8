from __future__ import annotations

from typing import Iterable

from returns.result import Failure, Result, Success

from order_commit.core.domain.model.errors import CheckoutError, InvalidTransition
from order_commit.core.domain.model.order import OrderStatus, SubOrderStatus

_VALID_TRANSITIONS = {
    SubOrderStatus.PENDING: {SubOrderStatus.PROCESSING, SubOrderStatus.CANCELLED},
    SubOrderStatus.PROCESSING: {SubOrderStatus.SHIPPED, SubOrderStatus.CANCELLED},
    # shipped -> cancelled is only taken by the return workflow
    SubOrderStatus.SHIPPED: {SubOrderStatus.DELIVERED, SubOrderStatus.CANCELLED},
    SubOrderStatus.DELIVERED: set(),  # Terminal
    SubOrderStatus.CANCELLED: set(),  # Terminal
}

_PROGRESSED = {SubOrderStatus.PROCESSING, SubOrderStatus.SHIPPED, SubOrderStatus.DELIVERED}
_DISPATCHED = {SubOrderStatus.SHIPPED, SubOrderStatus.DELIVERED}


def can_transition(current: SubOrderStatus, target: SubOrderStatus) -> bool:
    return target in _VALID_TRANSITIONS.get(current, set())


def check_transition(
    current: SubOrderStatus, target: SubOrderStatus
) -> Result[SubOrderStatus, CheckoutError]:
    if not can_transition(current, target):
        return Failure(
            InvalidTransition(
                message=f"Cannot transition from {current.value} to {target.value}",
                current=current.value,
                requested=target.value,
            )
        )
    return Success(target)


def derive_order_status(statuses: Iterable[SubOrderStatus]) -> OrderStatus:
    """Aggregate order status from its sub-orders.

    Unanimity (all cancelled, all live ones delivered) is checked before
    partial progress. Cancelled sub-orders do not hold back the rest.
    """
    all_statuses = list(statuses)
    if not all_statuses or all(s is SubOrderStatus.CANCELLED for s in all_statuses):
        return OrderStatus.CANCELLED

    live = [s for s in all_statuses if s is not SubOrderStatus.CANCELLED]
    if all(s is SubOrderStatus.DELIVERED for s in live):
        return OrderStatus.DELIVERED
    if all(s in _DISPATCHED for s in live):
        return OrderStatus.SHIPPED
    if any(s in _PROGRESSED for s in live):
        return OrderStatus.PROCESSING
    return OrderStatus.PENDING
