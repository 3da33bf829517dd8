from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

import structlog
from returns.result import Failure, Result, Success

from order_commit.core.domain.model.catalog import VendorId
from order_commit.core.domain.model.errors import (
    CheckoutError,
    InvalidTransition,
    OrderNotCancellable,
    SubOrderNotFound,
    ValidationError,
)
from order_commit.core.domain.model.order import (
    Order,
    OrderNumber,
    OrderStatus,
    SubOrderStatus,
    now_utc,
)
from order_commit.core.domain.service.sub_order_status import (
    check_transition,
    derive_order_status,
)
from order_commit.core.ports.inbound.manage_order import (
    AdvanceSubOrderCommand,
    AdvanceSubOrderUseCase,
    CancelOrderCommand,
    CancelOrderUseCase,
    ReconcileStockCommand,
)
from order_commit.core.ports.outbound.notifications import (
    Notification,
    NotificationSink,
    OrderCancelled,
    SubOrderStatusChanged,
)
from order_commit.core.ports.outbound.unit_of_work import Transaction, UnitOfWork

logger = structlog.get_logger(__name__)

_CANCELLABLE = {OrderStatus.PENDING, OrderStatus.PROCESSING}
_CLOSED = {OrderStatus.CANCELLED, OrderStatus.RETURNED}
_CANCELLABLE_SUB_ORDERS = {SubOrderStatus.PENDING, SubOrderStatus.PROCESSING}
_DISPATCHED_SUB_ORDERS = {SubOrderStatus.SHIPPED, SubOrderStatus.DELIVERED}

DEFAULT_CANCELLATION_REASON = "Cancelled by customer"


@dataclass(frozen=True)
class OrderManagementDeps:
    uow: UnitOfWork
    notifications: NotificationSink
    clock: Callable[[], datetime] = now_utc


@dataclass(frozen=True)
class OrderManagementService(AdvanceSubOrderUseCase, CancelOrderUseCase):
    deps: OrderManagementDeps

    def advance_sub_order_status(
        self, command: AdvanceSubOrderCommand
    ) -> Result[Order, CheckoutError]:
        try:
            target = SubOrderStatus(command.status.strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in SubOrderStatus)
            return Failure(ValidationError(f"status must be one of: {allowed}"))

        number = OrderNumber(command.order_number)
        vendor_id = VendorId(command.vendor_id)
        now = self.deps.clock()

        def work(tx: Transaction) -> Result[Order, CheckoutError]:
            return tx.get_order(number).bind(
                lambda order: _advance(order, vendor_id, target, now)
            ).bind(lambda updated: tx.update_order(updated).map(lambda _: updated))

        result = self.deps.uow.run(work)
        if isinstance(result, Success):
            order = result.unwrap()
            logger.info(
                "Sub-order advanced",
                order_number=number.value,
                vendor_id=vendor_id.value,
                status=target.value,
                order_status=order.status.value,
            )
            self._notify(
                SubOrderStatusChanged(
                    order_number=number,
                    vendor_id=vendor_id,
                    status=target,
                    order_status=order.status,
                )
            )
        return result

    def cancel_order(self, command: CancelOrderCommand) -> Result[Order, CheckoutError]:
        number = OrderNumber(command.order_number)
        reason = (command.reason or "").strip() or DEFAULT_CANCELLATION_REASON
        now = self.deps.clock()

        def work(tx: Transaction) -> Result[Order, CheckoutError]:
            return (
                tx.get_order(number)
                .bind(lambda order: _check_owner(order, command.customer_id))
                .bind(_check_cancellable)
                .map(lambda order: _cancelled(order, reason, now))
                .bind(
                    lambda cancelled: tx.update_order(cancelled)
                    .bind(lambda _: _restore_stock(tx, cancelled))
                    .bind(lambda _: tx.cancel_commissions(cancelled.order_id))
                    .map(lambda _: cancelled)
                )
            )

        result = self.deps.uow.run(work)
        if isinstance(result, Success):
            logger.info("Order cancelled", order_number=number.value, reason=reason)
            self._notify(OrderCancelled(order_number=number, reason=reason))
        return result

    def reconcile_stock_for_cancelled_order(
        self, command: ReconcileStockCommand
    ) -> Result[Order, CheckoutError]:
        """Put every line's quantity back into stock.

        Not idempotent: the caller must invoke it at most once per order.
        """
        number = OrderNumber(command.order_number)

        def work(tx: Transaction) -> Result[Order, CheckoutError]:
            return (
                tx.get_order(number)
                .bind(_check_reconcilable)
                .bind(lambda order: _restore_stock(tx, order).map(lambda _: order))
            )

        result = self.deps.uow.run(work)
        if isinstance(result, Success):
            logger.info("Stock reconciled", order_number=number.value)
        return result

    def _notify(self, event: Notification) -> None:
        sent = self.deps.notifications.notify(event)
        if isinstance(sent, Failure):
            logger.warning(
                "Notification failed",
                notification=type(event).__name__,
                reason=str(sent.failure()),
            )


def _advance(
    order: Order, vendor_id: VendorId, target: SubOrderStatus, now: datetime
) -> Result[Order, CheckoutError]:
    if order.status in _CLOSED:
        return Failure(
            InvalidTransition(
                message=f"Order is {order.status.value}; its sub-orders can no longer change",
                current=order.status.value,
                requested=target.value,
            )
        )
    sub = order.sub_order_for(vendor_id)
    if sub is None:
        return Failure(
            SubOrderNotFound(
                message="vendor has no items in this order",
                order_number=order.order_number.value,
                vendor_id=vendor_id.value,
            )
        )

    def apply(status: SubOrderStatus) -> Order:
        updated = order.with_sub_order(replace(sub, status=status))
        derived = derive_order_status(s.status for s in updated.sub_orders)
        delivered_at = updated.delivered_at
        if derived is OrderStatus.DELIVERED and delivered_at is None:
            delivered_at = now
        return replace(updated, status=derived, delivered_at=delivered_at, updated_at=now)

    return check_transition(sub.status, target).map(apply)


def _cancelled(order: Order, reason: str, now: datetime) -> Order:
    subs = tuple(
        replace(sub, status=SubOrderStatus.CANCELLED)
        if sub.status in _CANCELLABLE_SUB_ORDERS
        else sub
        for sub in order.sub_orders
    )
    return replace(
        order,
        sub_orders=subs,
        status=OrderStatus.CANCELLED,
        cancelled_at=now,
        cancellation_reason=reason,
        updated_at=now,
    )


def _restore_stock(tx: Transaction, order: Order) -> Result[None, CheckoutError]:
    for item in order.items:
        restored = tx.restore_stock(item.product_id, item.quantity)
        if isinstance(restored, Failure):
            return restored
        level = restored.unwrap()
        if level is None:
            # product removed from the catalog since the order was placed
            continue
        flagged = tx.set_stock_state(item.product_id, level.derived_state())
        if isinstance(flagged, Failure):
            return flagged
    return Success(None)


def _check_owner(order: Order, customer_id: str | None) -> Result[Order, CheckoutError]:
    if customer_id is None:
        return Success(order)
    if order.customer_id is None or order.customer_id.value != customer_id:
        return Failure(ValidationError("order does not belong to this customer"))
    return Success(order)


def _check_cancellable(order: Order) -> Result[Order, CheckoutError]:
    if order.status not in _CANCELLABLE:
        return Failure(
            OrderNotCancellable(
                message="Order cannot be cancelled at this stage.",
                status=order.status.value,
            )
        )
    if any(sub.status in _DISPATCHED_SUB_ORDERS for sub in order.sub_orders):
        return Failure(
            OrderNotCancellable(
                message="Order cannot be cancelled once a vendor has shipped.",
                status=order.status.value,
            )
        )
    return Success(order)


def _check_reconcilable(order: Order) -> Result[Order, CheckoutError]:
    if order.status not in _CLOSED:
        return Failure(
            OrderNotCancellable(
                message="Stock is only reconciled for cancelled or returned orders.",
                status=order.status.value,
            )
        )
    return Success(order)
