from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Tuple

import structlog
from returns.pipeline import flow
from returns.pointfree import bind, lash, map_
from returns.result import Failure, Result, Success
from structlog.contextvars import bound_contextvars

from order_commit.core.domain.model.errors import (
    CheckoutError,
    DuplicateIdempotencyKey,
    StockConflict,
    ValidationError,
)
from order_commit.core.domain.model.idempotency import (
    IdempotencyScope,
    normalize_idempotency_key,
)
from order_commit.core.domain.model.order import (
    CustomerId,
    Order,
    PaymentMethod,
    now_utc,
)
from order_commit.core.domain.model.shipping import ShippingAddress, ShippingSpeed
from order_commit.core.domain.service.cart_pricing import PricedCart, price_cart
from order_commit.core.domain.service.coupon_evaluation import (
    CouponOutcome,
    evaluate_coupon,
)
from order_commit.core.domain.service.order_assembly import (
    AssemblyContext,
    OrderDraft,
    assemble_order,
)
from order_commit.core.ports.inbound.place_order import (
    CheckoutLine,
    CheckoutReceipt,
    PlaceOrderCommand,
    PlaceOrderUseCase,
)
from order_commit.core.ports.outbound.catalog import CatalogStore
from order_commit.core.ports.outbound.coupons import CouponStore
from order_commit.core.ports.outbound.notifications import NotificationSink, OrderPlaced
from order_commit.core.ports.outbound.orders import OrderRepository
from order_commit.core.ports.outbound.shipping import (
    ShippingRateResolver,
    VendorShippingGroup,
)
from order_commit.core.ports.outbound.unit_of_work import Transaction, UnitOfWork

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlaceOrderDeps:
    catalog: CatalogStore
    coupons: CouponStore
    orders: OrderRepository
    shipping: ShippingRateResolver
    uow: UnitOfWork
    notifications: NotificationSink
    tax_rate: Decimal = Decimal("18")
    default_commission_rate: Decimal = Decimal("10")
    estimated_delivery_days: int = 5
    clock: Callable[[], datetime] = now_utc


@dataclass(frozen=True)
class CheckoutRequest:
    """A command that passed shape validation, with derived identity fields."""

    lines: Tuple[CheckoutLine, ...]
    customer_id: CustomerId | None
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    shipping_speed: ShippingSpeed
    coupon_code: str | None
    scope: IdempotencyScope
    idempotency_key: str | None


@dataclass(frozen=True)
class CommitOutcome:
    order: Order
    replay: bool


@dataclass(frozen=True)
class PlaceOrderService(PlaceOrderUseCase):
    deps: PlaceOrderDeps

    def place_order(
        self, command: PlaceOrderCommand
    ) -> Result[CheckoutReceipt, CheckoutError]:
        return flow(
            command,
            _validate_command,
            lash(_rejected),
            bind(self._checkout),
        )

    def _checkout(self, req: CheckoutRequest) -> Result[CheckoutReceipt, CheckoutError]:
        with bound_contextvars(idempotency_scope=req.scope.value):
            return self._find_replay(req).bind(
                lambda replayed: Success(replayed)
                if replayed is not None
                else self._place(req)
            )

    def _find_replay(
        self, req: CheckoutRequest
    ) -> Result[CheckoutReceipt | None, CheckoutError]:
        # replay without re-pricing
        if req.idempotency_key is None:
            return Success(None)
        return self.deps.orders.find_by_idempotency(
            req.scope.value, req.idempotency_key
        ).map(_replay_receipt)

    def _place(self, req: CheckoutRequest) -> Result[CheckoutReceipt, CheckoutError]:
        return flow(
            req,
            self._draft,
            lash(_rejected),
            bind(lambda draft: self._run_commit(req, draft)),
            map_(self._settle),
        )

    def _draft(self, req: CheckoutRequest) -> Result[OrderDraft, CheckoutError]:
        now = self.deps.clock()
        return price_cart(req.lines, self.deps.catalog).bind(
            lambda cart: evaluate_coupon(
                req.coupon_code, cart.subtotal, self.deps.coupons, now
            ).map(lambda coupon: self._assemble(req, cart, coupon, now))
        )

    def _assemble(
        self, req: CheckoutRequest, cart: PricedCart, coupon: CouponOutcome, now: datetime
    ) -> OrderDraft:
        shipping = self.deps.shipping.resolve(
            tuple(VendorShippingGroup(g.vendor, g.subtotal) for g in cart.groups),
            req.shipping_address,
            req.shipping_speed,
            coupon.freeship,
        )
        ctx = AssemblyContext(
            customer_id=req.customer_id,
            shipping_address=req.shipping_address,
            payment_method=req.payment_method,
            tax_rate=self.deps.tax_rate,
            default_commission_rate=self.deps.default_commission_rate,
            now=now,
            estimated_delivery_days=self.deps.estimated_delivery_days,
            idempotency_scope=req.scope.value,
            idempotency_key=req.idempotency_key,
        )
        return assemble_order(cart, coupon, shipping, ctx)

    def _run_commit(
        self, req: CheckoutRequest, draft: OrderDraft
    ) -> Result[CommitOutcome, CheckoutError]:
        return self.deps.uow.run(lambda tx: _commit(tx, draft)).lash(
            lambda err: self._on_commit_failure(req, err)
        )

    def _on_commit_failure(
        self, req: CheckoutRequest, err: CheckoutError
    ) -> Result[CommitOutcome, CheckoutError]:
        if isinstance(err, DuplicateIdempotencyKey) and req.idempotency_key is not None:
            # another attempt with the same key won the race
            return self.deps.orders.find_by_idempotency(
                req.scope.value, req.idempotency_key
            ).bind(
                lambda winner: Success(CommitOutcome(order=winner, replay=True))
                if winner is not None
                else Failure(err)
            )

        if isinstance(err, StockConflict):
            logger.warning("Stock conflict during commit", product_id=err.product_id)
        else:
            logger.warning("Commit aborted", error=type(err).__name__, reason=str(err))
        return Failure(err)

    def _settle(self, outcome: CommitOutcome) -> CheckoutReceipt:
        order = outcome.order
        if outcome.replay:
            logger.info(
                "Idempotent replay at commit", order_number=order.order_number.value
            )
        else:
            logger.info(
                "Order committed",
                order_number=order.order_number.value,
                total=str(order.total.amount),
                vendors=len(order.sub_orders),
            )
            self._notify_placed(order)
        return _to_receipt(order, replay=outcome.replay)

    def _notify_placed(self, order: Order) -> None:
        sent = self.deps.notifications.notify(
            OrderPlaced(
                order_number=order.order_number,
                vendor_ids=tuple(sub.vendor_id for sub in order.sub_orders),
                total=order.total,
            )
        )
        if isinstance(sent, Failure):
            logger.warning(
                "Order notification failed",
                order_number=order.order_number.value,
                reason=str(sent.failure()),
            )


# ---- commit ----------------------------------------------------------------


def _commit(tx: Transaction, draft: OrderDraft) -> Result[CommitOutcome, CheckoutError]:
    order = draft.order

    if order.idempotency_scope is not None and order.idempotency_key is not None:
        existing = tx.find_order_by_idempotency(
            order.idempotency_scope, order.idempotency_key
        )
        if isinstance(existing, Failure):
            return existing
        found = existing.unwrap()
        if found is not None:
            return Success(CommitOutcome(order=found, replay=True))

    return (
        tx.insert_order(order)
        .bind(lambda _: _decrement_stock(tx, order))
        .bind(lambda _: tx.insert_commissions(draft.commissions))
        .bind(lambda _: _use_coupon(tx, draft))
        .map(lambda _: CommitOutcome(order=order, replay=False))
    )


def _decrement_stock(tx: Transaction, order: Order) -> Result[None, CheckoutError]:
    # in validation order; lines for the same product serialize against each other
    for item in order.items:
        decremented = tx.conditional_decrement_stock(item.product_id, item.quantity)
        if isinstance(decremented, Failure):
            return decremented
        level = decremented.unwrap()
        if level is None:
            return Failure(
                StockConflict(
                    message=(
                        f"Insufficient stock while processing {item.name}. "
                        "Please refresh and try again."
                    ),
                    product_id=item.product_id.value,
                )
            )
        flagged = tx.set_stock_state(item.product_id, level.derived_state())
        if isinstance(flagged, Failure):
            return flagged
    return Success(None)


def _use_coupon(tx: Transaction, draft: OrderDraft) -> Result[None, CheckoutError]:
    if draft.coupon is None:
        return Success(None)
    return tx.increment_coupon_usage(draft.coupon.coupon_id)


# ---- pure helpers ----------------------------------------------------------

_ADDRESS_FIELDS = ("name", "email", "phone", "address", "city", "state", "zip_code", "country")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _validate_command(
    cmd: PlaceOrderCommand,
) -> Result[CheckoutRequest, CheckoutError]:
    if not cmd.lines:
        return Failure(ValidationError("at least one line item is required"))
    for i, ln in enumerate(cmd.lines):
        if not ln.product_id.strip():
            return Failure(ValidationError(f"lines[{i}].product_id is required"))
        if isinstance(ln.quantity, bool) or not isinstance(ln.quantity, int):
            return Failure(ValidationError(f"lines[{i}].quantity must be an integer"))
        if ln.quantity <= 0:
            return Failure(ValidationError(f"lines[{i}].quantity must be > 0"))

    if cmd.customer_id is not None and not cmd.customer_id.strip():
        return Failure(ValidationError("customer_id must be non-empty when provided"))

    a = cmd.shipping_address
    for name in _ADDRESS_FIELDS:
        if not getattr(a, name).strip():
            return Failure(ValidationError(f"shipping_address.{name} is required"))
    if not _EMAIL_RE.match(a.email.strip()):
        return Failure(
            ValidationError("shipping_address.email must be a valid email address")
        )

    try:
        payment_method = PaymentMethod.parse(cmd.payment_method)
    except ValueError:
        return Failure(
            ValidationError(f"payment_method '{cmd.payment_method}' is not supported")
        )

    try:
        speed = ShippingSpeed(cmd.shipping_speed.strip().lower())
    except ValueError:
        return Failure(
            ValidationError("shipping_speed must be one of: standard, express")
        )

    customer = CustomerId(cmd.customer_id.strip()) if cmd.customer_id else None
    address = ShippingAddress(**{name: getattr(a, name).strip() for name in _ADDRESS_FIELDS})
    return Success(
        CheckoutRequest(
            lines=tuple(cmd.lines),
            customer_id=customer,
            shipping_address=address,
            payment_method=payment_method,
            shipping_speed=speed,
            coupon_code=cmd.coupon_code,
            scope=IdempotencyScope.for_checkout(customer, address.email, address.phone),
            idempotency_key=normalize_idempotency_key(cmd.idempotency_key),
        )
    )


def _rejected(err: CheckoutError) -> Result[Any, CheckoutError]:
    logger.info("Checkout rejected", reason=str(err))
    return Failure(err)


def _replay_receipt(order: Order | None) -> CheckoutReceipt | None:
    if order is None:
        return None
    logger.info("Idempotent replay", order_number=order.order_number.value)
    return _to_receipt(order, replay=True)



def _to_receipt(order: Order, replay: bool) -> CheckoutReceipt:
    return CheckoutReceipt(
        order_id=order.order_id,
        order_number=order.order_number,
        total=order.total,
        tracking_code=order.tracking_code,
        replay=replay,
    )
