from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

from returns.result import Failure, Result, Success

from order_commit.core.domain.model.catalog import (
    Product,
    ProductId,
    StockLevel,
    StockState,
    Vendor,
    VendorId,
)
from order_commit.core.domain.model.commission import CommissionRecord, CommissionStatus
from order_commit.core.domain.model.coupon import Coupon
from order_commit.core.domain.model.errors import (
    CheckoutError,
    DuplicateIdempotencyKey,
    OrderNotFound,
    PersistenceError,
    TransactionTimeout,
)
from order_commit.core.domain.model.order import Order, OrderId, OrderNumber
from order_commit.core.ports.outbound.unit_of_work import Transaction, UnitOfWork

T = TypeVar("T")


@dataclass
class InMemoryDatabase:
    """Process-local tables shared by every in-memory adapter.

    All reads and writes go through `lock`. Coupons are keyed by their
    upper-case code, orders by order number.
    """

    products: Dict[ProductId, Product] = field(default_factory=dict)
    vendors: Dict[VendorId, Vendor] = field(default_factory=dict)
    coupons: Dict[str, Coupon] = field(default_factory=dict)
    orders: Dict[str, Order] = field(default_factory=dict)
    commissions: Dict[OrderId, List[CommissionRecord]] = field(default_factory=dict)
    idempotency_index: Dict[Tuple[str, str], str] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)

    def add_vendor(self, vendor: Vendor) -> None:
        with self.lock:
            self.vendors[vendor.vendor_id] = vendor

    def add_product(self, product: Product) -> None:
        with self.lock:
            self.products[product.product_id] = product

    def add_coupon(self, coupon: Coupon) -> None:
        with self.lock:
            self.coupons[coupon.code] = coupon

    def live_orders(self) -> List[Order]:
        with self.lock:
            return [o for o in self.orders.values() if o.archived_at is None]


@dataclass
class InMemoryTransaction(Transaction):
    """Stages writes over an `InMemoryDatabase`; reads see staged values first.

    Only valid while the owning unit of work holds the database lock.
    """

    db: InMemoryDatabase
    _products: Dict[ProductId, Product] = field(default_factory=dict)
    _orders: Dict[str, Order] = field(default_factory=dict)
    _inserted: List[str] = field(default_factory=list)
    _commissions: Dict[OrderId, List[CommissionRecord]] = field(default_factory=dict)
    _coupon_uses: Dict[str, int] = field(default_factory=dict)

    def find_order_by_idempotency(
        self, scope: str, key: str
    ) -> Result[Order | None, CheckoutError]:
        for order in self._orders.values():
            if order.idempotency_scope == scope and order.idempotency_key == key:
                return Success(order)
        number = self.db.idempotency_index.get((scope, key))
        return Success(self.db.orders.get(number) if number is not None else None)

    def get_order(self, order_number: OrderNumber) -> Result[Order, CheckoutError]:
        order = self._orders.get(order_number.value) or self.db.orders.get(
            order_number.value
        )
        if order is None:
            return Failure(
                OrderNotFound(message="order not found", order_number=order_number.value)
            )
        return Success(order)

    def insert_order(self, order: Order) -> Result[None, CheckoutError]:
        number = order.order_number.value
        if number in self._orders or number in self.db.orders:
            return Failure(PersistenceError(message="order_number already exists"))
        self._orders[number] = order
        self._inserted.append(number)
        return Success(None)

    def update_order(self, order: Order) -> Result[None, CheckoutError]:
        number = order.order_number.value
        if number not in self._orders and number not in self.db.orders:
            return Failure(OrderNotFound(message="order not found", order_number=number))
        self._orders[number] = order
        return Success(None)

    def conditional_decrement_stock(
        self, product_id: ProductId, quantity: int
    ) -> Result[StockLevel | None, CheckoutError]:
        product = self._product(product_id)
        if product is None:
            return Success(None)
        if (
            product.stock_state is StockState.OUT_OF_STOCK
            or product.stock_quantity < quantity
        ):
            return Success(None)
        return Success(self._set_quantity(product, product.stock_quantity - quantity))

    def restore_stock(
        self, product_id: ProductId, quantity: int
    ) -> Result[StockLevel | None, CheckoutError]:
        product = self._product(product_id)
        if product is None:
            return Success(None)
        return Success(self._set_quantity(product, product.stock_quantity + quantity))

    def set_stock_state(
        self, product_id: ProductId, state: StockState
    ) -> Result[None, CheckoutError]:
        product = self._product(product_id)
        if product is not None:
            self._products[product_id] = replace(product, stock_state=state)
        return Success(None)

    def insert_commissions(
        self, records: Sequence[CommissionRecord]
    ) -> Result[None, CheckoutError]:
        for record in records:
            self._commissions.setdefault(record.order_id, []).append(record)
        return Success(None)

    def cancel_commissions(self, order_id: OrderId) -> Result[int, CheckoutError]:
        current = self._commissions.get(order_id, self.db.commissions.get(order_id, []))
        changed = 0
        updated: List[CommissionRecord] = []
        for record in current:
            if record.status is not CommissionStatus.CANCELLED:
                record = replace(record, status=CommissionStatus.CANCELLED)
                changed += 1
            updated.append(record)
        self._commissions[order_id] = updated
        return Success(changed)

    def increment_coupon_usage(self, coupon_id: str) -> Result[None, CheckoutError]:
        for coupon in self.db.coupons.values():
            if coupon.coupon_id == coupon_id:
                self._coupon_uses[coupon.code] = self._coupon_uses.get(coupon.code, 0) + 1
                return Success(None)
        return Failure(PersistenceError(message=f"coupon {coupon_id} not found"))

    def apply(self) -> Result[None, CheckoutError]:
        """Write staged changes into the database, all or nothing."""
        for number in self._inserted:
            order = self._orders[number]
            if order.idempotency_scope is None or order.idempotency_key is None:
                continue
            ident = (order.idempotency_scope, order.idempotency_key)
            owner = self.db.idempotency_index.get(ident)
            if owner is not None and owner != number:
                return Failure(
                    DuplicateIdempotencyKey(
                        message="idempotency key already used in this scope",
                        scope=ident[0],
                        key=ident[1],
                    )
                )

        self.db.products.update(self._products)
        self.db.orders.update(self._orders)
        for number in self._inserted:
            order = self._orders[number]
            if order.idempotency_scope is not None and order.idempotency_key is not None:
                self.db.idempotency_index[
                    (order.idempotency_scope, order.idempotency_key)
                ] = number
        self.db.commissions.update(self._commissions)
        for code, uses in self._coupon_uses.items():
            coupon = self.db.coupons[code]
            self.db.coupons[code] = replace(coupon, used_count=coupon.used_count + uses)
        return Success(None)

    def _product(self, product_id: ProductId) -> Product | None:
        return self._products.get(product_id) or self.db.products.get(product_id)

    def _set_quantity(self, product: Product, quantity: int) -> StockLevel:
        self._products[product.product_id] = replace(product, stock_quantity=quantity)
        return StockLevel(
            product_id=product.product_id,
            stock_quantity=quantity,
            low_stock_threshold=product.low_stock_threshold,
        )


@dataclass
class InMemoryUnitOfWork(UnitOfWork):
    db: InMemoryDatabase
    timeout: float = 10.0

    def run(
        self, work: Callable[[Transaction], Result[T, CheckoutError]]
    ) -> Result[T, CheckoutError]:
        if not self.db.lock.acquire(timeout=self.timeout):
            return Failure(
                TransactionTimeout(
                    message="Timed out waiting for the order store. Please try again."
                )
            )
        try:
            tx = InMemoryTransaction(self.db)
            result = work(tx)
            if isinstance(result, Failure):
                return result
            return tx.apply().bind(lambda _: result)
        finally:
            self.db.lock.release()
