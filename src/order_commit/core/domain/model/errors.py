from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CheckoutError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


# ---- request shape ---------------------------------------------------------


@dataclass(frozen=True)
class ValidationError(CheckoutError):
    pass


# ---- catalog ---------------------------------------------------------------


@dataclass(frozen=True)
class CatalogError(CheckoutError):
    pass


@dataclass(frozen=True)
class ProductNotFound(CatalogError):
    product_id: str

    def __str__(self) -> str:
        return f"product_not_found: {self.product_id} ({self.message})"


@dataclass(frozen=True)
class VendorNotFound(CatalogError):
    vendor_id: str

    def __str__(self) -> str:
        return f"vendor_not_found: {self.vendor_id} ({self.message})"


@dataclass(frozen=True)
class OutOfStock(CatalogError):
    product_id: str

    def __str__(self) -> str:
        return f"out_of_stock: product={self.product_id} ({self.message})"


@dataclass(frozen=True)
class InsufficientStock(CatalogError):
    product_id: str
    requested: int
    available: int

    def __str__(self) -> str:
        return (
            f"insufficient_stock: product={self.product_id} "
            f"requested={self.requested} available={self.available} ({self.message})"
        )


# ---- coupons ---------------------------------------------------------------


@dataclass(frozen=True)
class CouponError(CheckoutError):
    code: str


@dataclass(frozen=True)
class InvalidCoupon(CouponError):
    pass


@dataclass(frozen=True)
class CouponExpired(InvalidCoupon):
    pass


@dataclass(frozen=True)
class CouponLimitReached(InvalidCoupon):
    pass


@dataclass(frozen=True)
class MinOrderNotMet(InvalidCoupon):
    pass


# ---- concurrency -----------------------------------------------------------


@dataclass(frozen=True)
class ConcurrencyError(CheckoutError):
    retryable = True


@dataclass(frozen=True)
class StockConflict(ConcurrencyError):
    product_id: str

    def __str__(self) -> str:
        return f"stock_conflict: product={self.product_id} ({self.message})"


@dataclass(frozen=True)
class TransactionTimeout(ConcurrencyError):
    pass


# ---- invariants ------------------------------------------------------------


@dataclass(frozen=True)
class InvariantViolation(CheckoutError):
    pass


@dataclass(frozen=True)
class InvalidTransition(InvariantViolation):
    current: str
    requested: str

    def __str__(self) -> str:
        return (
            f"invalid_transition: {self.current} -> {self.requested} ({self.message})"
        )


@dataclass(frozen=True)
class OrderNotCancellable(InvariantViolation):
    status: str

    def __str__(self) -> str:
        return f"order_not_cancellable: status={self.status} ({self.message})"


# ---- persistence -----------------------------------------------------------


@dataclass(frozen=True)
class PersistenceError(CheckoutError):
    pass


@dataclass(frozen=True)
class OrderNotFound(PersistenceError):
    order_number: str

    def __str__(self) -> str:
        return f"order_not_found: {self.order_number} ({self.message})"


@dataclass(frozen=True)
class SubOrderNotFound(PersistenceError):
    order_number: str
    vendor_id: str

    def __str__(self) -> str:
        return (
            f"sub_order_not_found: order={self.order_number} "
            f"vendor={self.vendor_id} ({self.message})"
        )


@dataclass(frozen=True)
class DuplicateIdempotencyKey(PersistenceError):
    """Raised by a store when the (scope, key) uniqueness constraint rejects a commit."""

    scope: str
    key: str


# ---- notifications ---------------------------------------------------------


@dataclass(frozen=True)
class NotificationError(CheckoutError):
    pass
