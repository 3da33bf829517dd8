from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from returns.result import Failure, Result, Success
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from order_commit.adapters.outbound.sql.mapping import (
    commission_from_row,
    coupon_from_row,
    coupon_to_row,
    order_from_row,
    product_from_row,
    product_to_row,
    vendor_from_row,
    vendor_to_row,
)
from order_commit.adapters.outbound.sql.tables import (
    CommissionRow,
    CouponRow,
    OrderRow,
    ProductRow,
    ShippingZoneRow,
    VendorRow,
)
from order_commit.core.domain.model.catalog import Product, ProductId, Vendor, VendorId
from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.coupon import Coupon, normalize_coupon_code
from order_commit.core.domain.model.errors import (
    CheckoutError,
    OrderNotFound,
    ProductNotFound,
    VendorNotFound,
)
from order_commit.core.domain.model.money import DEFAULT_CURRENCY
from order_commit.core.domain.model.order import CustomerId, Order, OrderId, OrderNumber
from order_commit.core.ports.outbound.catalog import CatalogStore
from order_commit.core.ports.outbound.coupons import CouponStore
from order_commit.core.ports.outbound.orders import CommissionLedger, OrderRepository


def order_query():
    return select(OrderRow).options(
        selectinload(OrderRow.sub_orders), selectinload(OrderRow.items)
    )


@dataclass
class SqlCatalogStore(CatalogStore):
    session_factory: sessionmaker[Session]
    currency: str = DEFAULT_CURRENCY

    def get_product(self, product_id: ProductId) -> Result[Product, CheckoutError]:
        with self.session_factory() as session:
            row = session.get(ProductRow, product_id.value)
            if row is None:
                return Failure(
                    ProductNotFound(
                        message=f"Product {product_id.value} not found.",
                        product_id=product_id.value,
                    )
                )
            return Success(product_from_row(row))

    def get_vendor(self, vendor_id: VendorId) -> Result[Vendor, CheckoutError]:
        stmt = (
            select(VendorRow)
            .where(VendorRow.id == vendor_id.value)
            .options(selectinload(VendorRow.zones).selectinload(ShippingZoneRow.rates))
        )
        with self.session_factory() as session:
            row = session.scalars(stmt).one_or_none()
            if row is None:
                return Failure(
                    VendorNotFound(
                        message=f"Vendor {vendor_id.value} not found.",
                        vendor_id=vendor_id.value,
                    )
                )
            return Success(vendor_from_row(row, self.currency))


@dataclass
class SqlCouponStore(CouponStore):
    session_factory: sessionmaker[Session]
    currency: str = DEFAULT_CURRENCY

    def find_active_coupon(self, code: str) -> Result[Coupon | None, CheckoutError]:
        stmt = select(CouponRow).where(
            CouponRow.code == normalize_coupon_code(code), CouponRow.is_active.is_(True)
        )
        with self.session_factory() as session:
            row = session.scalars(stmt).one_or_none()
            return Success(coupon_from_row(row, self.currency) if row else None)


@dataclass
class SqlOrderRepository(OrderRepository):
    session_factory: sessionmaker[Session]

    def get(self, order_number: OrderNumber) -> Result[Order, CheckoutError]:
        stmt = order_query().where(OrderRow.order_number == order_number.value)
        with self.session_factory() as session:
            row = session.scalars(stmt).one_or_none()
            if row is None:
                return Failure(
                    OrderNotFound(
                        message="order not found", order_number=order_number.value
                    )
                )
            return Success(order_from_row(row))

    def find_by_idempotency(
        self, scope: str, key: str
    ) -> Result[Order | None, CheckoutError]:
        stmt = order_query().where(
            OrderRow.idempotency_scope == scope, OrderRow.idempotency_key == key
        )
        with self.session_factory() as session:
            row = session.scalars(stmt).one_or_none()
            return Success(order_from_row(row) if row else None)

    def list(
        self,
        offset: int,
        limit: int,
        customer_id: CustomerId | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> Result[Sequence[Order], CheckoutError]:
        column = OrderRow.total if sort_by == "total" else OrderRow.created_at
        ordering = column.desc() if sort_dir == "desc" else column.asc()

        stmt = order_query().where(OrderRow.archived_at.is_(None))
        if customer_id is not None:
            stmt = stmt.where(OrderRow.customer_id == customer_id.value)
        stmt = stmt.order_by(ordering, OrderRow.order_number).offset(offset).limit(limit)

        with self.session_factory() as session:
            return Success(tuple(order_from_row(r) for r in session.scalars(stmt)))


@dataclass
class SqlCommissionLedger(CommissionLedger):
    session_factory: sessionmaker[Session]

    def for_order(
        self, order_id: OrderId
    ) -> Result[Sequence[CommissionRecord], CheckoutError]:
        stmt = (
            select(CommissionRow, OrderRow.currency)
            .join(OrderRow, OrderRow.id == CommissionRow.order_id)
            .where(CommissionRow.order_id == str(order_id.value))
            .order_by(CommissionRow.id)
        )
        with self.session_factory() as session:
            return Success(
                tuple(
                    commission_from_row(row, currency)
                    for row, currency in session.execute(stmt)
                )
            )


def seed_catalog(
    session_factory: sessionmaker[Session],
    vendors: Iterable[Vendor],
    products: Iterable[Product],
    coupons: Iterable[Coupon] = (),
) -> None:
    with session_factory.begin() as session:
        session.add_all(vendor_to_row(v) for v in vendors)
        session.flush()
        session.add_all(product_to_row(p) for p in products)
        session.add_all(coupon_to_row(c) for c in coupons)
