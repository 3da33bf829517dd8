from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

import structlog

from order_commit.adapters.outbound.demo_data import CatalogSeed, demo_catalog
from order_commit.adapters.outbound.in_memory_catalog import InMemoryCatalogStore
from order_commit.adapters.outbound.in_memory_coupons import InMemoryCouponStore
from order_commit.adapters.outbound.in_memory_orders import (
    InMemoryCommissionLedger,
    InMemoryOrderRepository,
)
from order_commit.adapters.outbound.in_memory_store import (
    InMemoryDatabase,
    InMemoryUnitOfWork,
)
from order_commit.adapters.outbound.logging_notifications import (
    LoggingNotificationSink,
)
from order_commit.adapters.outbound.sql.stores import (
    SqlCatalogStore,
    SqlCommissionLedger,
    SqlCouponStore,
    SqlOrderRepository,
    seed_catalog,
)
from order_commit.adapters.outbound.sql.unit_of_work import (
    SqlUnitOfWork,
    build_engine,
    create_schema,
    session_factory_for,
)
from order_commit.config import Settings
from order_commit.core.domain.model.money import Money
from order_commit.core.domain.model.order import now_utc
from order_commit.core.domain.service.get_order_service import (
    GetOrderDeps,
    GetOrderService,
)
from order_commit.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from order_commit.core.domain.service.order_management_service import (
    OrderManagementDeps,
    OrderManagementService,
)
from order_commit.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)
from order_commit.core.domain.service.shipping_rates import VendorZoneShippingResolver
from order_commit.core.ports.outbound.catalog import CatalogStore
from order_commit.core.ports.outbound.coupons import CouponStore
from order_commit.core.ports.outbound.notifications import NotificationSink
from order_commit.core.ports.outbound.orders import CommissionLedger, OrderRepository
from order_commit.core.ports.outbound.unit_of_work import UnitOfWork

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Stores:
    catalog: CatalogStore
    coupons: CouponStore
    orders: OrderRepository
    commissions: CommissionLedger
    uow: UnitOfWork


@dataclass(frozen=True)
class UseCases:
    place_order: PlaceOrderService
    get_order: GetOrderService
    list_orders: ListOrdersService
    manage_order: OrderManagementService


def in_memory_stores(db: InMemoryDatabase, timeout: float = 10.0) -> Stores:
    return Stores(
        catalog=InMemoryCatalogStore(db),
        coupons=InMemoryCouponStore(db),
        orders=InMemoryOrderRepository(db),
        commissions=InMemoryCommissionLedger(db),
        uow=InMemoryUnitOfWork(db, timeout=timeout),
    )


def sql_stores(
    url: str, timeout: float = 10.0, seed: CatalogSeed | None = None
) -> Stores:
    engine = build_engine(url, timeout=timeout)
    create_schema(engine)
    sessions = session_factory_for(engine)
    if seed is not None:
        seed_catalog(sessions, seed.vendors, seed.products, seed.coupons)
    return Stores(
        catalog=SqlCatalogStore(sessions),
        coupons=SqlCouponStore(sessions),
        orders=SqlOrderRepository(sessions),
        commissions=SqlCommissionLedger(sessions),
        uow=SqlUnitOfWork(sessions),
    )


def seeded_database(seed: CatalogSeed) -> InMemoryDatabase:
    db = InMemoryDatabase()
    for vendor in seed.vendors:
        db.add_vendor(vendor)
    for product in seed.products:
        db.add_product(product)
    for coupon in seed.coupons:
        db.add_coupon(coupon)
    return db


def build_stores(settings: Settings) -> Stores:
    seed = demo_catalog() if settings.seed_demo_data else None
    if settings.database_url:
        logger.info("Using SQL order store", seed=settings.seed_demo_data)
        return sql_stores(
            settings.database_url,
            timeout=settings.transaction_timeout,
            seed=seed,
        )
    logger.info("Using in-memory order store", seed=settings.seed_demo_data)
    db = seeded_database(seed) if seed is not None else InMemoryDatabase()
    return in_memory_stores(db, timeout=settings.transaction_timeout)


def build_usecases(
    settings: Settings,
    stores: Stores | None = None,
    notifications: NotificationSink | None = None,
    clock: Callable[[], datetime] = now_utc,
) -> UseCases:
    stores = stores or build_stores(settings)
    sink = notifications or LoggingNotificationSink()

    place_order = PlaceOrderService(
        PlaceOrderDeps(
            catalog=stores.catalog,
            coupons=stores.coupons,
            orders=stores.orders,
            shipping=VendorZoneShippingResolver(
                fallback_standard=Money.of(settings.fallback_standard_shipping),
                fallback_express=Money.of(settings.fallback_express_shipping),
            ),
            uow=stores.uow,
            notifications=sink,
            tax_rate=settings.tax_rate,
            default_commission_rate=settings.default_commission_rate,
            estimated_delivery_days=settings.estimated_delivery_days,
            clock=clock,
        )
    )
    get_order = GetOrderService(
        GetOrderDeps(orders=stores.orders, commissions=stores.commissions)
    )
    list_orders = ListOrdersService(ListOrdersDeps(orders=stores.orders))
    manage_order = OrderManagementService(
        OrderManagementDeps(uow=stores.uow, notifications=sink, clock=clock)
    )

    return UseCases(
        place_order=place_order,
        get_order=get_order,
        list_orders=list_orders,
        manage_order=manage_order,
    )
