from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

import structlog
from returns.result import Failure, Result, Success
from sqlalchemy import create_engine, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from order_commit.adapters.outbound.sql.mapping import (
    apply_order_changes,
    commission_to_row,
    order_from_row,
    order_to_row,
)
from order_commit.adapters.outbound.sql.stores import order_query
from order_commit.adapters.outbound.sql.tables import (
    IDEMPOTENCY_CONSTRAINT,
    Base,
    CommissionRow,
    CouponRow,
    OrderRow,
    ProductRow,
)
from order_commit.core.domain.model.catalog import ProductId, StockLevel, StockState
from order_commit.core.domain.model.commission import CommissionRecord, CommissionStatus
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

logger = structlog.get_logger(__name__)


def build_engine(url: str, timeout: float = 10.0) -> Engine:
    """Create an engine; SQLite gets a busy timeout and thread sharing."""
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {
            "connect_args": {"check_same_thread": False, "timeout": timeout}
        }
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def session_factory_for(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)


@dataclass
class SqlTransaction(Transaction):
    session: Session

    def find_order_by_idempotency(
        self, scope: str, key: str
    ) -> Result[Order | None, CheckoutError]:
        stmt = order_query().where(
            OrderRow.idempotency_scope == scope, OrderRow.idempotency_key == key
        )
        row = self.session.scalars(stmt).one_or_none()
        return Success(order_from_row(row) if row else None)

    def get_order(self, order_number: OrderNumber) -> Result[Order, CheckoutError]:
        row = self._order_row(order_number.value)
        if row is None:
            return Failure(
                OrderNotFound(message="order not found", order_number=order_number.value)
            )
        return Success(order_from_row(row))

    def insert_order(self, order: Order) -> Result[None, CheckoutError]:
        self.session.add(order_to_row(order))
        try:
            self.session.flush()
        except IntegrityError as exc:
            return Failure(_integrity_failure(exc, order.idempotency_scope, order.idempotency_key))
        return Success(None)

    def update_order(self, order: Order) -> Result[None, CheckoutError]:
        row = self._order_row(order.order_number.value)
        if row is None:
            return Failure(
                OrderNotFound(
                    message="order not found", order_number=order.order_number.value
                )
            )
        apply_order_changes(row, order)
        self.session.flush()
        return Success(None)

    def conditional_decrement_stock(
        self, product_id: ProductId, quantity: int
    ) -> Result[StockLevel | None, CheckoutError]:
        stmt = (
            update(ProductRow)
            .where(
                ProductRow.id == product_id.value,
                ProductRow.stock_quantity >= quantity,
                ProductRow.stock_state != StockState.OUT_OF_STOCK.value,
            )
            .values(stock_quantity=ProductRow.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 0:
            return Success(None)
        return Success(self._stock_level(product_id))

    def restore_stock(
        self, product_id: ProductId, quantity: int
    ) -> Result[StockLevel | None, CheckoutError]:
        stmt = (
            update(ProductRow)
            .where(ProductRow.id == product_id.value)
            .values(stock_quantity=ProductRow.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 0:
            return Success(None)
        return Success(self._stock_level(product_id))

    def set_stock_state(
        self, product_id: ProductId, state: StockState
    ) -> Result[None, CheckoutError]:
        self.session.execute(
            update(ProductRow)
            .where(ProductRow.id == product_id.value)
            .values(stock_state=state.value)
            .execution_options(synchronize_session=False)
        )
        return Success(None)

    def insert_commissions(
        self, records: Sequence[CommissionRecord]
    ) -> Result[None, CheckoutError]:
        self.session.add_all([commission_to_row(r) for r in records])
        self.session.flush()
        return Success(None)

    def cancel_commissions(self, order_id: OrderId) -> Result[int, CheckoutError]:
        result = self.session.execute(
            update(CommissionRow)
            .where(
                CommissionRow.order_id == str(order_id.value),
                CommissionRow.status != CommissionStatus.CANCELLED.value,
            )
            .values(status=CommissionStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        return Success(result.rowcount)

    def increment_coupon_usage(self, coupon_id: str) -> Result[None, CheckoutError]:
        result = self.session.execute(
            update(CouponRow)
            .where(CouponRow.id == coupon_id)
            .values(used_count=CouponRow.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return Failure(PersistenceError(message=f"coupon {coupon_id} not found"))
        return Success(None)

    def _order_row(self, order_number: str) -> OrderRow | None:
        stmt = order_query().where(OrderRow.order_number == order_number)
        return self.session.scalars(stmt).one_or_none()

    def _stock_level(self, product_id: ProductId) -> StockLevel | None:
        row = self.session.execute(
            select(ProductRow.stock_quantity, ProductRow.low_stock_threshold).where(
                ProductRow.id == product_id.value
            )
        ).one_or_none()
        if row is None:
            return None
        return StockLevel(
            product_id=product_id,
            stock_quantity=row.stock_quantity,
            low_stock_threshold=row.low_stock_threshold,
        )


class _Rollback(Exception):
    def __init__(self, result: Result[Any, CheckoutError]) -> None:
        super().__init__("rollback")
        self.result = result


@dataclass
class SqlUnitOfWork(UnitOfWork):
    session_factory: sessionmaker[Session]

    def run(
        self, work: Callable[[Transaction], Result[T, CheckoutError]]
    ) -> Result[T, CheckoutError]:
        try:
            with self.session_factory() as session, session.begin():
                result = work(SqlTransaction(session))
                if isinstance(result, Failure):
                    raise _Rollback(result)
        except _Rollback as rb:
            return rb.result
        except IntegrityError as exc:
            return Failure(_integrity_failure(exc, None, None))
        except OperationalError as exc:
            if "locked" in str(exc.orig).lower():
                logger.warning("Database busy", error=str(exc.orig))
                return Failure(
                    TransactionTimeout(
                        message="Timed out waiting for the order store. Please try again."
                    )
                )
            raise
        return result


def _integrity_failure(
    exc: IntegrityError, scope: str | None, key: str | None
) -> CheckoutError:
    text = str(exc.orig)
    # SQLite reports column names, other backends the constraint name
    if IDEMPOTENCY_CONSTRAINT in text or "idempotency_key" in text:
        return DuplicateIdempotencyKey(
            message="idempotency key already used in this scope",
            scope=scope or "",
            key=key or "",
        )
    logger.error("Integrity error", error=text)
    return PersistenceError(message="order could not be stored")
