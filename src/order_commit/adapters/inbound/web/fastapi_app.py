from __future__ import annotations

from typing import Any, Sequence

from fastapi import FastAPI, Header, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field
from returns.result import Success

from order_commit.core.domain.model.commission import CommissionRecord
from order_commit.core.domain.model.errors import (
    CatalogError,
    CheckoutError,
    ConcurrencyError,
    CouponError,
    DuplicateIdempotencyKey,
    InvariantViolation,
    NotificationError,
    OrderNotFound,
    ProductNotFound,
    SubOrderNotFound,
    TransactionTimeout,
    ValidationError,
    VendorNotFound,
)
from order_commit.core.domain.model.order import LineItem, Order
from order_commit.core.ports.inbound.get_order import GetOrderQuery, GetOrderUseCase
from order_commit.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from order_commit.core.ports.inbound.manage_order import (
    AdvanceSubOrderCommand,
    AdvanceSubOrderUseCase,
    CancelOrderCommand,
    CancelOrderUseCase,
    ReconcileStockCommand,
)
from order_commit.core.ports.inbound.place_order import (
    CheckoutLine,
    PlaceOrderCommand,
    PlaceOrderUseCase,
    ShippingAddressInput,
)
from order_commit.utils.logging import add_context, clear_context

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class CheckoutLineIn(BaseModel):
    product_id: str = Field(min_length=1, examples=["p-tee"])
    quantity: int = Field(gt=0, examples=[2])
    variant: dict[str, str | int | float | bool] = Field(
        default_factory=dict, examples=[{"size": "L", "gift_wrap": True}]
    )


class ShippingAddressIn(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1, examples=["IN"])


class CheckoutRequest(BaseModel):
    lines: list[CheckoutLineIn] = Field(min_length=1)
    shipping_address: ShippingAddressIn
    payment_method: str = Field(min_length=1, examples=["card"])
    coupon_code: str | None = Field(None, examples=["WELCOME20"])
    shipping_speed: str = Field("standard", examples=["standard", "express"])


class CheckoutReceiptResponse(BaseModel):
    order_id: str
    order_number: str
    total: str
    currency: str
    tracking_code: str
    replay: bool


class LineItemOut(BaseModel):
    product_id: str
    vendor_id: str
    name: str
    image: str
    unit_price: str
    quantity: int
    subtotal: str
    variant: dict[str, str]


class SubOrderOut(BaseModel):
    vendor_id: str
    vendor_name: str
    status: str
    subtotal: str
    shipping: str
    tax: str
    discount: str
    items: list[LineItemOut]


class OrderDetailsResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str | None
    status: str
    payment_method: str
    payment_status: str
    currency: str
    subtotal: str
    shipping_total: str
    tax_total: str
    discount_total: str
    total: str
    coupon_code: str | None
    tracking_code: str
    created_at: str
    estimated_delivery: str | None
    cancelled_at: str | None
    cancellation_reason: str | None
    delivered_at: str | None
    sub_orders: list[SubOrderOut]


class OrderSummaryOut(BaseModel):
    order_number: str
    customer_id: str | None
    status: str
    total: str
    currency: str
    created_at: str


class OrderListResponse(BaseModel):
    offset: int
    limit: int
    items: list[OrderSummaryOut]


class CommissionOut(BaseModel):
    vendor_id: str
    vendor_name: str
    subtotal: str
    commission_rate: str
    commission: str
    vendor_earnings: str
    status: str


class CommissionListResponse(BaseModel):
    order_number: str
    items: list[CommissionOut]


class AdvanceStatusRequest(BaseModel):
    status: str = Field(min_length=1, examples=["processing"])


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class ErrorResponse(BaseModel):
    type: str
    message: str
    retryable: bool = False
    details: list[dict[str, Any]] | None = None


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _map_error_to_http(err: CheckoutError) -> tuple[int, ErrorResponse]:
    body = ErrorResponse(
        type=type(err).__name__,
        message=err.message,
        retryable=isinstance(err, ConcurrencyError),
    )

    if isinstance(err, ValidationError):
        return 400, body

    if isinstance(err, (ProductNotFound, VendorNotFound)):
        return 404, body

    if isinstance(err, (CatalogError, CouponError)):
        return 400, body

    if isinstance(err, TransactionTimeout):
        return 503, body

    if isinstance(err, ConcurrencyError):
        return 409, body

    if isinstance(err, InvariantViolation):
        return 409, body

    if isinstance(err, (OrderNotFound, SubOrderNotFound)):
        return 404, body

    if isinstance(err, DuplicateIdempotencyKey):
        return 409, body

    if isinstance(err, NotificationError):
        return 503, body

    return 500, body


def _error_response(err: CheckoutError) -> JSONResponse:
    status, body = _map_error_to_http(err)
    return JSONResponse(status_code=status, content=body.model_dump())


def _item_out(item: LineItem) -> LineItemOut:
    return LineItemOut(
        product_id=item.product_id.value,
        vendor_id=item.vendor_id.value,
        name=item.name,
        image=item.image,
        unit_price=str(item.unit_price.amount),
        quantity=item.quantity,
        subtotal=str(item.subtotal().amount),
        variant=item.variant.as_dict(),
    )


def _order_out(order: Order) -> OrderDetailsResponse:
    return OrderDetailsResponse(
        order_id=str(order.order_id.value),
        order_number=order.order_number.value,
        customer_id=order.customer_id.value if order.customer_id else None,
        status=order.status.value,
        payment_method=order.payment_method.value,
        payment_status=order.payment_status.value,
        currency=order.total.currency,
        subtotal=str(order.subtotal.amount),
        shipping_total=str(order.shipping_total.amount),
        tax_total=str(order.tax_total.amount),
        discount_total=str(order.discount_total.amount),
        total=str(order.total.amount),
        coupon_code=order.coupon_code,
        tracking_code=order.tracking_code.value,
        created_at=order.created_at.isoformat(),
        estimated_delivery=(
            order.estimated_delivery.isoformat() if order.estimated_delivery else None
        ),
        cancelled_at=order.cancelled_at.isoformat() if order.cancelled_at else None,
        cancellation_reason=order.cancellation_reason,
        delivered_at=order.delivered_at.isoformat() if order.delivered_at else None,
        sub_orders=[
            SubOrderOut(
                vendor_id=sub.vendor_id.value,
                vendor_name=sub.vendor_name,
                status=sub.status.value,
                subtotal=str(sub.subtotal.amount),
                shipping=str(sub.shipping.amount),
                tax=str(sub.tax.amount),
                discount=str(sub.discount.amount),
                items=[_item_out(i) for i in sub.items],
            )
            for sub in order.sub_orders
        ],
    )


def _commissions_out(
    order_number: str, records: Sequence[CommissionRecord]
) -> CommissionListResponse:
    return CommissionListResponse(
        order_number=order_number,
        items=[
            CommissionOut(
                vendor_id=r.vendor_id.value,
                vendor_name=r.vendor_name,
                subtotal=str(r.subtotal.amount),
                commission_rate=str(r.commission_rate),
                commission=str(r.commission.amount),
                vendor_earnings=str(r.vendor_earnings.amount),
                status=r.status.value,
            )
            for r in records
        ],
    )


def _first_key(*candidates: str | None) -> str | None:
    for candidate in candidates:
        if candidate is not None and candidate.strip():
            return candidate
    return None


def create_app(
    place_order_uc: PlaceOrderUseCase,
    get_order_uc: GetOrderUseCase,
    list_orders_uc: ListOrdersUseCase,
    advance_uc: AdvanceSubOrderUseCase,
    cancel_uc: CancelOrderUseCase,
) -> FastAPI:
    app = FastAPI(title="order_commit")

    # --- middleware / exception handlers -------------------------------------

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next: Any) -> Any:
        clear_context()
        add_context(method=request.method, path=request.url.path)
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="RequestValidationError",
            message="invalid request",
            details=[
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
                for e in exc.errors()
            ],
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(status_code=500, content=body.model_dump())

    # --- routes --------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/orders",
        response_model=CheckoutReceiptResponse,
        status_code=201,
        responses={200: {"model": CheckoutReceiptResponse}, **_ERROR_RESPONSES},
    )
    def place_order(
        req: CheckoutRequest,
        response: Response,
        idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
        x_idempotency_key: str | None = Header(None, alias="X-Idempotency-Key"),
        customer_id: str | None = Header(None, alias="X-Customer-Id"),
    ) -> Any:
        addr = req.shipping_address
        cmd = PlaceOrderCommand(
            lines=tuple(
                CheckoutLine(
                    product_id=ln.product_id, quantity=ln.quantity, variant=ln.variant
                )
                for ln in req.lines
            ),
            shipping_address=ShippingAddressInput(**addr.model_dump()),
            payment_method=req.payment_method,
            customer_id=customer_id,
            coupon_code=req.coupon_code,
            shipping_speed=req.shipping_speed,
            idempotency_key=_first_key(idempotency_key, x_idempotency_key),
        )

        result = place_order_uc.place_order(cmd)

        if isinstance(result, Success):
            receipt = result.unwrap()
            number = receipt.order_number.value
            response.headers["Location"] = f"/orders/{number}"
            if receipt.replay:
                response.status_code = 200
            return CheckoutReceiptResponse(
                order_id=str(receipt.order_id.value),
                order_number=number,
                total=str(receipt.total.amount),
                currency=receipt.total.currency,
                tracking_code=receipt.tracking_code.value,
                replay=receipt.replay,
            )

        return _error_response(result.failure())

    @app.get("/orders", response_model=OrderListResponse, responses=_ERROR_RESPONSES)
    def list_orders(
        offset: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=100),
        customer_id: str | None = Query(None, min_length=1),
        sort_by: str = Query("created_at"),
        sort_dir: str = Query("desc"),
    ) -> Any:
        result = list_orders_uc.list_orders(
            ListOrdersQuery(
                offset=offset,
                limit=limit,
                customer_id=customer_id,
                sort_by=sort_by,
                sort_dir=sort_dir,
            )
        )

        if isinstance(result, Success):
            return OrderListResponse(
                offset=offset,
                limit=limit,
                items=[
                    OrderSummaryOut(
                        order_number=v.order_number.value,
                        customer_id=v.customer_id.value if v.customer_id else None,
                        status=v.status.value,
                        total=str(v.total.amount),
                        currency=v.total.currency,
                        created_at=v.created_at.isoformat(),
                    )
                    for v in result.unwrap()
                ],
            )

        return _error_response(result.failure())

    @app.get(
        "/orders/{order_number}",
        response_model=OrderDetailsResponse,
        responses=_ERROR_RESPONSES,
    )
    def get_order(order_number: str) -> Any:
        result = get_order_uc.get_order(GetOrderQuery(order_number=order_number))
        if isinstance(result, Success):
            return _order_out(result.unwrap())
        return _error_response(result.failure())

    @app.get(
        "/orders/{order_number}/commissions",
        response_model=CommissionListResponse,
        responses=_ERROR_RESPONSES,
    )
    def list_commissions(order_number: str) -> Any:
        result = get_order_uc.list_commissions(GetOrderQuery(order_number=order_number))
        if isinstance(result, Success):
            return _commissions_out(order_number, result.unwrap())
        return _error_response(result.failure())

    @app.patch(
        "/orders/{order_number}/vendors/{vendor_id}/status",
        response_model=OrderDetailsResponse,
        responses=_ERROR_RESPONSES,
    )
    def advance_sub_order(
        order_number: str, vendor_id: str, req: AdvanceStatusRequest
    ) -> Any:
        result = advance_uc.advance_sub_order_status(
            AdvanceSubOrderCommand(
                order_number=order_number, vendor_id=vendor_id, status=req.status
            )
        )
        if isinstance(result, Success):
            return _order_out(result.unwrap())
        return _error_response(result.failure())

    @app.post(
        "/orders/{order_number}/cancel",
        response_model=OrderDetailsResponse,
        responses=_ERROR_RESPONSES,
    )
    def cancel_order(
        order_number: str,
        req: CancelOrderRequest | None = None,
        customer_id: str | None = Header(None, alias="X-Customer-Id"),
    ) -> Any:
        result = cancel_uc.cancel_order(
            CancelOrderCommand(
                order_number=order_number,
                reason=req.reason if req else None,
                customer_id=customer_id,
            )
        )
        if isinstance(result, Success):
            return _order_out(result.unwrap())
        return _error_response(result.failure())

    @app.post(
        "/orders/{order_number}/reconcile-stock",
        response_model=OrderDetailsResponse,
        responses=_ERROR_RESPONSES,
    )
    def reconcile_stock(order_number: str) -> Any:
        result = cancel_uc.reconcile_stock_for_cancelled_order(
            ReconcileStockCommand(order_number=order_number)
        )
        if isinstance(result, Success):
            return _order_out(result.unwrap())
        return _error_response(result.failure())

    return app
