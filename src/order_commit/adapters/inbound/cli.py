from __future__ import annotations

import json
from typing import Any

from returns.result import Success

from order_commit.core.ports.inbound.place_order import (
    CheckoutLine,
    PlaceOrderCommand,
    PlaceOrderUseCase,
    ShippingAddressInput,
)

_ADDRESS_FIELDS = ("name", "email", "phone", "address", "city", "state", "zip_code", "country")


def run_cli(usecase: PlaceOrderUseCase, raw: str) -> int:
    """
    raw: JSON string.
    Example:
      {"customer_id":"c-1","payment_method":"card",
       "shipping_address":{"name":"Asha","email":"asha@example.com",
         "phone":"9876543210","address":"12 MG Road","city":"Bengaluru",
         "state":"KA","zip_code":"560001","country":"IN"},
       "lines":[{"product_id":"p-tee","quantity":2,"variant":{"size":"L"}}]}
    """
    try:
        payload = json.loads(raw)
        cmd = _parse_command(payload)
    except (ValueError, KeyError, TypeError) as e:
        print(f"invalid_input: {e}")
        return 2

    result = usecase.place_order(cmd)

    if isinstance(result, Success):
        receipt = result.unwrap()
        print(
            "[replay]" if receipt.replay else "[ok]",
            json.dumps(
                {
                    "order_id": str(receipt.order_id.value),
                    "order_number": receipt.order_number.value,
                    "total": str(receipt.total.amount),
                    "currency": receipt.total.currency,
                    "tracking_code": receipt.tracking_code.value,
                }
            ),
        )
        return 0

    err = result.failure()
    print("[ng]", str(err))
    return 1


def _parse_command(payload: dict[str, Any]) -> PlaceOrderCommand:
    if not isinstance(payload, dict):
        raise ValueError("payload must be a JSON object")
    lines = [
        CheckoutLine(
            product_id=str(x["product_id"]),
            quantity=int(x["quantity"]),
            variant={str(k): str(v) for k, v in (x.get("variant") or {}).items()},
        )
        for x in payload.get("lines", [])
    ]
    address = payload.get("shipping_address") or {}
    customer_id = payload.get("customer_id")
    return PlaceOrderCommand(
        lines=lines,
        shipping_address=ShippingAddressInput(
            **{f: str(address.get(f, "")) for f in _ADDRESS_FIELDS}
        ),
        payment_method=str(payload.get("payment_method", "")),
        customer_id=str(customer_id) if customer_id is not None else None,
        coupon_code=payload.get("coupon_code"),
        shipping_speed=str(payload.get("shipping_speed", "standard")),
        idempotency_key=payload.get("idempotency_key"),
    )
