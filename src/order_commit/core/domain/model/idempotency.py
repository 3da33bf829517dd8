from __future__ import annotations

import re
from dataclasses import dataclass

from order_commit.core.domain.model.order import CustomerId

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class IdempotencyScope:
    """Identity boundary within which an idempotency key must be unique.

    Authenticated customers are scoped by id. Guests are scoped by their
    normalized email, else the last ten digits of their phone, else a shared
    anonymous marker.
    """

    value: str

    @staticmethod
    def for_checkout(
        customer_id: CustomerId | None, email: str = "", phone: str = ""
    ) -> "IdempotencyScope":
        if customer_id is not None:
            return IdempotencyScope(f"user:{customer_id.value}")
        normalized_email = email.strip().lower()
        normalized_phone = _NON_DIGITS.sub("", phone)[-10:]
        return IdempotencyScope(
            f"guest:{normalized_email or normalized_phone or 'anonymous'}"
        )


def normalize_idempotency_key(raw: str | None) -> str | None:
    if raw is None:
        return None
    key = raw.strip()
    return key or None
