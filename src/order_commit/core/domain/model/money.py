from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

DEFAULT_CURRENCY = "INR"
_CENTS = Decimal("0.01")


def round_amount(value: Decimal | int | str) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, order=True)
class Money:
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    @staticmethod
    def of(amount: Decimal | int | str, currency: str = DEFAULT_CURRENCY) -> "Money":
        return Money(round_amount(amount), currency)

    @staticmethod
    def zero(currency: str = DEFAULT_CURRENCY) -> "Money":
        return Money.of(0, currency)

    def __add__(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money.of(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return Money.of(self.amount - other.amount, self.currency)

    def __mul__(self, n: int) -> "Money":
        return Money.of(self.amount * Decimal(n), self.currency)

    def percent(self, rate: Decimal) -> "Money":
        """`rate` percent of this amount, rounded to currency precision."""
        return Money.of(self.amount * Decimal(rate) / Decimal(100), self.currency)

    def min(self, other: "Money") -> "Money":
        self._assert_same_currency(other)
        return self if self.amount <= other.amount else other

    def is_zero(self) -> bool:
        return self.amount == 0

    def _assert_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise ValueError(f"currency_mismatch: {self.currency} vs {other.currency}")


def fold_money(values: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
    total = Money.zero(currency)
    for v in values:
        total = total + v
    return total
