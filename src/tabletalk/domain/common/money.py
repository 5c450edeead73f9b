from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    amount_cents: int

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")

    @classmethod
    def zero(cls) -> Money:
        return cls(amount_cents=0)

    @classmethod
    def from_decimal(cls, amount: Decimal | str) -> Money:
        quantized = Decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)
        return cls(amount_cents=int(quantized * 100))

    def as_decimal(self) -> Decimal:
        return (Decimal(self.amount_cents) / 100).quantize(_CENT)

    def __add__(self, other: Money) -> Money:
        return Money(amount_cents=self.amount_cents + other.amount_cents)

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity)
