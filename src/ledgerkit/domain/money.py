"""Exact monetary amounts.

Amounts are held as ``fractions.Fraction`` so that sums, conversions and
balances are never rounded. Rounding to a commodity's smallest fraction only
happens when an amount is rendered for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from functools import total_ordering
from typing import TYPE_CHECKING, Union

from ledgerkit.domain.errors import CurrencyMismatchError, ValidationError, currency_mismatch

if TYPE_CHECKING:
    from ledgerkit.domain.entities import Commodity

AmountLike = Union[Fraction, Decimal, int, str]


def to_fraction(value: AmountLike) -> Fraction:
    """Convert a value to an exact Fraction.

    Floats are rejected because they cannot represent most decimal amounts.

    Raises:
        ValidationError: If the value is a float or cannot be parsed
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, (bool, float)):
        raise ValidationError(f"Cannot use {type(value).__name__} {value!r} as an exact amount")
    try:
        return Fraction(value)
    except (ValueError, TypeError, ZeroDivisionError) as e:
        raise ValidationError(f"Invalid amount {value!r}: {e}") from e


@total_ordering
@dataclass(frozen=True, eq=False)
class Money:
    """An exact amount of a single commodity."""

    amount: Fraction
    commodity: Commodity

    def __post_init__(self):
        object.__setattr__(self, "amount", to_fraction(self.amount))

    @classmethod
    def zero(cls, commodity: Commodity) -> Money:
        return cls(Fraction(0), commodity)

    @classmethod
    def from_parts(cls, numerator: int, denominator: int, commodity: Commodity) -> Money:
        """Build an amount from a stored numerator/denominator pair."""
        if denominator == 0:
            raise ValidationError("Amount denominator cannot be zero")
        return cls(Fraction(numerator, denominator), commodity)

    @property
    def numerator(self) -> int:
        return self.amount.numerator

    @property
    def denominator(self) -> int:
        return self.amount.denominator

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def _check_commodity(self, other: Money) -> None:
        if self.commodity.uid != other.commodity.uid:
            raise CurrencyMismatchError(
                currency_mismatch(self.commodity.mnemonic, other.commodity.mnemonic)
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_commodity(other)
        return Money(self.amount + other.amount, self.commodity)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_commodity(other)
        return Money(self.amount - other.amount, self.commodity)

    def __mul__(self, factor: AmountLike) -> Money:
        if isinstance(factor, Money):
            return NotImplemented
        return Money(self.amount * to_fraction(factor), self.commodity)

    __rmul__ = __mul__

    def __neg__(self) -> Money:
        return Money(-self.amount, self.commodity)

    def __abs__(self) -> Money:
        return Money(abs(self.amount), self.commodity)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount == other.amount and self.commodity.uid == other.commodity.uid

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_commodity(other)
        return self.amount < other.amount

    def __hash__(self) -> int:
        return hash((self.amount, self.commodity.uid))

    def convert(self, rate: Fraction, target: Commodity) -> Money:
        """Convert to another commodity at an exact rate."""
        return Money(self.amount * rate, target)

    def to_decimal(self) -> Decimal:
        """Round half-even to the commodity's smallest fraction."""
        fraction = self.commodity.smallest_fraction
        units = round(self.amount * fraction)
        value = Decimal(units) / Decimal(fraction)
        return value.quantize(Decimal(1).scaleb(-self.commodity.smallest_fraction_digits))

    def __str__(self) -> str:
        return f"{self.to_decimal()} {self.commodity.mnemonic}"

    def formatted(self) -> str:
        """Render with the commodity symbol, e.g. ``$1,234.50``."""
        value = self.to_decimal()
        sign = "-" if value < 0 else ""
        return f"{sign}{self.commodity.symbol}{abs(value):,}"
