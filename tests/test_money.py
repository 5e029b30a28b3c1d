"""Tests for exact monetary amounts."""

from decimal import Decimal
from fractions import Fraction

import pytest

from ledgerkit.domain.entities import Commodity
from ledgerkit.domain.errors import CurrencyMismatchError, ValidationError
from ledgerkit.domain.money import Money, to_fraction

USD = Commodity(mnemonic="USD", fullname="US Dollar", local_symbol="$")
EUR = Commodity(mnemonic="EUR", fullname="Euro", local_symbol="€")
JPY = Commodity(mnemonic="JPY", fullname="Yen", smallest_fraction=1)


def test_to_fraction_accepts_exact_types():
    """Strings, ints, Decimals and Fractions convert exactly."""
    assert to_fraction("12.10") == Fraction(121, 10)
    assert to_fraction(3) == Fraction(3)
    assert to_fraction(Decimal("0.1")) == Fraction(1, 10)
    assert to_fraction(Fraction(1, 3)) == Fraction(1, 3)


def test_to_fraction_rejects_float():
    """Floats are refused instead of silently rounded."""
    with pytest.raises(ValidationError):
        to_fraction(0.1)


def test_to_fraction_rejects_garbage():
    with pytest.raises(ValidationError):
        to_fraction("twelve")


def test_addition_is_exact():
    """Adding thirds never accumulates rounding error."""
    third = Money(Fraction(1, 3), USD)
    assert third + third + third == Money(1, USD)


def test_arithmetic_rejects_mixed_commodities():
    with pytest.raises(CurrencyMismatchError):
        Money(1, USD) + Money(1, EUR)
    with pytest.raises(CurrencyMismatchError):
        Money(1, USD) - Money(1, EUR)


def test_negation_and_abs():
    amount = Money("-12.50", USD)
    assert amount.is_negative()
    assert -amount == Money("12.50", USD)
    assert abs(amount) == Money("12.50", USD)


def test_multiplication_and_conversion():
    """Conversion multiplies by an exact rate and relabels the commodity."""
    amount = Money(10, EUR)
    assert amount * 2 == Money(20, EUR)
    converted = amount.convert(Fraction(11, 10), USD)
    assert converted == Money(11, USD)
    assert converted.commodity.mnemonic == "USD"


def test_from_parts_rejects_zero_denominator():
    with pytest.raises(ValidationError):
        Money.from_parts(1, 0, USD)


def test_ordering_within_a_commodity():
    assert Money(1, USD) < Money(2, USD)
    assert Money(2, USD) >= Money(2, USD)


def test_display_rounds_half_even_to_smallest_fraction():
    """Display rounding happens only at the edge, to the commodity's fraction."""
    assert str(Money(Fraction(1, 3), USD)) == "0.33 USD"
    assert str(Money(Fraction(5, 1000), USD)) == "0.00 USD"
    assert str(Money(Fraction(15, 1000), USD)) == "0.02 USD"
    assert str(Money(Fraction(2501, 10), JPY)) == "250 JPY"


def test_formatted_uses_symbol():
    assert Money("1234.5", USD).formatted() == "$1,234.50"
    assert Money("-3", EUR).formatted() == "-€3.00"


def test_equality_and_hash_follow_commodity():
    assert Money(5, USD) != Money(5, EUR)
    assert len({Money(5, USD), Money("5.00", USD)}) == 1
