"""
Currency conventions.

Every amount is persisted in FMG, the base currency. Ariary is the
alternate currency: users may type amounts in it and we always show
both, but an Ariary figure is derived on the fly and never stored.

    1 Ariary = 5 FMG

FMG has no subunit, so base amounts are whole numbers and all sums
are integer sums. Fractions only appear when dividing by the rate for
display, and are rounded to two decimals.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Union

from currency_clarity.models.errors import InvalidInputError


class Currency(str, Enum):
    """Currencies an amount can be entered in."""
    FMG = "FMG"
    ARIARY = "Ariary"


BASE_CURRENCY = Currency.FMG
ALTERNATE_CURRENCY = Currency.ARIARY

ARIARY_TO_FMG_RATE = 5

CURRENCY_SUFFIXES = {
    Currency.FMG: "FMG",
    Currency.ARIARY: "Ar",
}

_CENTS = Decimal("0.01")

Number = Union[int, Decimal, str]


def _as_decimal(value: Number) -> Decimal:
    if isinstance(value, float):
        # Floats carry binary noise into money math
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"Not a number: {value!r}")


def to_base_amount(raw_amount: Number, currency: Currency) -> int:
    """
    Convert an amount typed in `currency` to whole FMG.

    Raises:
        InvalidInputError: negative amounts, or Ariary amounts that do not
            land on a whole FMG (anything finer than 0.2 Ar).
    """
    amount = _as_decimal(raw_amount)
    if amount < 0:
        raise InvalidInputError(f"Amount cannot be negative: {amount}")

    if Currency(currency) is Currency.ARIARY:
        amount = amount * ARIARY_TO_FMG_RATE

    if amount != amount.to_integral_value():
        raise InvalidInputError(
            f"{raw_amount} {CURRENCY_SUFFIXES[Currency(currency)]} is not a whole number of FMG"
        )
    return int(amount)


def to_display_amount(base_amount: int, currency: Currency) -> Decimal:
    """Express an FMG amount in `currency`, rounded to 2 decimals."""
    amount = Decimal(base_amount)
    if Currency(currency) is Currency.ARIARY:
        amount = amount / ARIARY_TO_FMG_RATE
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount: Number, currency: Currency) -> str:
    """
    Format an amount already expressed in `currency`.

    Thousands are comma-grouped and trailing zero decimals dropped:
    12500 -> "12,500 FMG", Decimal("2500.50") -> "2,500.5 Ar".
    """
    value = _as_decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP)
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{text} {CURRENCY_SUFFIXES[Currency(currency)]}"


def format_dual(base_amount: int) -> tuple[str, str]:
    """Both renderings of an FMG amount: (Ariary, FMG)."""
    return (
        format_currency(to_display_amount(base_amount, Currency.ARIARY), Currency.ARIARY),
        format_currency(base_amount, Currency.FMG),
    )
