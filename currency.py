"""Conversion between the supported currencies.

Every conversion routes through the base currency (MGA). Rates are fixed:
1 RMB = 660 MGA. No rounding happens here; amounts are only rounded when
formatted for display.
"""
import enum
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Union

from errors import InvalidCurrency

Amount = Union[Decimal, int, float]


class Currency(str, enum.Enum):
    MGA = "MGA"
    RMB = "RMB"


BASE_CURRENCY = Currency.MGA

# Units of base currency per one unit of each currency.
EXCHANGE_RATES: dict[Currency, Decimal] = {
    Currency.MGA: Decimal("1"),
    Currency.RMB: Decimal("660"),
}


def parse_currency(code: Any) -> Currency:
    """Return the Currency for a code, or raise InvalidCurrency."""
    if isinstance(code, Currency):
        return code
    if isinstance(code, str):
        try:
            return Currency(code.strip().upper())
        except ValueError:
            pass
    raise InvalidCurrency(code)


def as_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def to_base(amount: Amount, from_currency: Any) -> Amount:
    """Convert an amount into the base currency."""
    currency = parse_currency(from_currency)
    if currency is BASE_CURRENCY:
        return amount
    return as_decimal(amount) * EXCHANGE_RATES[currency]


def from_base(amount: Amount, to_currency: Any) -> Amount:
    """Convert a base-currency amount into another currency."""
    currency = parse_currency(to_currency)
    if currency is BASE_CURRENCY:
        return amount
    return as_decimal(amount) / EXCHANGE_RATES[currency]


def convert(amount: Amount, from_currency: Any, to_currency: Any) -> Amount:
    source = parse_currency(from_currency)
    target = parse_currency(to_currency)
    if source is target:
        return amount
    return from_base(to_base(amount, source), target)


# fr-FR digit grouping uses U+202F between thousands
NARROW_NBSP = "\u202f"


def _group(value: Decimal, places: int, sep: str) -> str:
    text = f"{value:,.{places}f}"
    return text.replace(",", sep) if sep != "," else text


def format_currency(amount: Amount, currency: Any = BASE_CURRENCY) -> str:
    """Format an amount for display (MGA: '12 500 Ar' with narrow no-break spaces, RMB: '¥1,234.50')."""
    currency = parse_currency(currency)
    value = as_decimal(amount)
    if currency is Currency.MGA:
        rounded = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return f"{_group(rounded, 0, NARROW_NBSP)} Ar"
    rounded = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"¥{_group(rounded, 2, ',')}"
