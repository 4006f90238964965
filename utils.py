"""Utility functions for money rounding, dates, periods and transaction filtering."""
import calendar
import datetime as dt
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from currency import BASE_CURRENCY, as_decimal, convert
from models import Transaction


def _round_money(dec: Decimal) -> float:
    """Round a Decimal to 2 decimal places with HALF_UP (normal money rounding)."""
    return float(dec.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def normalize_iso_date(value: Any) -> dt.date:
    """Normalize a value to a date or raise a ValueError."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value

    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value)
        except ValueError:
            raise ValueError("Invalid date format. Expected YYYY-MM-DD.")

    raise ValueError("Invalid date format. Expected YYYY-MM-DD.")


def validate_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    if year < 1:
        raise ValueError("Year must be positive")


def in_period(day: Any, month: int, year: int) -> bool:
    """True when the given date falls inside (month, year)."""
    day = normalize_iso_date(day)
    return day.month == month and day.year == year


def previous_period(month: int, year: int) -> tuple[int, int]:
    if month == 1:
        return 12, year - 1
    return month - 1, year


def clamp_day(day: int, month: int, year: int) -> dt.date:
    """Build a date, moving day 29-31 back to the last day of short months."""
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day, last_day))


def compute_summary(
    transactions: Iterable[Transaction],
    currency: Any = BASE_CURRENCY,
) -> dict[str, float]:
    """Income/expense totals and balance, converted into one currency."""
    income_total_dec = Decimal("0")
    expense_total_dec = Decimal("0")

    for t in transactions:
        amount = as_decimal(convert(t.amount, t.currency, currency))
        if t.type == "income":
            income_total_dec += amount
        elif t.type == "expense":
            expense_total_dec += amount

    # money-safe rounding
    income_total = _round_money(income_total_dec)
    expense_total = _round_money(expense_total_dec)
    balance = _round_money(income_total_dec - expense_total_dec)

    return {
        "income_total": income_total,
        "expense_total": expense_total,
        "balance": balance,
    }


def filter_transactions(
    transactions: Iterable[Transaction],
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
    query: Optional[str] = None,
    tx_type: Optional[str] = None,
    category: Optional[str] = None,
) -> list[Transaction]:
    """Filter transactions by date range, text query, type and category."""
    q = (query or "").strip().lower()
    results: list[Transaction] = []

    for t in transactions:

        if tx_type and t.type != tx_type:
            continue

        if category and t.category != category:
            continue

        if isinstance(t.date, dt.date):
            if date_from and t.date < date_from:
                continue
            if date_to and t.date > date_to:
                continue

        if q:
            haystacks = (t.description, t.category, t.income_source)
            if not any(q in (h or "").lower() for h in haystacks):
                continue

        results.append(t)

    return results
