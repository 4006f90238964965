from decimal import Decimal
import datetime as dt

import pytest

from utils import clamp_day, compute_summary, in_period, normalize_iso_date, previous_period, validate_period
from models import Transaction


def make_tx(amount, type_, currency="MGA"):
    return Transaction(
        id=None,
        type=type_,
        category="X",
        amount=Decimal(str(amount)),
        currency=currency,
        date=dt.date(2025, 1, 1),
    )


def test_summary_empty():
    result = compute_summary([])
    assert result["income_total"] == 0.0
    assert result["expense_total"] == 0.0
    assert result["balance"] == 0.0


def test_summary_only_income():
    txs = [make_tx(100, "income"), make_tx(50.55, "income")]
    result = compute_summary(txs)
    assert result["income_total"] == 150.55
    assert result["expense_total"] == 0.0
    assert result["balance"] == 150.55


def test_summary_only_expenses_negative_balance():
    txs = [make_tx(40, "expense"), make_tx(10.5, "expense")]
    result = compute_summary(txs)
    assert result["income_total"] == 0.0
    assert result["expense_total"] == 50.5
    # allowed to be negative
    assert result["balance"] == -50.5


def test_summary_converts_into_base_currency():
    txs = [make_tx(2, "income", currency="RMB"), make_tx(320, "expense")]
    result = compute_summary(txs)
    assert result["income_total"] == 1320.0
    assert result["expense_total"] == 320.0
    assert result["balance"] == 1000.0


def test_summary_in_foreign_currency():
    txs = [make_tx(660, "income"), make_tx(1, "expense", currency="RMB")]
    result = compute_summary(txs, currency="RMB")
    assert result["income_total"] == 1.0
    assert result["expense_total"] == 1.0
    assert result["balance"] == 0.0


def test_summary_rounds_like_money():
    txs = [
        make_tx(10_000_000.12, "income"),
        make_tx(0.015, "expense"),
    ]
    result = compute_summary(txs)

    assert result["income_total"] == 10_000_000.12
    assert result["expense_total"] == 0.02  # 0.015 rounds up
    assert result["balance"] == 10_000_000.11  # 10_000_000.105 rounds up


def test_in_period_accepts_strings_and_dates():
    assert in_period("2024-06-30", 6, 2024)
    assert in_period(dt.date(2024, 6, 1), 6, 2024)
    assert not in_period("2024-07-01", 6, 2024)
    assert not in_period("2023-06-15", 6, 2024)


def test_previous_period_wraps_year():
    assert previous_period(1, 2024) == (12, 2023)
    assert previous_period(7, 2024) == (6, 2024)


def test_clamp_day_to_short_months():
    assert clamp_day(31, 4, 2024) == dt.date(2024, 4, 30)
    assert clamp_day(30, 2, 2023) == dt.date(2023, 2, 28)
    assert clamp_day(15, 2, 2023) == dt.date(2023, 2, 15)


@pytest.mark.parametrize("month", [0, 13])
def test_validate_period_rejects_bad_month(month):
    with pytest.raises(ValueError) as exc:
        validate_period(month, 2024)
    assert "between 1 and 12" in str(exc.value)


@pytest.mark.parametrize(
    "value",
    ["2024-06-15", dt.date(2024, 6, 15), dt.datetime(2024, 6, 15, 23, 59)],
)
def test_normalize_iso_date_accepts_strings_dates_and_datetimes(value):
    assert normalize_iso_date(value) == dt.date(2024, 6, 15)


@pytest.mark.parametrize("value", ["2024-13-01", "15/06/2024", "", None, 20240615])
def test_normalize_iso_date_rejects_everything_else(value):
    with pytest.raises(ValueError) as exc:
        normalize_iso_date(value)
    assert "Expected YYYY-MM-DD" in str(exc.value)


def test_in_period_rejects_unreadable_date():
    with pytest.raises(ValueError):
        in_period("june", 6, 2024)
