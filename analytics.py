"""Period statistics, comparisons and savings goal progress used by the reports.

Amounts are shown in DISPLAY_CURRENCY unless a display currency is passed.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from currency import as_decimal, convert
from models import Goal, Transaction
from settings import settings
from utils import in_period, previous_period

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass
class PeriodStats:
    income: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO
    transactions: list[Transaction] = field(default_factory=list)


@dataclass
class PeriodComparison:
    current: PeriodStats
    previous: PeriodStats
    growth: dict[str, Decimal]


@dataclass
class CategoryComparison:
    category: str
    current: Decimal
    previous: Decimal
    growth: Decimal


def _amount(t: Transaction, display_currency: Any) -> Decimal:
    target = display_currency or settings.display_currency
    return as_decimal(convert(t.amount, t.currency, target))


def growth_rate(current: Decimal, previous: Decimal) -> Decimal:
    """Percentage change. From nothing, any positive value counts as +100%."""
    if previous > 0:
        return (current - previous) / previous * HUNDRED
    return HUNDRED if current > 0 else ZERO


def balance_growth(current: Decimal, previous: Decimal) -> Decimal:
    if previous != 0:
        return (current - previous) / abs(previous) * HUNDRED
    if current == 0:
        return ZERO
    return HUNDRED if current > 0 else -HUNDRED


def period_stats(
    transactions: Iterable[Transaction],
    month: int,
    year: int,
    display_currency: Any = None,
) -> PeriodStats:
    stats = PeriodStats()
    for t in transactions:
        if not in_period(t.date, month, year):
            continue
        stats.transactions.append(t)
        if t.type == "income":
            stats.income += _amount(t, display_currency)
        elif t.type == "expense":
            stats.expense += _amount(t, display_currency)
    stats.balance = stats.income - stats.expense
    return stats


def _previous_or_default(
    current_month: int, current_year: int, previous_month: Optional[int], previous_year: Optional[int]
) -> tuple[int, int]:
    if previous_month is None or previous_year is None:
        return previous_period(current_month, current_year)
    return previous_month, previous_year


def compare_periods(
    transactions: Iterable[Transaction],
    current_month: int,
    current_year: int,
    previous_month: Optional[int] = None,
    previous_year: Optional[int] = None,
    display_currency: Any = None,
) -> PeriodComparison:
    """Compare a period with an earlier one, by default the month before."""
    transactions = list(transactions)
    previous_month, previous_year = _previous_or_default(
        current_month, current_year, previous_month, previous_year
    )
    current = period_stats(transactions, current_month, current_year, display_currency)
    previous = period_stats(transactions, previous_month, previous_year, display_currency)
    growth = {
        "income": growth_rate(current.income, previous.income),
        "expense": growth_rate(current.expense, previous.expense),
        "balance": balance_growth(current.balance, previous.balance),
    }
    return PeriodComparison(current=current, previous=previous, growth=growth)


def _totals_by_category(stats: PeriodStats, tx_type: str, display_currency: Any) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for t in stats.transactions:
        if t.type == tx_type:
            totals[t.category] = totals.get(t.category, ZERO) + _amount(t, display_currency)
    return totals


def compare_categories(
    transactions: Iterable[Transaction],
    current_month: int,
    current_year: int,
    previous_month: Optional[int] = None,
    previous_year: Optional[int] = None,
    tx_type: str = "expense",
    display_currency: Any = None,
) -> list[CategoryComparison]:
    """Per-category totals of two periods, biggest current spend first."""
    transactions = list(transactions)
    previous_month, previous_year = _previous_or_default(
        current_month, current_year, previous_month, previous_year
    )
    current = _totals_by_category(
        period_stats(transactions, current_month, current_year, display_currency),
        tx_type,
        display_currency,
    )
    previous = _totals_by_category(
        period_stats(transactions, previous_month, previous_year, display_currency),
        tx_type,
        display_currency,
    )

    rows = [
        CategoryComparison(
            category=category,
            current=current.get(category, ZERO),
            previous=previous.get(category, ZERO),
            growth=growth_rate(current.get(category, ZERO), previous.get(category, ZERO)),
        )
        for category in set(current) | set(previous)
    ]
    rows.sort(key=lambda row: (-row.current, row.category))
    return rows


@dataclass
class GoalProgress:
    goal: Goal
    target: Decimal
    current: Decimal
    percentage: Decimal
    remaining: Decimal


def goal_progress(goal: Goal, display_currency: Any = None) -> GoalProgress:
    """How far a savings goal has come, in the display currency.

    The percentage is capped at 100 and the remaining amount never goes
    below zero, so an overshot goal reads as simply reached.
    """
    target_currency = display_currency or settings.display_currency
    target = as_decimal(convert(goal.target_amount, goal.currency, target_currency))
    current = as_decimal(convert(goal.current_amount, goal.currency, target_currency))
    percentage = min(current / target * HUNDRED, HUNDRED) if target > 0 else ZERO
    return GoalProgress(
        goal=goal,
        target=target,
        current=current,
        percentage=percentage,
        remaining=max(target - current, ZERO),
    )
