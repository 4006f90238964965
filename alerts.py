"""Budget alert evaluation.

Spending per category is summed in the base currency and compared with each
budget of the period. A budget used at or above the threshold (80% by
default) gets an unread alert, created or refreshed in place. Alerts are
never cleared when spending drops back under the threshold.
"""
import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlmodel import Session

import store
from currency import BASE_CURRENCY, as_decimal, to_base
from errors import InvalidCurrency
from models import Budget, BudgetAlert
from settings import settings
from utils import in_period, validate_period

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _field(record: Any, name: str) -> Any:
    # records are model instances or plain dicts
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def spend_by_category(transactions: Iterable[Any], month: int, year: int) -> dict[str, Decimal]:
    """Sum the period's expenses per category, converted into the base currency."""
    totals: dict[str, Decimal] = {}
    for t in transactions:
        if _field(t, "type") != "expense":
            continue
        try:
            if not in_period(_field(t, "date"), month, year):
                continue
        except ValueError as exc:
            logger.warning("Skipping transaction %s: %s", _field(t, "id"), exc)
            continue
        try:
            amount = as_decimal(to_base(_field(t, "amount"), _field(t, "currency")))
        except InvalidCurrency as exc:
            logger.warning("Skipping transaction %s: %s", _field(t, "id"), exc)
            continue
        category = _field(t, "category")
        totals[category] = totals.get(category, ZERO) + amount
    return totals


def usage_percentage(limit_in_base: Decimal, spent: Decimal) -> Decimal:
    """Share of the limit already spent, in percent. A zero limit yields 0."""
    if limit_in_base > 0:
        return spent / limit_in_base * 100
    return ZERO


def evaluate_budget_alerts(
    session: Session,
    budgets: Iterable[Budget],
    transactions: Iterable[Any],
    month: int,
    year: int,
    threshold: Optional[Decimal] = None,
    realert_after_read: Optional[bool] = None,
) -> list[BudgetAlert]:
    """Create or refresh alerts for the budgets of (month, year).

    Returns the alerts created or refreshed by this run. Each upsert is
    committed on its own, so a PersistenceFailure part way through leaves the
    earlier alerts stored.
    """
    validate_period(month, year)
    threshold = settings.alert_threshold if threshold is None else as_decimal(threshold)
    if realert_after_read is None:
        realert_after_read = settings.realert_after_read

    totals = spend_by_category(transactions, month, year)
    raised: list[BudgetAlert] = []

    for budget in budgets:
        if budget.month != month or budget.year != year:
            logger.debug("Budget %s is not for %d/%d, ignoring", budget.id, month, year)
            continue
        try:
            limit = as_decimal(to_base(budget.amount, budget.currency))
        except InvalidCurrency as exc:
            logger.warning("Skipping budget %s: %s", budget.id, exc)
            continue

        spent = totals.get(budget.category, ZERO)
        percentage = usage_percentage(limit, spent)
        if percentage < threshold:
            continue

        alert = store.upsert_budget_alert(
            session,
            category=budget.category,
            month=month,
            year=year,
            budget_amount=limit,
            spent_amount=spent,
            percentage=percentage,
            currency=BASE_CURRENCY.value,
            budget_id=budget.id,
            realert_after_read=realert_after_read,
        )
        if alert is not None:
            logger.info(
                "Budget alert: %s at %.2f%% for %d/%d", budget.category, percentage, month, year
            )
            raised.append(alert)

    return raised


def check_budget_alerts(
    session: Session,
    month: Optional[int] = None,
    year: Optional[int] = None,
    today: Optional[dt.date] = None,
    threshold: Optional[Decimal] = None,
) -> list[BudgetAlert]:
    """Load the period's budgets and all transactions, then evaluate alerts.

    The period defaults to the month containing `today` (the current date
    when omitted).
    """
    today = today or dt.date.today()
    month = today.month if month is None else month
    year = today.year if year is None else year
    validate_period(month, year)

    budgets = store.get_budgets(session, month=month, year=year)
    transactions = store.get_transactions(session)
    return evaluate_budget_alerts(session, budgets, transactions, month, year, threshold=threshold)
