"""Persistence helpers for transactions, budgets, alerts, categories, goals and recurring templates.

Every function commits its own unit of work. SQLAlchemy errors are rolled
back and re-raised as PersistenceFailure.
"""
import datetime as dt
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from db import save_and_refresh
from errors import CategoryInUse, DuplicateCategory, PersistenceFailure
from models import Budget, BudgetAlert, Category, Goal, RecurringTransaction, Transaction, utcnow
from schemas import (
    BudgetCreate,
    BudgetUpdate,
    CategoryCreate,
    CategoryUpdate,
    GoalCreate,
    GoalUpdate,
    RecurringTransactionCreate,
    TransactionCreate,
    TransactionUpdate,
)
from utils import filter_transactions

logger = logging.getLogger(__name__)


@contextmanager
def persistence(session: Session, action: str):
    """Roll back and translate storage errors raised inside the block."""
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Failed to %s: %s", action, exc)
        raise PersistenceFailure(f"Failed to {action}") from exc


# TRANSACTIONS

def create_transaction(session: Session, payload: TransactionCreate) -> Transaction:
    with persistence(session, "create transaction"):
        return save_and_refresh(session, Transaction(**payload.model_dump()))


def get_transactions(session: Session, tx_type: Optional[str] = None) -> list[Transaction]:
    """All transactions, newest first."""
    stmt = select(Transaction)
    if tx_type:
        stmt = stmt.where(Transaction.type == tx_type)
    stmt = stmt.order_by(Transaction.date.desc(), Transaction.created_at.desc())
    with persistence(session, "fetch transactions"):
        return list(session.exec(stmt).all())


def search_transactions(
    session: Session,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
    query: Optional[str] = None,
    tx_type: Optional[str] = None,
    category: Optional[str] = None,
) -> list[Transaction]:
    """Transactions matching the filters, newest first. Text search covers
    description, category and income source."""
    return filter_transactions(
        get_transactions(session, tx_type),
        date_from=date_from,
        date_to=date_to,
        query=query,
        category=category,
    )


def update_transaction(
    session: Session, transaction_id: int, payload: TransactionUpdate
) -> Optional[Transaction]:
    with persistence(session, "update transaction"):
        transaction = session.get(Transaction, transaction_id)
        if transaction is None:
            return None
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(transaction, field, value)
        return save_and_refresh(session, transaction)


def delete_transaction(session: Session, transaction_id: int) -> bool:
    with persistence(session, "delete transaction"):
        transaction = session.get(Transaction, transaction_id)
        if transaction is None:
            return False
        session.delete(transaction)
        session.commit()
        return True


# BUDGETS

def _find_budget(session: Session, category: str, month: int, year: int) -> Optional[Budget]:
    stmt = select(Budget).where(
        Budget.category == category,
        Budget.month == month,
        Budget.year == year,
    )
    return session.exec(stmt).first()


def upsert_budget(session: Session, payload: BudgetCreate) -> Budget:
    """Create the budget, or replace the limit of the one already set for the period."""
    with persistence(session, "save budget"):
        budget = _find_budget(session, payload.category, payload.month, payload.year)
        if budget is None:
            budget = Budget(**payload.model_dump())
        else:
            budget.amount = payload.amount
            budget.currency = payload.currency
            budget.updated_at = utcnow()
        return save_and_refresh(session, budget)


def get_budgets(
    session: Session, month: Optional[int] = None, year: Optional[int] = None
) -> list[Budget]:
    stmt = select(Budget)
    if month is not None:
        stmt = stmt.where(Budget.month == month)
    if year is not None:
        stmt = stmt.where(Budget.year == year)
    stmt = stmt.order_by(Budget.year.desc(), Budget.month.desc(), Budget.category)
    with persistence(session, "fetch budgets"):
        return list(session.exec(stmt).all())


def get_budget(session: Session, budget_id: int) -> Optional[Budget]:
    with persistence(session, "fetch budget"):
        return session.get(Budget, budget_id)


def update_budget(session: Session, budget_id: int, payload: BudgetUpdate) -> Optional[Budget]:
    """Patch a budget. Moving it onto an existing (category, month, year) fails."""
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise ValueError("No fields to update")
    with persistence(session, "update budget"):
        budget = session.get(Budget, budget_id)
        if budget is None:
            return None
        for field, value in data.items():
            setattr(budget, field, value)
        budget.updated_at = utcnow()
        return save_and_refresh(session, budget)


def delete_budget(session: Session, budget_id: int) -> bool:
    with persistence(session, "delete budget"):
        budget = session.get(Budget, budget_id)
        if budget is None:
            return False
        # alerts outlive their budget
        linked = session.exec(select(BudgetAlert).where(BudgetAlert.budget_id == budget_id)).all()
        for alert in linked:
            alert.budget_id = None
            session.add(alert)
        session.delete(budget)
        session.commit()
        return True


# BUDGET ALERTS

def _alert_for_period(
    session: Session, category: str, month: int, year: int, is_read: bool
) -> Optional[BudgetAlert]:
    stmt = (
        select(BudgetAlert)
        .where(
            BudgetAlert.category == category,
            BudgetAlert.month == month,
            BudgetAlert.year == year,
            BudgetAlert.is_read == is_read,
        )
        .order_by(BudgetAlert.created_at.desc())
    )
    return session.exec(stmt).first()


def _refresh_alert(session: Session, alert: BudgetAlert, values: dict) -> BudgetAlert:
    for field, value in values.items():
        setattr(alert, field, value)
    alert.created_at = utcnow()
    return save_and_refresh(session, alert)


def upsert_budget_alert(
    session: Session,
    *,
    category: str,
    month: int,
    year: int,
    budget_amount: Decimal,
    spent_amount: Decimal,
    percentage: Decimal,
    currency: str,
    budget_id: Optional[int] = None,
    realert_after_read: bool = False,
) -> Optional[BudgetAlert]:
    """
    Create or refresh the unread alert for (category, month, year).

    Returns None when an alert for the period was already read and
    realert_after_read is off.
    """
    values = {
        "budget_id": budget_id,
        "budget_amount": budget_amount,
        "spent_amount": spent_amount,
        "percentage": percentage,
        "currency": currency,
    }
    with persistence(session, f"save alert for {category} {month}/{year}"):
        unread = _alert_for_period(session, category, month, year, is_read=False)
        if unread is not None:
            return _refresh_alert(session, unread, values)

        if not realert_after_read and _alert_for_period(session, category, month, year, is_read=True):
            logger.debug("Alert for %s %d/%d already read, not raising again", category, month, year)
            return None

        alert = BudgetAlert(category=category, month=month, year=year, is_read=False, **values)
        try:
            return save_and_refresh(session, alert)
        except IntegrityError:
            # another writer inserted the unread alert first
            session.rollback()
            unread = _alert_for_period(session, category, month, year, is_read=False)
            if unread is None:
                raise
            return _refresh_alert(session, unread, values)


def get_budget_alerts(
    session: Session, limit: Optional[int] = None, unread_only: bool = False
) -> list[BudgetAlert]:
    """Alerts, newest first."""
    stmt = select(BudgetAlert)
    if unread_only:
        stmt = stmt.where(BudgetAlert.is_read == False)  # noqa: E712
    stmt = stmt.order_by(BudgetAlert.created_at.desc(), BudgetAlert.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    with persistence(session, "fetch alerts"):
        return list(session.exec(stmt).all())


def mark_alert_as_read(session: Session, alert_id: int) -> bool:
    with persistence(session, "mark alert as read"):
        alert = session.get(BudgetAlert, alert_id)
        if alert is None:
            return False
        alert.is_read = True
        save_and_refresh(session, alert)
        return True


def mark_all_alerts_as_read(session: Session) -> int:
    """Mark every unread alert as read and return how many changed."""
    with persistence(session, "mark all alerts as read"):
        unread = session.exec(select(BudgetAlert).where(BudgetAlert.is_read == False)).all()  # noqa: E712
        for alert in unread:
            alert.is_read = True
            session.add(alert)
        session.commit()
        return len(unread)


def delete_budget_alert(session: Session, alert_id: int) -> bool:
    with persistence(session, "delete alert"):
        alert = session.get(BudgetAlert, alert_id)
        if alert is None:
            return False
        session.delete(alert)
        session.commit()
        return True


# CATEGORIES

def get_categories(session: Session, tx_type: Optional[str] = None) -> list[Category]:
    """Categories with income first, then alphabetical."""
    stmt = select(Category)
    if tx_type:
        stmt = stmt.where(Category.type == tx_type)
    with persistence(session, "fetch categories"):
        categories = session.exec(stmt).all()
    return sorted(categories, key=lambda c: (c.type != "income", c.name.lower()))


def _category_taken(
    session: Session, name: str, tx_type: str, exclude_id: Optional[int] = None
) -> bool:
    stmt = select(Category).where(
        func.lower(Category.name) == name.lower(),
        Category.type == tx_type,
    )
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    return session.exec(stmt).first() is not None


def create_category(session: Session, payload: CategoryCreate) -> Category:
    """Add a category. Names are unique per type, ignoring case."""
    with persistence(session, "create category"):
        if _category_taken(session, payload.name, payload.type):
            raise DuplicateCategory(payload.name, payload.type)
        return save_and_refresh(session, Category(**payload.model_dump()))


def update_category(
    session: Session, category_id: int, payload: CategoryUpdate
) -> Optional[Category]:
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise ValueError("No fields to update")
    with persistence(session, "update category"):
        category = session.get(Category, category_id)
        if category is None:
            return None
        name = data.get("name", category.name)
        tx_type = data.get("type", category.type)
        if _category_taken(session, name, tx_type, exclude_id=category_id):
            raise DuplicateCategory(name, tx_type)
        for field, value in data.items():
            setattr(category, field, value)
        return save_and_refresh(session, category)


def delete_category(session: Session, category_id: int) -> bool:
    """Delete a category that no transaction refers to."""
    with persistence(session, "delete category"):
        category = session.get(Category, category_id)
        if category is None:
            return False
        used = session.exec(
            select(Transaction.id).where(Transaction.category == category.name).limit(1)
        ).first()
        if used is not None:
            raise CategoryInUse(category.name)
        session.delete(category)
        session.commit()
        return True


# SAVINGS GOALS

def create_goal(session: Session, payload: GoalCreate) -> Goal:
    with persistence(session, "create goal"):
        return save_and_refresh(session, Goal(**payload.model_dump()))


def get_goals(session: Session) -> list[Goal]:
    """Open goals first, then newest."""
    stmt = select(Goal).order_by(Goal.is_completed, Goal.created_at.desc(), Goal.id.desc())
    with persistence(session, "fetch goals"):
        return list(session.exec(stmt).all())


def get_goal(session: Session, goal_id: int) -> Optional[Goal]:
    with persistence(session, "fetch goal"):
        return session.get(Goal, goal_id)


def update_goal(session: Session, goal_id: int, payload: GoalUpdate) -> Optional[Goal]:
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise ValueError("No fields to update")
    with persistence(session, "update goal"):
        goal = session.get(Goal, goal_id)
        if goal is None:
            return None
        for field, value in data.items():
            setattr(goal, field, value)
        goal.updated_at = utcnow()
        return save_and_refresh(session, goal)


def delete_goal(session: Session, goal_id: int) -> bool:
    with persistence(session, "delete goal"):
        goal = session.get(Goal, goal_id)
        if goal is None:
            return False
        session.delete(goal)
        session.commit()
        return True


# RECURRING TRANSACTIONS

def create_recurring_transaction(
    session: Session, payload: RecurringTransactionCreate
) -> RecurringTransaction:
    with persistence(session, "create recurring transaction"):
        return save_and_refresh(session, RecurringTransaction(**payload.model_dump()))


def get_recurring_transactions(session: Session, active_only: bool = False) -> list[RecurringTransaction]:
    stmt = select(RecurringTransaction)
    if active_only:
        stmt = stmt.where(RecurringTransaction.is_active == True)  # noqa: E712
    stmt = stmt.order_by(RecurringTransaction.day_of_month, RecurringTransaction.id)
    with persistence(session, "fetch recurring transactions"):
        return list(session.exec(stmt).all())
