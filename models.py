from typing import Optional
from decimal import Decimal
import datetime as dt
from datetime import datetime, timezone

from sqlalchemy import Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# These classes describe what is stored in the database.
# Each class = one table. Amounts are kept in the currency they were entered in.
class Category(SQLModel, table=True):
    """Transaction categories like 'Nourriture' or 'Salaire'.
    A category belongs to either the income or the expense side.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, max_length=255)
    type: str = Field(index=True)  # 'income' or 'expense'
    color: str = Field(default="#607D8B", max_length=7)


class Transaction(SQLModel, table=True):
    """Main table that stores all transactions, both income and expenses.
    - 'category' is the category name (not a foreign key)
    - 'income_source' is an optional label, only meaningful for income
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(index=True)  # 'income' or 'expense'
    category: str = Field(max_length=255)
    description: str = ""
    amount: Decimal = Field(max_digits=19, decimal_places=4)
    currency: str = Field(default="MGA", max_length=3)
    date: dt.date = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)
    income_source: Optional[str] = Field(default=None, max_length=255)


class Budget(SQLModel, table=True):
    """Monthly spending limit for one category.
    At most one budget exists per (category, month, year).
    """
    __table_args__ = (
        UniqueConstraint("category", "month", "year", name="uq_budget_period"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    category: str = Field(max_length=255)
    amount: Decimal = Field(max_digits=19, decimal_places=4)
    currency: str = Field(default="MGA", max_length=3)
    month: int
    year: int
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BudgetAlert(SQLModel, table=True):
    """Raised when spending in a category reaches the alert threshold.
    Amounts are expressed in the base currency. Only one unread alert
    may exist per (category, month, year).
    """
    __table_args__ = (
        Index(
            "uq_unread_alert_period",
            "category",
            "month",
            "year",
            unique=True,
            sqlite_where=text("is_read = 0"),
            postgresql_where=text("is_read = false"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: Optional[int] = Field(default=None, foreign_key="budget.id")
    category: str = Field(max_length=255)
    budget_amount: Decimal = Field(max_digits=19, decimal_places=4)
    spent_amount: Decimal = Field(max_digits=19, decimal_places=4)
    currency: str = Field(default="MGA", max_length=3)
    month: int
    year: int
    percentage: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=4)
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class RecurringTransaction(SQLModel, table=True):
    """Template for a transaction repeated every month on a given day."""
    id: Optional[int] = Field(default=None, primary_key=True)
    type: str
    category: str = Field(max_length=255)
    description: str = ""
    amount: Decimal = Field(max_digits=19, decimal_places=4)
    currency: str = Field(default="MGA", max_length=3)
    day_of_month: int  # 1..31, clamped to the month length when generating
    is_active: bool = Field(default=True)
    last_generated_month: Optional[int] = None
    last_generated_year: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)


class Goal(SQLModel, table=True):
    """Savings goal, e.g. 'New laptop' with a target amount and an optional deadline."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    target_amount: Decimal = Field(max_digits=19, decimal_places=4)
    current_amount: Decimal = Field(default=Decimal("0"), max_digits=19, decimal_places=4)
    currency: str = Field(default="MGA", max_length=3)
    target_date: Optional[dt.date] = None
    is_completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
