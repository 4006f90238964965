"""Pydantic/SQLModel schemas for payload validation."""
from typing import Literal, Optional
from decimal import Decimal
import datetime as dt

from sqlmodel import SQLModel, Field
from pydantic import field_validator

from currency import parse_currency
from utils import normalize_iso_date

CATEGORY_MAX_LEN = 255
DESCRIPTION_MAX_LEN = 500
# matches the scale of the amount columns, so nothing is rounded on save
AMOUNT_PLACES = 4

TransactionType = Literal["income", "expense"]


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class CategoryCurrencyMixin:
    """Shared validators for category names and currency codes."""
    @field_validator("category", mode="before")
    @classmethod
    def strip_category(cls, v):
        return _strip(v)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        if v is None:
            return None
        return parse_currency(v).value


class DescriptionMixin:
    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return _strip(v)


class DateMixin:
    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v):
        if v is None:
            return None
        return normalize_iso_date(v)


class TransactionCreate(CategoryCurrencyMixin, DescriptionMixin, DateMixin, SQLModel):
    """Payload for creating an income or expense."""
    type: TransactionType
    category: str = Field(min_length=1, max_length=CATEGORY_MAX_LEN)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LEN)
    amount: Decimal = Field(gt=0, decimal_places=AMOUNT_PLACES)
    currency: str = "MGA"
    date: dt.date
    income_source: Optional[str] = Field(default=None, max_length=CATEGORY_MAX_LEN)

    @field_validator("income_source", mode="before")
    @classmethod
    def strip_income_source(cls, v):
        v = _strip(v)
        return v or None


class TransactionUpdate(CategoryCurrencyMixin, DescriptionMixin, DateMixin, SQLModel):
    """Partial update payload for transactions."""
    type: Optional[TransactionType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=CATEGORY_MAX_LEN)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LEN)
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=AMOUNT_PLACES)
    currency: Optional[str] = None
    date: Optional[dt.date] = None
    income_source: Optional[str] = Field(default=None, max_length=CATEGORY_MAX_LEN)


class BudgetCreate(CategoryCurrencyMixin, SQLModel):
    """Payload for creating (or replacing) a monthly budget."""
    category: str = Field(min_length=1, max_length=CATEGORY_MAX_LEN)
    amount: Decimal = Field(ge=0, decimal_places=AMOUNT_PLACES)
    currency: str = "MGA"
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1)


class BudgetUpdate(CategoryCurrencyMixin, SQLModel):
    """Partial update payload for budgets."""
    category: Optional[str] = Field(default=None, min_length=1, max_length=CATEGORY_MAX_LEN)
    amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=AMOUNT_PLACES)
    currency: Optional[str] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1)


class RecurringTransactionCreate(CategoryCurrencyMixin, DescriptionMixin, SQLModel):
    """Payload for a transaction that repeats every month."""
    type: TransactionType
    category: str = Field(min_length=1, max_length=CATEGORY_MAX_LEN)
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LEN)
    amount: Decimal = Field(gt=0, decimal_places=AMOUNT_PLACES)
    currency: str = "MGA"
    day_of_month: int = Field(ge=1, le=31)
    is_active: bool = True


class CategoryCreate(SQLModel):
    """Payload for a user-defined category."""
    name: str = Field(min_length=1, max_length=CATEGORY_MAX_LEN)
    type: TransactionType
    color: str = Field(default="#607D8B", schema_extra={"pattern": r"^#[0-9A-Fa-f]{6}$"})

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)


class CategoryUpdate(CategoryCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=CATEGORY_MAX_LEN)
    type: Optional[TransactionType] = None
    color: Optional[str] = Field(default=None, schema_extra={"pattern": r"^#[0-9A-Fa-f]{6}$"})


class GoalFieldsMixin:
    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v):
        if v is None:
            return None
        return parse_currency(v).value

    @field_validator("target_date", mode="before")
    @classmethod
    def normalize_target_date(cls, v):
        # an empty string clears the deadline
        if v is None or v == "":
            return None
        return normalize_iso_date(v)


class GoalCreate(GoalFieldsMixin, SQLModel):
    """Payload for a savings goal."""
    name: str = Field(min_length=1, max_length=CATEGORY_MAX_LEN)
    target_amount: Decimal = Field(gt=0, decimal_places=AMOUNT_PLACES)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=AMOUNT_PLACES)
    currency: str = "MGA"
    target_date: Optional[dt.date] = None
    is_completed: bool = False


class GoalUpdate(GoalFieldsMixin, SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=CATEGORY_MAX_LEN)
    target_amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=AMOUNT_PLACES)
    current_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=AMOUNT_PLACES)
    currency: Optional[str] = None
    target_date: Optional[dt.date] = None
    is_completed: Optional[bool] = None
