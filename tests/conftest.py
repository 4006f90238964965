import datetime as dt
import os
import sys
from decimal import Decimal

import pytest
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool

ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import store  # noqa: E402
from schemas import BudgetCreate, TransactionCreate  # noqa: E402


test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="function")
def engine():
    """A fresh in-memory database for each test."""
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)
    return test_engine


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def factories(session):
    """
    Helpers shared across test modules to put budgets and transactions
    in the database.
    """

    def add_budget(category, amount, month=6, year=2024, currency="MGA"):
        return store.upsert_budget(
            session,
            BudgetCreate(
                category=category,
                amount=Decimal(str(amount)),
                currency=currency,
                month=month,
                year=year,
            ),
        )

    def add_transaction(category, amount, date="2024-06-10", type_="expense", currency="MGA", **extra):
        return store.create_transaction(
            session,
            TransactionCreate(
                type=type_,
                category=category,
                amount=Decimal(str(amount)),
                currency=currency,
                date=date,
                **extra,
            ),
        )

    def add_expense(category, amount, date="2024-06-10", currency="MGA"):
        return add_transaction(category, amount, date=date, currency=currency)

    def add_income(category, amount, date="2024-06-01", currency="MGA"):
        return add_transaction(category, amount, date=date, type_="income", currency=currency)

    return {
        "add_budget": add_budget,
        "add_transaction": add_transaction,
        "add_expense": add_expense,
        "add_income": add_income,
        "june_2024": dt.date(2024, 6, 15),
    }
