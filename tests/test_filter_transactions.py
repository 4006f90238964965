# tests/test_filter_transactions.py
import datetime as dt
from decimal import Decimal

from models import Transaction
from utils import filter_transactions


def make_tx(category, amount, type_, date_str, description="", income_source=None):
    year, month, day = map(int, date_str.split("-"))
    return Transaction(
        id=None,
        type=type_,
        category=category,
        description=description,
        amount=Decimal(str(amount)),
        currency="MGA",
        date=dt.date(year, month, day),
        income_source=income_source,
    )


def base_transactions():
    return [
        make_tx("Salaire", 1000, "income", "2025-01-01", "monthly salary", "Employer"),
        make_tx("Autre Revenu", 500, "income", "2025-01-15", "yearly bonus"),
        make_tx("Logement", 700, "expense", "2025-01-05", "apartment rent"),
        make_tx("Nourriture", 120, "expense", "2025-01-20", "food shopping"),
        make_tx("Logement", 650, "expense", "2024-12-20", "previous month rent"),
    ]


def test_filter_no_filters_returns_all():
    txs = base_transactions()
    result = filter_transactions(txs)
    assert len(result) == len(txs)


def test_filter_by_type_income_only():
    txs = base_transactions()
    result = filter_transactions(txs, tx_type="income")
    assert all(t.type == "income" for t in result)
    assert {t.category for t in result} == {"Salaire", "Autre Revenu"}


def test_filter_by_category():
    txs = base_transactions()
    result = filter_transactions(txs, category="Logement")
    assert {t.description for t in result} == {"apartment rent", "previous month rent"}


def test_filter_by_date_range_inclusive():
    txs = base_transactions()
    date_from = dt.date(2025, 1, 5)
    date_to = dt.date(2025, 1, 15)
    result = filter_transactions(txs, date_from=date_from, date_to=date_to)
    # dates between 5th and 15th inclusive
    assert {t.description for t in result} == {"apartment rent", "yearly bonus"}


def test_filter_by_query_matches_description_category_or_source():
    txs = base_transactions()
    assert len(filter_transactions(txs, query="RENT")) == 2
    assert len(filter_transactions(txs, query="nourr")) == 1
    assert len(filter_transactions(txs, query="employer")) == 1


def test_filter_combined_type_date_and_query():
    txs = base_transactions()
    result = filter_transactions(
        txs,
        date_from=dt.date(2025, 1, 1),
        date_to=dt.date(2025, 1, 31),
        query="rent",
        tx_type="expense",
    )
    # should only pick the January rent, not December's
    assert len(result) == 1
    assert result[0].description == "apartment rent"
