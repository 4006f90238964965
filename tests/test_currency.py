from decimal import Decimal

import pytest

from currency import (
    BASE_CURRENCY,
    EXCHANGE_RATES,
    Currency,
    convert,
    format_currency,
    from_base,
    parse_currency,
    to_base,
)
from errors import InvalidCurrency


def test_rate_table_has_one_entry_per_currency_and_base_is_one():
    assert set(EXCHANGE_RATES) == set(Currency)
    assert EXCHANGE_RATES[BASE_CURRENCY] == 1


@pytest.mark.parametrize("currency", ["MGA", "RMB"])
def test_convert_same_currency_is_identity(currency):
    amount = Decimal("1234.5678")
    assert convert(amount, currency, currency) is amount


def test_base_currency_fast_path_returns_amount_untouched():
    amount = 0.1 + 0.2  # a float that would drift through Decimal(str())
    assert to_base(amount, "MGA") is amount
    assert from_base(amount, Currency.MGA) is amount


def test_to_base_multiplies_by_rate():
    assert to_base(Decimal("2"), "RMB") == Decimal("1320")
    # plain numbers are accepted too
    assert to_base(1, "RMB") == Decimal("660")


def test_from_base_divides_by_rate():
    assert from_base(Decimal("660"), "RMB") == Decimal("1")


@pytest.mark.parametrize("amount", ["0.01", "1", "999.99", "123456789.12"])
@pytest.mark.parametrize("pair", [("MGA", "RMB"), ("RMB", "MGA")])
def test_round_trip_within_tolerance(amount, pair):
    a = Decimal(amount)
    back = convert(convert(a, pair[0], pair[1]), pair[1], pair[0])
    assert abs(back - a) <= a * Decimal("1e-6")


def test_parse_currency_is_lenient_on_case_and_spaces():
    assert parse_currency(" rmb ") is Currency.RMB
    assert parse_currency(Currency.MGA) is Currency.MGA


@pytest.mark.parametrize("code", ["USD", "", None, 42])
def test_unknown_currency_rejected(code):
    with pytest.raises(InvalidCurrency):
        convert(Decimal("1"), code, "MGA")


def test_invalid_currency_is_a_value_error():
    with pytest.raises(ValueError) as exc:
        to_base(Decimal("1"), "EUR")
    assert "EUR" in str(exc.value)


def test_format_mga_has_no_decimals():
    assert format_currency(Decimal("1234567.5")) == "1\u202f234\u202f568 Ar"
    assert format_currency(Decimal("999")) == "999 Ar"


def test_format_rmb_has_two_decimals():
    assert format_currency(Decimal("1234.565"), "RMB") == "¥1,234.57"
    assert format_currency(3, Currency.RMB) == "¥3.00"
