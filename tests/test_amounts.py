"""Amount parsing happens once, before any balance comparison."""

from decimal import Decimal

import pytest

from ledgerbank.services.ledger.amounts import parse_amount, to_decimal
from ledgerbank.services.ledger.errors import InvalidAmount


@pytest.mark.parametrize(
    "raw, cents",
    [
        (100, 10000),
        ("40", 4000),
        (" 12.5 ", 1250),
        (0.1, 10),
        (Decimal("0.01"), 1),
        ("1e2", 10000),
    ],
)
def test_accepts_positive_numbers(raw, cents):
    assert parse_amount(raw) == cents


@pytest.mark.parametrize(
    "raw",
    [None, "", "abc", True, False, [], {"amount": 1}, 0, "0.00", -5, "-0.01", float("nan"), float("inf"), "Infinity"],
)
def test_rejects_missing_non_numeric_and_non_positive(raw):
    with pytest.raises(InvalidAmount):
        parse_amount(raw)


def test_rejects_fractions_of_a_cent():
    with pytest.raises(InvalidAmount, match="one cent"):
        parse_amount("10.001")


def test_rejects_amounts_beyond_column_range():
    with pytest.raises(InvalidAmount, match="too large"):
        parse_amount("1e20")


def test_string_is_compared_numerically_not_lexically():
    # "9" > "100" as strings; parsed cents must order numerically.
    assert parse_amount("9") < parse_amount("100")


def test_to_decimal_has_two_places():
    assert str(to_decimal(6000)) == "60.00"
    assert to_decimal(1) == Decimal("0.01")
