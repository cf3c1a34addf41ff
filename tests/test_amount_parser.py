"""Tests for amount parsing."""

import pytest
from decimal import Decimal

from finledger.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1500", Decimal("1500")),
        ("₹1,500.50", Decimal("1500.50")),
        ("$12.30", Decimal("12.30")),
        ("1,00,000", Decimal("100000")),
        (" 0.1 ", Decimal("0.1")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


def test_negative_rejected_by_default():
    with pytest.raises(ValueError, match="negative"):
        parse_amount("-250")


def test_negative_allowed():
    assert parse_amount("-250", allow_negative=True) == Decimal("-250")


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_invalid_amount(text):
    with pytest.raises(ValueError):
        parse_amount(text)


@pytest.mark.parametrize("text", ["0.004", "10.005", "1,000.999"])
def test_fractions_of_a_cent_rejected(text):
    with pytest.raises(ValueError, match="fractions of a cent"):
        parse_amount(text)


def test_trailing_zeros_are_whole_cents():
    assert parse_amount("12.500") == Decimal("12.5")


def test_rates_may_be_finer_than_cents():
    assert parse_amount("8.125", cents_only=False) == Decimal("8.125")
