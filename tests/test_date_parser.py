"""Tests for date parsing helpers."""

import pytest
from datetime import date, datetime, timedelta, timezone, UTC

from finledger.utils.date_parser import get_date_range, parse_date, parse_datetime

TODAY = date(2024, 3, 5)


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("today", TODAY),
        ("Yesterday", TODAY - timedelta(days=1)),
        (" tomorrow ", TODAY + timedelta(days=1)),
    ],
)
def test_parse_relative_dates(text, expected):
    assert parse_date(text, today=TODAY) == expected


def test_parse_relative_defaults_to_today():
    assert parse_date("today") == date.today()


def test_parse_invalid_date():
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")


def test_parse_datetime_bare_date_is_midnight_utc():
    assert parse_datetime("2024-03-05") == datetime(2024, 3, 5, tzinfo=UTC)
    assert parse_datetime("yesterday", today=TODAY) == datetime(2024, 3, 4, tzinfo=UTC)


def test_parse_datetime_converts_offsets_to_utc():
    result = parse_datetime("2024-03-05T15:00:00+05:30")
    assert result == datetime(2024, 3, 5, 9, 30, tzinfo=UTC)
    assert result.utcoffset() == timedelta(0)


def test_parse_datetime_naive_is_utc():
    assert parse_datetime("2024-03-05 08:15") == datetime(2024, 3, 5, 8, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "period,expected",
    [
        ("this-month", (date(2024, 3, 1), TODAY)),
        ("last-month", (date(2024, 2, 1), date(2024, 2, 29))),
        ("this-year", (date(2024, 1, 1), TODAY)),
        ("last-year", (date(2023, 1, 1), date(2023, 12, 31))),
    ],
)
def test_get_date_range(period, expected):
    assert get_date_range(period, today=TODAY) == expected


def test_get_date_range_unknown():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("next-decade", today=TODAY)
