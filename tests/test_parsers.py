"""Tests for date, month and amount parsing."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from propcommand.utils.amount_parser import parse_amount
from propcommand.utils.date_parser import (
    add_months,
    month_of,
    parse_date,
    parse_month,
)
from propcommand.utils.ids import generate_id


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2025-03-15") == date(2025, 3, 15)
    assert parse_date("March 15, 2025") == date(2025, 3, 15)


def test_parse_relative_dates():
    today = date(2025, 3, 15)

    assert parse_date("today", today) == today
    assert parse_date(" Yesterday ", today) == date(2025, 3, 14)
    assert parse_date("tomorrow", today) == date(2025, 3, 16)
    assert parse_date("last month", today) == date(2025, 2, 1)
    assert parse_date("this month", today) == date(2025, 3, 1)
    assert parse_date("next month", date(2025, 12, 31)) == date(2026, 1, 1)


def test_parse_today_defaults_to_current_date():
    assert parse_date("today") == date.today()
    assert parse_date("yesterday") == date.today() - timedelta(days=1)


def test_parse_invalid_date():
    with pytest.raises(ValueError):
        parse_date("the day after never")


@pytest.mark.parametrize("month", ["2025-00", "2025-13", "2025-3", "25-03", "March"])
def test_parse_month_rejects_bad_keys(month):
    with pytest.raises(ValueError, match="YYYY-MM"):
        parse_month(month)


def test_month_helpers():
    assert parse_month(" 2025-03 ") == "2025-03"
    assert month_of(date(2025, 3, 31)) == "2025-03"
    assert add_months("2025-11", 3) == "2026-02"
    assert add_months("2025-01", -1) == "2024-12"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2500000", Decimal("2500000")),
        ("UGX 2,500,000", Decimal("2500000")),
        ("ugx1,250.50", Decimal("1250.50")),
        ("$123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("(123.45)", Decimal("-123.45")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_rejects(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_generate_id_is_prefixed_and_unique():
    first, second = generate_id("gl"), generate_id("gl")

    assert first.startswith("gl-")
    assert first != second
