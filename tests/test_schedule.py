"""Unit tests for recurring obligation occurrence checks."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analytics.schedule import occurs_on
from core.models import RecurringObligation


def _obligation(anchor: date, frequency: str) -> RecurringObligation:
    return RecurringObligation(next_date=anchor, frequency=frequency, type="expense", amount=100.0)


def test_monthly_anchor_on_31st_clamps_and_recovers():
    rent = _obligation(date(2024, 1, 31), "monthly")

    assert occurs_on(rent, date(2024, 1, 31))
    assert occurs_on(rent, date(2024, 2, 29))
    assert occurs_on(rent, date(2024, 3, 31))
    assert not occurs_on(rent, date(2024, 3, 29))
    assert not occurs_on(rent, date(2024, 3, 28))
    assert occurs_on(rent, date(2024, 4, 30))
    assert occurs_on(rent, date(2025, 2, 28))


def test_nothing_occurs_before_anchor():
    for frequency in ("daily", "weekly", "monthly", "quarterly", "yearly"):
        assert not occurs_on(_obligation(date(2024, 5, 10), frequency), date(2024, 5, 9))


def test_daily_and_weekly_cadence():
    daily = _obligation(date(2024, 1, 1), "daily")
    weekly = _obligation(date(2024, 1, 1), "weekly")

    assert occurs_on(daily, date(2024, 7, 19))
    assert occurs_on(weekly, date(2024, 1, 15))
    assert not occurs_on(weekly, date(2024, 1, 16))


def test_quarterly_cadence_clamps_to_month_end():
    quarterly = _obligation(date(2024, 11, 30), "quarterly")

    assert occurs_on(quarterly, date(2025, 2, 28))
    assert occurs_on(quarterly, date(2025, 5, 30))
    assert not occurs_on(quarterly, date(2024, 12, 30))


def test_yearly_leap_day_anchor():
    yearly = _obligation(date(2024, 2, 29), "yearly")

    assert occurs_on(yearly, date(2025, 2, 28))
    assert occurs_on(yearly, date(2028, 2, 29))
    assert not occurs_on(yearly, date(2025, 3, 1))


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        (date(2034, 1, 15), True),
        (date(2034, 2, 15), False),
    ],
)
def test_monthly_search_stops_after_ten_years(target, expected):
    monthly = _obligation(date(2024, 1, 15), "monthly")

    assert occurs_on(monthly, target) is expected


def test_unknown_frequency_only_matches_anchor():
    custom = _obligation(date(2024, 1, 1), "fortnightly")

    assert occurs_on(custom, date(2024, 1, 1))
    assert not occurs_on(custom, date(2024, 1, 15))
