"""Unit tests for goal affordability predictions."""

from __future__ import annotations

import asyncio
import math
import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analytics.goals import (
    NO_SURPLUS_WARNING,
    compute_monthly_stats,
    predict_goal,
    predict_with_free_capital,
    total_budget_ceiling,
)
from core.data_access import InMemoryTrendRepository
from core.goal_service import GoalService
from core.models import BudgetLimit, MonthlyStats, RecurringObligation, Transaction, Wallet

TODAY = date(2024, 1, 15)


@pytest.fixture()
def quarter_of_transactions() -> list[Transaction]:
    rows = []
    for month in (1, 2, 3):
        rows.append(Transaction(date(2024, month, 15), "income", 3000.0))
        rows.append(Transaction(date(2024, month, 20), "expense", 600.0))
    rows.append(Transaction(date(2023, 11, 20), "expense", 5000.0))
    return rows


def test_goal_reached_in_exact_months():
    prediction = predict_with_free_capital(6000.0, 500.0, TODAY)

    assert prediction.can_afford
    assert prediction.months_to_goal == 12
    assert prediction.target_date == date(2025, 1, 15)
    assert prediction.capital_leftover_at_goal == pytest.approx(0.0)
    assert prediction.warning is None


def test_goal_rounds_months_up_and_reports_leftover():
    prediction = predict_with_free_capital(1000.0, 300.0, TODAY)

    assert prediction.months_to_goal == 4
    assert prediction.capital_leftover_at_goal == pytest.approx(200.0)


@pytest.mark.parametrize("free_capital", [0.0, -250.0])
def test_goal_without_surplus_is_unreachable(free_capital):
    prediction = predict_with_free_capital(6000.0, free_capital, TODAY)

    assert not prediction.can_afford
    assert math.isinf(prediction.months_to_goal)
    assert prediction.target_date is None
    assert prediction.warning == NO_SURPLUS_WARNING


def test_within_limits_mirrors_current_pace_without_budgets():
    forecast = predict_goal(6000.0, MonthlyStats(income=3000.0, expenses=2500.0), 0.0, TODAY)

    assert forecast.within_limits == forecast.current_pace
    assert forecast.current_pace.months_to_goal == 12


def test_within_limits_uses_budget_ceiling():
    forecast = predict_goal(6000.0, MonthlyStats(income=3000.0, expenses=2500.0), 2000.0, TODAY)

    assert forecast.current_pace.months_to_goal == 12
    assert forecast.within_limits.months_to_goal == 6
    assert forecast.within_limits.monthly_free_capital_used == pytest.approx(1000.0)


def test_goal_affordable_now_with_enough_capital():
    forecast = predict_goal(
        6000.0,
        MonthlyStats(income=3000.0, expenses=3500.0),
        0.0,
        TODAY,
        current_capital=7000.0,
    )

    assert forecast.current_pace.can_afford
    assert forecast.current_pace.months_to_goal == 0
    assert forecast.current_pace.target_date == TODAY
    assert forecast.current_pace.capital_leftover_at_goal == pytest.approx(1000.0)


def test_monthly_stats_average_window_and_recurring(quarter_of_transactions):
    recurring = [
        RecurringObligation(date(2024, 1, 1), "weekly", "expense", 100.0),
        RecurringObligation(date(2024, 1, 1), "yearly", "income", 1200.0),
        RecurringObligation(date(2024, 1, 1), "monthly", "expense", 999.0, is_active=False),
    ]

    stats = compute_monthly_stats(quarter_of_transactions, recurring, date(2024, 3, 31))

    assert stats.income == pytest.approx(3100.0)
    assert stats.expenses == pytest.approx(1033.0)
    assert stats.free_capital == pytest.approx(2067.0)


def test_monthly_stats_without_data_are_zero():
    stats = compute_monthly_stats([], [], TODAY)

    assert stats.income == 0.0
    assert stats.expenses == 0.0


def test_total_budget_ceiling_normalizes_to_month():
    budgets = [BudgetLimit(100.0, "week"), BudgetLimit(1200.0, "year"), BudgetLimit(500.0, "month")]

    assert total_budget_ceiling(budgets) == pytest.approx(433.0 + 100.0 + 500.0)


def test_goal_service_loads_records_once(quarter_of_transactions):
    repository = InMemoryTrendRepository(
        transactions={1: quarter_of_transactions},
        budgets={1: [BudgetLimit(1000.0, "month")]},
        wallets={1: [Wallet(balance=250.0)]},
    )
    service = GoalService(repository, today=lambda: date(2024, 3, 31))

    forecasts = asyncio.run(service.predict_many(1, [2400.0, 4000.0]))
    single = asyncio.run(service.predict(1, 2400.0))

    assert forecasts[0] == single
    assert single.current_pace.months_to_goal == 1
    assert single.within_limits.months_to_goal == 2
    assert forecasts[1].current_pace.months_to_goal == 2
