"""Unit tests for the forecast filter pipeline."""

from __future__ import annotations

import asyncio
import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from analytics.filters import (
    FilterSources,
    apply_filters,
    budget_total_for_date,
    daily_budget_share,
    load_filter_sources,
)
from analytics.forecasting import generate_simple_forecast
from core.data_access import InMemoryTrendRepository
from core.models import BudgetLimit, PlannedItem, RecurringObligation, TrendFilters

TODAY = date(2024, 3, 10)
NO_FILTERS = TrendFilters(
    include_recurring_income=False,
    include_recurring_expense=False,
    include_planned_income=False,
    include_planned_expenses=False,
    include_budget_limits=False,
)


@pytest.fixture()
def repository() -> InMemoryTrendRepository:
    return InMemoryTrendRepository(
        recurring={
            1: [
                RecurringObligation(date(2024, 3, 15), "monthly", "expense", 100.0, description="Gym"),
                RecurringObligation(date(2024, 3, 12), "weekly", "income", 40.0, is_active=False),
            ]
        },
        planned_income={
            1: [
                PlannedItem(date(2024, 3, 13), 200.0, "pending"),
                PlannedItem(date(2024, 3, 14), 999.0, "received"),
            ]
        },
        planned_expenses={
            1: [
                PlannedItem(date(2024, 3, 12), 50.0, "planned"),
                PlannedItem(date(2024, 3, 12), 75.0, "cancelled"),
            ]
        },
        budgets={1: [BudgetLimit(300.0, "month"), BudgetLimit(70.0, "week", start_date=date(2024, 3, 14))]},
    )


def test_daily_budget_share_by_period():
    assert daily_budget_share(BudgetLimit(10.0, "day")) == pytest.approx(10.0)
    assert daily_budget_share(BudgetLimit(70.0, "week")) == pytest.approx(10.0)
    assert daily_budget_share(BudgetLimit(300.0, "month")) == pytest.approx(10.0)
    assert daily_budget_share(BudgetLimit(365.0, "year")) == pytest.approx(1.0)
    assert daily_budget_share(BudgetLimit(60.0, "fortnight")) == pytest.approx(2.0)


def test_budget_total_skips_budgets_not_started():
    budgets = [BudgetLimit(300.0, "month"), BudgetLimit(70.0, "week", start_date=date(2024, 3, 14))]

    assert budget_total_for_date(budgets, date(2024, 3, 13)) == pytest.approx(10.0)
    assert budget_total_for_date(budgets, date(2024, 3, 14)) == pytest.approx(20.0)


def test_no_filters_leave_baseline_untouched():
    baseline = generate_simple_forecast(5, 2000.0, TODAY)

    filtered = apply_filters(baseline, FilterSources(), NO_FILTERS)

    assert filtered == baseline


def test_load_filter_sources_keeps_live_records_only(repository):
    sources = asyncio.run(load_filter_sources(repository, 1, TrendFilters(include_budget_limits=True)))

    assert len(sources.recurring) == 1
    assert [item.amount for item in sources.planned_income] == [200.0]
    assert [item.amount for item in sources.planned_expenses] == [50.0]
    assert len(sources.budgets) == 2


def test_load_filter_sources_skips_disabled_sources(repository):
    sources = asyncio.run(load_filter_sources(repository, 1, NO_FILTERS))

    assert sources == FilterSources()


def test_apply_filters_adds_each_enabled_source(repository):
    filters = TrendFilters(include_budget_limits=True)
    sources = asyncio.run(load_filter_sources(repository, 1, filters))
    baseline = generate_simple_forecast(5, 2000.0, TODAY)

    filtered = {delta.date: delta for delta in apply_filters(baseline, sources, filters)}

    assert filtered[date(2024, 3, 11)].predicted_expense == pytest.approx(10.0)
    assert filtered[date(2024, 3, 12)].predicted_expense == pytest.approx(60.0)
    assert filtered[date(2024, 3, 13)].predicted_income == pytest.approx(200.0)
    assert filtered[date(2024, 3, 14)].predicted_income == pytest.approx(0.0)
    assert filtered[date(2024, 3, 14)].predicted_expense == pytest.approx(20.0)
    assert filtered[date(2024, 3, 15)].predicted_expense == pytest.approx(120.0)
    assert all(delta.predicted_capital == 2000.0 for delta in filtered.values())
