"""Forecast filters layering recurring, planned and budget amounts onto a baseline."""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from analytics.schedule import occurs_on
from core.models import BudgetLimit, ForecastDayDelta, PlannedItem, RecurringObligation, TrendFilters

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from core.data_access import TrendRepository

logger = logging.getLogger(__name__)

__all__ = [
    "BUDGET_PERIOD_DAYS",
    "FilterSources",
    "apply_filters",
    "budget_total_for_date",
    "daily_budget_share",
    "load_filter_sources",
    "planned_for_date",
    "recurring_for_date",
]

BUDGET_PERIOD_DAYS: dict[str, int] = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}
_DEFAULT_BUDGET_DAYS = 30

PLANNED_EXPENSE_STATUS = "planned"
PLANNED_INCOME_STATUS = "pending"


@dataclass(frozen=True)
class FilterSources:
    """Every record the enabled filters need, fetched once per computation."""

    recurring: tuple[RecurringObligation, ...] = ()
    planned_income: tuple[PlannedItem, ...] = ()
    planned_expenses: tuple[PlannedItem, ...] = ()
    budgets: tuple[BudgetLimit, ...] = ()


async def load_filter_sources(
    repository: "TrendRepository",
    user_id: int | str,
    filters: TrendFilters,
    *,
    recurring: Sequence[RecurringObligation] | None = None,
) -> FilterSources:
    """Fetch the records for every enabled filter in one concurrent batch.

    ``recurring`` may carry obligations the caller already loaded.
    """

    wants_recurring = filters.include_recurring_income or filters.include_recurring_expense

    async def _given(items: Sequence[Any]) -> list[Any]:
        return list(items)

    if not wants_recurring:
        recurring_source = _given(())
    elif recurring is not None:
        recurring_source = _given(recurring)
    else:
        recurring_source = repository.get_recurring(user_id)

    recurring, planned_income, planned_expenses, budgets = await asyncio.gather(
        recurring_source,
        repository.get_planned_income(user_id) if filters.include_planned_income else _given(()),
        repository.get_planned_expenses(user_id) if filters.include_planned_expenses else _given(()),
        repository.get_budgets(user_id) if filters.include_budget_limits else _given(()),
    )

    return FilterSources(
        recurring=tuple(item for item in recurring if item.is_active),
        planned_income=tuple(item for item in planned_income if item.status == PLANNED_INCOME_STATUS),
        planned_expenses=tuple(item for item in planned_expenses if item.status == PLANNED_EXPENSE_STATUS),
        budgets=tuple(budgets),
    )


def daily_budget_share(budget: BudgetLimit) -> float:
    """Daily equivalent of a budget ceiling."""

    days = BUDGET_PERIOD_DAYS.get(str(budget.period), _DEFAULT_BUDGET_DAYS)
    return _coerce_amount(budget.limit_amount) / days


def recurring_for_date(
    recurring: Iterable[RecurringObligation],
    day: date,
    entry_type: str,
) -> float:
    total = 0.0
    for obligation in recurring:
        if not obligation.is_active or obligation.type != entry_type:
            continue
        if occurs_on(obligation, day):
            total += _coerce_amount(obligation.amount)
    return total


def planned_for_date(items: Iterable[PlannedItem], day: date) -> float:
    return sum(_coerce_amount(item.amount) for item in items if item.date == day)


def budget_total_for_date(budgets: Iterable[BudgetLimit], day: date) -> float:
    total = 0.0
    for budget in budgets:
        if budget.start_date is not None and day < budget.start_date:
            continue
        total += daily_budget_share(budget)
    return total


def apply_filters(
    deltas: Sequence[ForecastDayDelta],
    sources: FilterSources,
    filters: TrendFilters,
) -> list[ForecastDayDelta]:
    """Add every enabled filter's contribution to each forecast day.

    Contributions are independent and additive. ``predicted_capital`` is left
    untouched; capital is recomputed by the caller.
    """

    filtered: list[ForecastDayDelta] = []
    for delta in deltas:
        income = float(delta.predicted_income)
        expense = float(delta.predicted_expense)

        if filters.include_recurring_income:
            income += recurring_for_date(sources.recurring, delta.date, "income")
        if filters.include_recurring_expense:
            expense += recurring_for_date(sources.recurring, delta.date, "expense")
        if filters.include_planned_income:
            income += planned_for_date(sources.planned_income, delta.date)
        if filters.include_planned_expenses:
            expense += planned_for_date(sources.planned_expenses, delta.date)
        if filters.include_budget_limits:
            expense += budget_total_for_date(sources.budgets, delta.date)

        filtered.append(replace(delta, predicted_income=income, predicted_expense=expense))

    if filters.any_enabled:
        logger.debug("Applied forecast filters to %d days", len(filtered))
    return filtered


def _coerce_amount(value: object) -> float:
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0
