"""Goal affordability predictions from monthly free capital."""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable

import pandas as pd
from dateutil.relativedelta import relativedelta

from analytics.history import transactions_frame
from core.models import (
    BudgetLimit,
    GoalForecast,
    GoalPrediction,
    MonthlyStats,
    RecurringObligation,
    Transaction,
)

__all__ = [
    "MONTHLY_MULTIPLIERS",
    "STATS_WINDOW_MONTHS",
    "compute_monthly_stats",
    "predict_goal",
    "predict_with_free_capital",
    "total_budget_ceiling",
]

STATS_WINDOW_MONTHS = 3

MONTHLY_MULTIPLIERS: dict[str, float] = {
    "daily": 30.0,
    "weekly": 4.33,
    "monthly": 1.0,
    "quarterly": 1 / 3,
    "yearly": 1 / 12,
}

_BUDGET_MONTHLY_MULTIPLIERS: dict[str, float] = {
    "day": 30.0,
    "week": 4.33,
    "month": 1.0,
    "year": 1 / 12,
}

NO_SURPLUS_WARNING = (
    "Monthly expenses match or exceed income, so the goal cannot be reached at this pace."
)


def compute_monthly_stats(
    transactions: Iterable[Transaction] | pd.DataFrame,
    recurring: Iterable[RecurringObligation],
    today: date,
    *,
    months: int = STATS_WINDOW_MONTHS,
) -> MonthlyStats:
    """Average monthly income and expenses over the trailing window.

    Active recurring obligations are added on top, normalized to a monthly
    cadence. No history yields zero-valued stats.
    """

    frame = transactions if isinstance(transactions, pd.DataFrame) else transactions_frame(transactions)

    income = 0.0
    expenses = 0.0
    if not frame.empty and months > 0:
        end = pd.Timestamp(today).normalize()
        start = end - pd.DateOffset(months=months)
        recent = frame[(frame["date"] > start) & (frame["date"] <= end)]
        income = float(recent.loc[recent["type"] == "income", "amount"].sum()) / months
        expenses = float(recent.loc[recent["type"] == "expense", "amount"].sum()) / months

    for obligation in recurring:
        if not obligation.is_active:
            continue
        multiplier = MONTHLY_MULTIPLIERS.get(str(obligation.frequency))
        if multiplier is None:
            continue
        monthly_amount = _finite(obligation.amount) * multiplier
        if obligation.type == "income":
            income += monthly_amount
        else:
            expenses += monthly_amount

    return MonthlyStats(income=round(income, 2), expenses=round(expenses, 2))


def total_budget_ceiling(budgets: Iterable[BudgetLimit]) -> float:
    """Sum of budget ceilings expressed per month."""

    total = 0.0
    for budget in budgets:
        multiplier = _BUDGET_MONTHLY_MULTIPLIERS.get(str(budget.period), 1.0)
        total += _finite(budget.limit_amount) * multiplier
    return round(total, 2)


def predict_with_free_capital(
    goal_amount: float,
    free_capital: float,
    today: date,
) -> GoalPrediction:
    """Months needed to save ``goal_amount`` at ``free_capital`` per month."""

    free_capital = _finite(free_capital)
    if free_capital <= 0:
        return GoalPrediction(
            can_afford=False,
            months_to_goal=math.inf,
            target_date=None,
            capital_leftover_at_goal=0.0,
            monthly_free_capital_used=free_capital,
            warning=NO_SURPLUS_WARNING,
        )

    months = max(math.ceil(goal_amount / free_capital), 0)
    return GoalPrediction(
        can_afford=True,
        months_to_goal=months,
        target_date=today + relativedelta(months=months),
        capital_leftover_at_goal=round(free_capital * months - goal_amount, 2),
        monthly_free_capital_used=free_capital,
    )


def predict_goal(
    goal_amount: float,
    monthly_stats: MonthlyStats,
    budget_ceiling_total: float,
    today: date,
    *,
    current_capital: float | None = None,
) -> GoalForecast:
    """Predict when a goal is reachable at the realized and the budgeted pace.

    ``within_limits`` replaces realized expenses with the configured budget
    ceilings when any exist and mirrors ``current_pace`` otherwise.
    """

    goal_amount = _finite(goal_amount)

    if current_capital is not None and _finite(current_capital) >= goal_amount:
        affordable_now = GoalPrediction(
            can_afford=True,
            months_to_goal=0,
            target_date=today,
            capital_leftover_at_goal=round(_finite(current_capital) - goal_amount, 2),
            monthly_free_capital_used=monthly_stats.free_capital,
        )
        return GoalForecast(current_pace=affordable_now, within_limits=affordable_now)

    current_pace = predict_with_free_capital(goal_amount, monthly_stats.free_capital, today)
    if budget_ceiling_total > 0:
        budgeted = MonthlyStats(income=monthly_stats.income, expenses=budget_ceiling_total)
        within_limits = predict_with_free_capital(goal_amount, budgeted.free_capital, today)
    else:
        within_limits = current_pace

    return GoalForecast(current_pace=current_pace, within_limits=within_limits)


def _finite(value: object) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0
