"""Baseline forecast generation and historical statistics helpers."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

import pandas as pd

from analytics.history import transactions_frame
from core.models import CacheEntry, ForecastDayDelta, HistoricalStats, Transaction

__all__ = [
    "build_forecast_from_cache",
    "compute_historical_stats",
    "forecast_dates",
    "generate_simple_forecast",
]


def forecast_dates(days_ahead: int, today: date) -> list[date]:
    """Return the ``days_ahead`` dates starting tomorrow."""

    return [today + timedelta(days=offset) for offset in range(1, max(days_ahead, 0) + 1)]


def generate_simple_forecast(
    days_ahead: int,
    current_capital: float,
    today: date,
) -> list[ForecastDayDelta]:
    """Return a flat forecast with zero income and expense on every day.

    Realistic contributions come from the forecast filters only; a non-zero
    baseline here would be counted twice once filters are layered on.
    """

    return [
        ForecastDayDelta(
            date=day,
            predicted_income=0.0,
            predicted_expense=0.0,
            predicted_capital=float(current_capital),
        )
        for day in forecast_dates(days_ahead, today)
    ]


def build_forecast_from_cache(
    cached: CacheEntry,
    current_capital: float,
    today: date,
) -> list[ForecastDayDelta]:
    """Replay cached AI income and expense onto dates starting tomorrow.

    The cached capital is ignored; informational capital is recomputed as a
    running sum from ``current_capital`` so it stays aligned with today's
    balance.
    """

    running_capital = float(current_capital)
    deltas: list[ForecastDayDelta] = []
    days = forecast_dates(len(cached.daily_income), today)
    for index, day in enumerate(days):
        income = float(cached.daily_income[index] or 0.0)
        expense = float(cached.daily_expense[index] or 0.0) if index < len(cached.daily_expense) else 0.0
        running_capital = running_capital + income - expense
        deltas.append(
            ForecastDayDelta(
                date=day,
                predicted_income=income,
                predicted_expense=expense,
                predicted_capital=running_capital,
            )
        )
    return deltas


def compute_historical_stats(
    transactions: Iterable[Transaction] | pd.DataFrame,
    today: date,
    window_days: int = 90,
) -> HistoricalStats:
    """Summarise realized income and expense over the trailing window."""

    frame = transactions if isinstance(transactions, pd.DataFrame) else transactions_frame(transactions)
    if window_days <= 0 or frame.empty:
        return HistoricalStats(window_days=max(window_days, 0))

    end = pd.Timestamp(today).normalize()
    cutoff = end - pd.Timedelta(days=window_days)
    recent = frame[(frame["date"] >= cutoff) & (frame["date"] <= end)]

    incomes = recent.loc[recent["type"] == "income", "amount"]
    expenses = recent.loc[recent["type"] == "expense", "amount"]
    total_income = float(incomes.sum())
    total_expense = float(expenses.sum())

    days = window_days if not recent.empty else 1
    return HistoricalStats(
        avg_daily_income=total_income / days,
        avg_daily_expense=total_expense / days,
        total_income=total_income,
        total_expense=total_expense,
        income_count=int(len(incomes)),
        expense_count=int(len(expenses)),
        window_days=window_days,
    )
