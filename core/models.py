"""Shared data model definitions for the TrendLine engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Literal, TypedDict

import pandas as pd

EntryType = Literal["income", "expense"]
Frequency = Literal["daily", "weekly", "monthly", "quarterly", "yearly"]
BudgetPeriod = Literal["day", "week", "month", "year"]


@dataclass(frozen=True)
class Transaction:
    """A realized transaction, already normalized to the reporting currency."""

    date: date
    type: EntryType
    amount: float


@dataclass(frozen=True)
class Wallet:
    balance: float
    opening_balance: float | None = None


@dataclass(frozen=True)
class RecurringObligation:
    next_date: date
    frequency: str
    type: EntryType
    amount: float
    is_active: bool = True
    description: str = ""


@dataclass(frozen=True)
class PlannedItem:
    """A one-off planned income or expense.

    ``status`` follows the storage layer: planned expenses are live while
    ``"planned"``, planned income while ``"pending"``.
    """

    date: date | None
    amount: float
    status: str


@dataclass(frozen=True)
class BudgetLimit:
    limit_amount: float
    period: str
    start_date: date | None = None


@dataclass(frozen=True)
class TrendFilters:
    include_recurring_income: bool = True
    include_recurring_expense: bool = True
    include_planned_income: bool = True
    include_planned_expenses: bool = True
    include_budget_limits: bool = False

    @property
    def any_enabled(self) -> bool:
        return any(asdict(self).values())


@dataclass(frozen=True)
class TrendPoint:
    date: date
    income: float
    expense: float
    capital: float
    is_today: bool = False
    is_forecast: bool = False


@dataclass(frozen=True)
class ForecastDayDelta:
    date: date
    predicted_income: float
    predicted_expense: float
    predicted_capital: float


@dataclass(frozen=True)
class CacheEntry:
    daily_income: tuple[float, ...]
    daily_expense: tuple[float, ...]
    daily_capital: tuple[float, ...]
    base_capital: float
    generated_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class HistoricalStats:
    avg_daily_income: float = 0.0
    avg_daily_expense: float = 0.0
    total_income: float = 0.0
    total_expense: float = 0.0
    income_count: int = 0
    expense_count: int = 0
    window_days: int = 0


@dataclass(frozen=True)
class ForecastRun:
    """Per-day deltas from one generator together with their provenance."""

    deltas: list[ForecastDayDelta]
    used_ai: bool
    from_cache: bool = False
    cache_expires_at: datetime | None = None


class TrendMetadataDict(TypedDict):
    usedAI: bool
    fromCache: bool
    cacheExpiresAt: str | None


@dataclass(frozen=True)
class TrendMetadata:
    used_ai: bool = False
    from_cache: bool = False
    cache_expires_at: str | None = None

    def to_dict(self) -> TrendMetadataDict:
        return {
            "usedAI": self.used_ai,
            "fromCache": self.from_cache,
            "cacheExpiresAt": self.cache_expires_at,
        }


@dataclass(frozen=True)
class TrendRequest:
    """Parameters of one trend computation.

    A ``history_days`` of ``None`` uses the configured default window.
    """

    user_id: int | str | None
    history_days: int | None = None
    forecast_days: int = 0
    use_ai: bool = False
    filters: TrendFilters = field(default_factory=TrendFilters)
    api_key: str | None = None


@dataclass(frozen=True)
class TrendResult:
    points: list[TrendPoint]
    metadata: TrendMetadata
    capital_at_window_start: float

    @property
    def history(self) -> list[TrendPoint]:
        return [point for point in self.points if not point.is_forecast]

    @property
    def forecast(self) -> list[TrendPoint]:
        return [point for point in self.points if point.is_forecast]

    def to_frame(self) -> pd.DataFrame:
        """Return the series as a frame indexed by day."""

        columns = ["date", "income", "expense", "capital", "is_today", "is_forecast"]
        frame = pd.DataFrame([asdict(point) for point in self.points], columns=columns)
        if not frame.empty:
            frame["date"] = pd.to_datetime(frame["date"])
        return frame.set_index("date")

    def to_dict(self) -> dict[str, Any]:
        return {
            "trendData": [
                {
                    "date": point.date.isoformat(),
                    "income": point.income,
                    "expense": point.expense,
                    "capital": point.capital,
                    "isToday": point.is_today,
                    "isForecast": point.is_forecast,
                }
                for point in self.points
            ],
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True)
class MonthlyStats:
    income: float
    expenses: float

    @property
    def free_capital(self) -> float:
        return self.income - self.expenses


@dataclass(frozen=True)
class GoalPrediction:
    can_afford: bool
    months_to_goal: float
    target_date: date | None
    capital_leftover_at_goal: float
    monthly_free_capital_used: float
    warning: str | None = None


@dataclass(frozen=True)
class GoalForecast:
    current_pace: GoalPrediction
    within_limits: GoalPrediction


__all__ = [
    "BudgetLimit",
    "BudgetPeriod",
    "CacheEntry",
    "EntryType",
    "ForecastDayDelta",
    "ForecastRun",
    "Frequency",
    "GoalForecast",
    "GoalPrediction",
    "HistoricalStats",
    "MonthlyStats",
    "PlannedItem",
    "RecurringObligation",
    "Transaction",
    "TrendFilters",
    "TrendMetadata",
    "TrendMetadataDict",
    "TrendPoint",
    "TrendRequest",
    "TrendResult",
    "Wallet",
]
