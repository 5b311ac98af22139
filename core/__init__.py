"""Core domain package for the TrendLine engine."""

from .models import (
    BudgetLimit,
    ForecastDayDelta,
    GoalForecast,
    GoalPrediction,
    PlannedItem,
    RecurringObligation,
    Transaction,
    TrendFilters,
    TrendMetadata,
    TrendPoint,
    TrendRequest,
    TrendResult,
    Wallet,
)
from .result import Err, Ok, Result

__all__ = [
    "BudgetLimit",
    "ForecastDayDelta",
    "GoalForecast",
    "GoalPrediction",
    "PlannedItem",
    "RecurringObligation",
    "Transaction",
    "TrendFilters",
    "TrendMetadata",
    "TrendPoint",
    "TrendRequest",
    "TrendResult",
    "Wallet",
    "Err",
    "Ok",
    "Result",
]
