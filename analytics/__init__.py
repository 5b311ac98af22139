"""Analytics helpers shared across TrendLine services."""

from analytics.capital import (
    OpeningBalanceDrift,
    apply_capital,
    current_capital,
    opening_balance_drift,
    synchronize_capital,
)
from analytics.filters import (
    FilterSources,
    apply_filters,
    budget_total_for_date,
    daily_budget_share,
    load_filter_sources,
    planned_for_date,
    recurring_for_date,
)
from analytics.forecasting import (
    build_forecast_from_cache,
    compute_historical_stats,
    forecast_dates,
    generate_simple_forecast,
)
from analytics.goals import compute_monthly_stats, predict_goal, predict_with_free_capital, total_budget_ceiling
from analytics.history import (
    build_daily_history,
    make_cumulative,
    make_cumulative_from_base,
    transactions_frame,
    window_net,
)
from analytics.schedule import occurs_on

__all__ = [
    "occurs_on",
    "transactions_frame",
    "build_daily_history",
    "make_cumulative",
    "make_cumulative_from_base",
    "window_net",
    "OpeningBalanceDrift",
    "apply_capital",
    "current_capital",
    "opening_balance_drift",
    "synchronize_capital",
    "build_forecast_from_cache",
    "compute_historical_stats",
    "forecast_dates",
    "generate_simple_forecast",
    "FilterSources",
    "apply_filters",
    "budget_total_for_date",
    "daily_budget_share",
    "load_filter_sources",
    "planned_for_date",
    "recurring_for_date",
    "compute_monthly_stats",
    "predict_goal",
    "predict_with_free_capital",
    "total_budget_ceiling",
]
