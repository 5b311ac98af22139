"""Core logic for assembling TrendLine capital trends."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Sequence

import pandas as pd

from analytics.capital import (
    apply_capital,
    current_capital,
    opening_balance_drift,
    synchronize_capital,
)
from analytics.filters import apply_filters, load_filter_sources
from analytics.forecasting import compute_historical_stats, generate_simple_forecast
from analytics.history import (
    build_daily_history,
    make_cumulative,
    make_cumulative_from_base,
    transactions_frame,
    window_net,
)
from config import Settings, get_settings
from core.ai import AIForecastError, AIForecastGenerator, AIForecastRequest, AIForecastTimeout
from core.ai.forecast import ClientFactory
from core.cache import ForecastCache, InMemoryCacheStore
from core.data_access import TrendRepository
from core.models import (
    ForecastDayDelta,
    ForecastRun,
    RecurringObligation,
    TrendMetadata,
    TrendPoint,
    TrendRequest,
    TrendResult,
    Wallet,
)
from core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

__all__ = ["TrendService", "TrendValidationError"]


class TrendValidationError(ValueError):
    """Raised when a trend request cannot be served as given."""


class TrendService:
    """Stitches history and forecast into one continuous capital series."""

    def __init__(
        self,
        repository: TrendRepository,
        *,
        cache: ForecastCache | None = None,
        ai_generator: AIForecastGenerator | None = None,
        settings: Settings | None = None,
        client_factory: ClientFactory | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._repository = repository
        self._settings = settings or get_settings()
        self._cache = cache or ForecastCache(
            InMemoryCacheStore(),
            ttl_seconds=self._settings.cache_ttl_seconds,
        )
        self._ai = ai_generator or AIForecastGenerator(
            self._cache,
            settings=self._settings,
            client_factory=client_factory,
        )
        self._today = today

    @property
    def cache(self) -> ForecastCache:
        return self._cache

    async def compute_trend(self, request: TrendRequest) -> TrendResult:
        if request.history_days is None:
            request = replace(request, history_days=self._settings.default_history_days)
        self._validate(request)
        user_id = request.user_id
        today = self._today()

        transactions, wallets = await asyncio.gather(
            self._repository.get_transactions(user_id),
            self._repository.get_wallets(user_id),
        )
        frame = transactions_frame(transactions)

        daily = build_daily_history(frame, request.history_days, today)
        cumulative = make_cumulative(daily)

        capital_now = current_capital(wallets)
        capital_at_start = synchronize_capital(capital_now, window_net(cumulative))
        self._check_drift(user_id, wallets, transactions)

        history = apply_capital(cumulative, capital_at_start, today=today)

        if request.forecast_days == 0:
            return TrendResult(
                points=history,
                metadata=TrendMetadata(),
                capital_at_window_start=capital_at_start,
            )

        run, recurring = await self._baseline(request, frame, capital_now, today)

        try:
            sources = await load_filter_sources(
                self._repository,
                user_id,
                request.filters,
                recurring=recurring,
            )
        except Exception as exc:
            logger.warning("Forecast filter sources unavailable for user %s: %s", user_id, exc)
            deltas = list(run.deltas)
        else:
            deltas = apply_filters(run.deltas, sources, request.filters)

        forecast = self._forecast_points(deltas, cumulative, capital_at_start)

        return TrendResult(
            points=history + forecast,
            metadata=TrendMetadata(
                used_ai=run.used_ai,
                from_cache=run.from_cache,
                cache_expires_at=run.cache_expires_at.isoformat() if run.cache_expires_at else None,
            ),
            capital_at_window_start=capital_at_start,
        )

    def _validate(self, request: TrendRequest) -> None:
        if request.user_id is None or request.user_id == "":
            raise TrendValidationError("A user id is required to compute a trend.")

        for name, value, maximum in (
            ("history_days", request.history_days, self._settings.max_history_days),
            ("forecast_days", request.forecast_days, self._settings.max_forecast_days),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TrendValidationError(f"{name} must be an integer, got {value!r}.")
            if value < 0:
                raise TrendValidationError(f"{name} must not be negative, got {value}.")
            if value > maximum:
                raise TrendValidationError(f"{name} must be at most {maximum}, got {value}.")

    def _check_drift(self, user_id, wallets: Sequence[Wallet], transactions) -> None:
        if not any(wallet.opening_balance is not None for wallet in wallets):
            return
        drift = opening_balance_drift(wallets, transactions)
        if drift.is_significant:
            logger.warning(
                "Opening balance drift for user %s: recorded %.2f, implied %.2f (%.2f)",
                user_id,
                drift.recorded_opening,
                drift.synced_opening,
                drift.drift,
            )

    async def _baseline(
        self,
        request: TrendRequest,
        frame: pd.DataFrame,
        capital_now: float,
        today: date,
    ) -> tuple[ForecastRun, Sequence[RecurringObligation] | None]:
        """Return the forecast baseline and any recurring records already loaded."""

        if not request.use_ai:
            simple = generate_simple_forecast(request.forecast_days, capital_now, today)
            return ForecastRun(deltas=simple, used_ai=False), None

        outcome = await self._try_ai(request, frame, capital_now, today)
        if isinstance(outcome, Ok):
            return outcome.value

        if outcome.reason == "timeout":
            logger.warning("AI forecast timed out, using simple forecast: %s", outcome.error)
        else:
            logger.error("AI forecast failed (%s), using simple forecast: %s", outcome.reason, outcome.error)
        simple = generate_simple_forecast(request.forecast_days, capital_now, today)
        return ForecastRun(deltas=simple, used_ai=False), None

    async def _try_ai(
        self,
        request: TrendRequest,
        frame: pd.DataFrame,
        capital_now: float,
        today: date,
    ) -> Result[tuple[ForecastRun, Sequence[RecurringObligation]]]:
        # Record loading belongs to the AI leg; any failure here falls back.
        try:
            recurring = await self._repository.get_recurring(request.user_id)
            ai_request = AIForecastRequest(
                user_id=request.user_id,
                api_key=request.api_key,
                days_ahead=request.forecast_days,
                current_capital=capital_now,
                historical_stats=compute_historical_stats(frame, today, self._settings.stats_window_days),
                active_recurring=tuple(item for item in recurring if item.is_active),
                filters=request.filters,
                history_days=request.history_days,
                today=today,
            )
            return Ok((await self._ai.generate(ai_request), recurring))
        except AIForecastTimeout as exc:
            return Err("timeout", exc)
        except AIForecastError as exc:
            return Err("ai_error", exc)
        except Exception as exc:
            logger.exception("Unexpected failure in AI forecast for user %s", request.user_id)
            return Err("ai_error", exc)

    @staticmethod
    def _forecast_points(
        deltas: Sequence[ForecastDayDelta],
        cumulative: pd.DataFrame,
        capital_at_start: float,
    ) -> list[TrendPoint]:
        if cumulative.empty:
            base_income = base_expense = 0.0
        else:
            last = cumulative.iloc[-1]
            base_income = float(last["income"])
            base_expense = float(last["expense"])

        forecast_cumulative = make_cumulative_from_base(deltas, base_income, base_expense)
        return apply_capital(forecast_cumulative, capital_at_start, is_forecast=True)
