"""AI-assisted forecast generation for TrendLine.

The generator asks an OpenAI-compatible chat model for per-day income,
expense and capital predictions. It checks the forecast cache first, sizes
the output token budget to the horizon, enforces a hard deadline on the
call, refuses truncated completions and parses the answer tolerantly.
Every failure surfaces as :class:`AIForecastError`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Callable, Sequence

from openai import APIError, APITimeoutError, AsyncOpenAI

from analytics.forecasting import build_forecast_from_cache, forecast_dates
from config import Settings, get_settings
from core.ai.errors import AIForecastError, AIForecastTimeout, AIForecastTruncated
from core.ai.parsing import parse_forecast_response
from core.cache import ForecastCache, build_cache_key
from core.models import ForecastDayDelta, ForecastRun, HistoricalStats, RecurringObligation, TrendFilters
from prompts import render_prompt

logger = logging.getLogger(__name__)

PROMPT_FORECAST = "forecast"
SYSTEM_PROMPT = "You are a careful financial forecasting assistant. Reply with a JSON array only."
TRUNCATED_FINISH_REASON = "length"

__all__ = [
    "AIForecastGenerator",
    "AIForecastRequest",
    "build_forecast_prompt",
    "estimate_max_tokens",
]

ClientFactory = Callable[[str], AsyncOpenAI]


@dataclass(frozen=True, slots=True)
class AIForecastRequest:
    user_id: int | str
    api_key: str | None
    days_ahead: int
    current_capital: float
    historical_stats: HistoricalStats
    active_recurring: Sequence[RecurringObligation]
    filters: TrendFilters
    history_days: int
    today: date


def estimate_max_tokens(days_ahead: int, settings: Settings | None = None) -> int:
    """Output token budget proportional to the horizon, clamped to sane bounds."""

    settings = settings or get_settings()
    wanted = days_ahead * settings.tokens_per_day + settings.token_buffer
    return max(settings.min_output_tokens, min(settings.max_output_tokens, wanted))


def _recurring_payload(recurring: Sequence[RecurringObligation]) -> list[dict[str, Any]]:
    return [
        {
            "type": item.type,
            "amount": float(item.amount),
            "description": item.description,
            "frequency": item.frequency,
            "nextDate": item.next_date.isoformat(),
        }
        for item in recurring
    ]


def build_forecast_prompt(
    stats: HistoricalStats,
    recurring: Sequence[RecurringObligation],
    days_ahead: int,
    current_capital: float,
    today: date,
) -> str:
    has_recurring_income = any(item.type == "income" for item in recurring)
    if has_recurring_income:
        income_rule = (
            "Add recurring income only on the dates it falls due; "
            "predictedIncome is 0 on every other day."
        )
    else:
        income_rule = (
            "There is no recurring income, so predictedIncome must be 0 on every day "
            "(a flat zero income baseline)."
        )

    days = forecast_dates(max(days_ahead, 1), today)
    return render_prompt(
        PROMPT_FORECAST,
        {
            "days_ahead": days_ahead,
            "window_days": stats.window_days,
            "avg_daily_income": f"{stats.avg_daily_income:.2f}",
            "avg_daily_expense": f"{stats.avg_daily_expense:.2f}",
            "total_income": f"{stats.total_income:.2f}",
            "total_expense": f"{stats.total_expense:.2f}",
            "income_count": stats.income_count,
            "expense_count": stats.expense_count,
            "recurring_json": json.dumps(_recurring_payload(recurring), ensure_ascii=False, indent=2),
            "current_capital": f"{current_capital:.2f}",
            "income_rule": income_rule,
            "example_date": days[0].isoformat(),
            "start_date": days[0].isoformat(),
        },
    )


def _default_client_factory(api_key: str) -> AsyncOpenAI:
    kwargs = get_settings().openai_client_kwargs
    kwargs["api_key"] = api_key
    return AsyncOpenAI(**kwargs)


def _align_to_horizon(
    deltas: list[ForecastDayDelta],
    days_ahead: int,
    today: date,
) -> list[ForecastDayDelta]:
    """Re-date model rows onto tomorrow onwards and fit them to the horizon."""

    if len(deltas) != days_ahead:
        logger.warning("AI forecast returned %d rows for a %d-day horizon", len(deltas), days_ahead)

    aligned: list[ForecastDayDelta] = []
    last_capital = deltas[-1].predicted_capital if deltas else 0.0
    for index, day in enumerate(forecast_dates(days_ahead, today)):
        if index < len(deltas):
            aligned.append(replace(deltas[index], date=day))
        else:
            aligned.append(
                ForecastDayDelta(
                    date=day,
                    predicted_income=0.0,
                    predicted_expense=0.0,
                    predicted_capital=last_capital,
                )
            )
    return aligned


class AIForecastGenerator:
    """Produces per-day forecast deltas from a language model, with caching."""

    def __init__(
        self,
        cache: ForecastCache,
        *,
        settings: Settings | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._cache = cache
        self._settings = settings or get_settings()
        self._client_factory = client_factory or _default_client_factory

    async def generate(self, request: AIForecastRequest) -> ForecastRun:
        cache_key = build_cache_key(
            request.user_id,
            request.history_days,
            request.days_ahead,
            True,
            request.filters,
        )

        cached = await self._cache.get(cache_key)
        if cached is not None:
            logger.info(
                "Using cached AI forecast for user %s (expires %s)",
                request.user_id,
                cached.expires_at.isoformat(),
            )
            return ForecastRun(
                deltas=build_forecast_from_cache(cached, request.current_capital, request.today),
                used_ai=True,
                from_cache=True,
                cache_expires_at=cached.expires_at,
            )

        api_key = request.api_key or self._settings.openai_api_key
        if not api_key:
            raise AIForecastError("Missing API key for AI forecast.")

        text = await self._complete(request, api_key)
        deltas = _align_to_horizon(parse_forecast_response(text), request.days_ahead, request.today)

        entry = await self._cache.set(
            cache_key,
            daily_income=[delta.predicted_income for delta in deltas],
            daily_expense=[delta.predicted_expense for delta in deltas],
            daily_capital=[delta.predicted_capital for delta in deltas],
            base_capital=request.current_capital,
        )
        return ForecastRun(
            deltas=deltas,
            used_ai=True,
            from_cache=False,
            cache_expires_at=entry.expires_at,
        )

    async def _complete(self, request: AIForecastRequest, api_key: str) -> str:
        prompt = build_forecast_prompt(
            request.historical_stats,
            request.active_recurring,
            request.days_ahead,
            request.current_capital,
            request.today,
        )
        max_tokens = estimate_max_tokens(request.days_ahead, self._settings)
        timeout = self._settings.ai_timeout_seconds
        logger.info("Generating %d-day AI forecast, max_tokens=%d", request.days_ahead, max_tokens)
        try:
            # Each call owns its client; leaving the block closes its HTTP pool.
            async with self._client_factory(api_key) as client:
                response = await asyncio.wait_for(
                    client.chat.completions.create(
                        model=self._settings.openai_model,
                        messages=[
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": prompt},
                        ],
                        max_tokens=max_tokens,
                        temperature=0.2,
                    ),
                    timeout=timeout,
                )
        except asyncio.TimeoutError as exc:
            raise AIForecastTimeout(f"AI forecast timed out after {timeout:g}s") from exc
        except APITimeoutError as exc:
            raise AIForecastTimeout(f"AI forecast timed out: {exc}") from exc
        except APIError as exc:
            raise AIForecastError(f"OpenAI API error: {exc}") from exc

        try:
            choice = response.choices[0]
            finish_reason = choice.finish_reason
            text = choice.message.content or ""
        except (AttributeError, IndexError) as exc:  # pragma: no cover - unexpected SDK output
            raise AIForecastError("Unexpected response format from OpenAI API") from exc

        logger.info("AI forecast response received, finish_reason=%s", finish_reason)
        if finish_reason == TRUNCATED_FINISH_REASON:
            logger.error("AI forecast truncated at max_tokens=%d", max_tokens)
            raise AIForecastTruncated(
                "AI forecast was cut short. Try reducing forecast days."
            )
        if not text.strip():
            raise AIForecastError("OpenAI response was empty")
        return text
