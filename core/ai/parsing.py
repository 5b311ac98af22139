"""Tolerant parsing of forecast arrays returned by the language model."""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from core.ai.errors import AIForecastParseError
from core.models import ForecastDayDelta

logger = logging.getLogger(__name__)

__all__ = ["ForecastRow", "parse_forecast_response", "strip_code_fences"]

RAW_TEXT_LOG_LIMIT = 500

_FENCE_RE = re.compile(r"```json\n?|```\n?")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")
_WHITESPACE_RE = re.compile(r"\s+")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


class ForecastRow(BaseModel):
    """One day of the model's answer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    day: date = Field(alias="date")
    predicted_income: float = Field(default=0.0, ge=0, allow_inf_nan=False, alias="predictedIncome")
    predicted_expense: float = Field(default=0.0, ge=0, allow_inf_nan=False, alias="predictedExpense")
    predicted_capital: float = Field(default=0.0, alias="predictedCapital")

    @field_validator("predicted_income", "predicted_expense", "predicted_capital", mode="before")
    @classmethod
    def _blank_to_zero(cls, value: Any) -> Any:
        if value is None or value == "":
            return 0.0
        return value

    def to_delta(self) -> ForecastDayDelta:
        return ForecastDayDelta(
            date=self.day,
            predicted_income=self.predicted_income,
            predicted_expense=self.predicted_expense,
            predicted_capital=self.predicted_capital,
        )


_ROWS = TypeAdapter(list[ForecastRow])


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _direct(text: str) -> Any:
    return json.loads(text)


def _normalized(text: str) -> Any:
    cleaned = text.replace("\n", " ")
    cleaned = _WHITESPACE_RE.sub(" ", cleaned)
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    return json.loads(cleaned)


def _extracted(text: str) -> Any:
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", text)
    match = _ARRAY_RE.search(cleaned)
    if match is None:
        raise ValueError("No JSON array found in response")
    return json.loads(match.group(0))


_STRATEGIES: tuple[tuple[str, Callable[[str], Any]], ...] = (
    ("direct", _direct),
    ("normalized", _normalized),
    ("extracted", _extracted),
)


def parse_forecast_response(text: str) -> list[ForecastDayDelta]:
    """Parse the model's JSON array, escalating through three strategies.

    Strategies run in order: direct parse, whitespace and trailing-comma
    normalization, then extraction of the first bracket-delimited array.
    Raises :class:`AIForecastParseError` only when all of them fail or the
    decoded rows do not have the expected shape.
    """

    cleaned = strip_code_fences(text)
    decoded: Any = None
    for name, strategy in _STRATEGIES:
        try:
            candidate = strategy(cleaned)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning("Forecast parse strategy '%s' failed: %s", name, exc)
            continue
        if not isinstance(candidate, list):
            logger.warning("Forecast parse strategy '%s' produced %s, not a list", name, type(candidate).__name__)
            continue
        decoded = candidate
        logger.debug("Forecast parse strategy '%s' produced %d rows", name, len(candidate))
        break

    if decoded is None:
        logger.error(
            "All forecast parse strategies failed (length %d): %s",
            len(text),
            text[:RAW_TEXT_LOG_LIMIT],
        )
        raise AIForecastParseError("AI response could not be parsed. The forecast data may be incomplete.")

    try:
        rows = _ROWS.validate_python(decoded)
    except ValidationError as exc:
        logger.error("Forecast rows have an unexpected shape: %s", text[:RAW_TEXT_LOG_LIMIT])
        raise AIForecastParseError(f"AI forecast rows are malformed: {exc.error_count()} errors") from exc

    return [row.to_delta() for row in rows]
