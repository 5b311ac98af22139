"""Exceptions raised by the AI forecast generator."""

from __future__ import annotations

__all__ = [
    "AIForecastError",
    "AIForecastParseError",
    "AIForecastTimeout",
    "AIForecastTruncated",
]


class AIForecastError(RuntimeError):
    """Raised when the AI forecast cannot be generated."""


class AIForecastTimeout(AIForecastError):
    """The completion did not finish before the deadline."""


class AIForecastTruncated(AIForecastError):
    """The completion stopped at the output token limit."""


class AIForecastParseError(AIForecastError):
    """The completion text held no usable forecast array."""
