"""AI-focused helpers for TrendLine."""

from .errors import AIForecastError, AIForecastParseError, AIForecastTimeout, AIForecastTruncated
from .forecast import AIForecastGenerator, AIForecastRequest, build_forecast_prompt, estimate_max_tokens
from .parsing import parse_forecast_response

__all__ = [
    "AIForecastError",
    "AIForecastGenerator",
    "AIForecastParseError",
    "AIForecastRequest",
    "AIForecastTimeout",
    "AIForecastTruncated",
    "build_forecast_prompt",
    "estimate_max_tokens",
    "parse_forecast_response",
]
