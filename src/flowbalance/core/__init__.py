"""Core utilities and shared functionality."""

from flowbalance.core.timezone import (
    now_utc,
    to_utc_naive,
    parse_datetime_utc,
    start_of_day,
    end_of_day,
    future_horizon,
    UTC,
)
from flowbalance.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    ForbiddenError,
    ConflictError,
    ExchangeRateApiError,
)
from flowbalance.core.formatting import format_currency, format_number, format_percentage

__all__ = [
    "now_utc",
    "to_utc_naive",
    "parse_datetime_utc",
    "start_of_day",
    "end_of_day",
    "future_horizon",
    "UTC",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "AuthenticationError",
    "ForbiddenError",
    "ConflictError",
    "ExchangeRateApiError",
    "format_currency",
    "format_number",
    "format_percentage",
]
