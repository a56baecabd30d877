"""Exchange rate provider protocol."""

from typing import Protocol

from flowbalance.domain.views import RateSnapshot


class ExchangeRateProvider(Protocol):
    """
    Protocol for exchange rate sources.

    Implementations raise ExchangeRateApiError with one of the codes
    CURRENCY_NOT_SUPPORTED, RATE_LIMIT_EXCEEDED, SERVICE_UNAVAILABLE or
    NETWORK_ERROR when rates cannot be fetched.
    """

    def get_latest(self, base_currency: str) -> RateSnapshot:
        """Return the latest rates quoted against base_currency."""
        ...
