"""Exchange rate providers module."""

from flowbalance.providers.exchange_rate_provider import ExchangeRateProvider
from flowbalance.providers.frankfurter_provider import FrankfurterProvider
from flowbalance.providers.stub_provider import StaticExchangeRateProvider

__all__ = [
    "ExchangeRateProvider",
    "FrankfurterProvider",
    "StaticExchangeRateProvider",
]
