"""Static exchange rate provider for offline/testing use."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.core.exceptions import ExchangeRateApiError
from flowbalance.core.timezone import now_utc, start_of_day
from flowbalance.domain.views import RateSnapshot


# Fixed USD-quoted reference rates
_USD_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.92"),
    "CNY": Decimal("7.20"),
    "JPY": Decimal("155.00"),
    "GBP": Decimal("0.79"),
    "HKD": Decimal("7.80"),
    "SGD": Decimal("1.35"),
    "AUD": Decimal("1.50"),
    "CAD": Decimal("1.37"),
    "CHF": Decimal("0.90"),
}


class StaticExchangeRateProvider:
    """
    Provider with deterministic rates for offline operation.

    Cross rates are derived through USD. Unknown base currencies behave
    like the real API and raise CURRENCY_NOT_SUPPORTED.
    """

    def __init__(
        self,
        usd_rates: Optional[dict[str, Decimal]] = None,
        as_of: Optional[datetime] = None,
    ):
        self._usd_rates = dict(usd_rates or _USD_RATES)
        self._as_of = as_of

    def get_latest(self, base_currency: str) -> RateSnapshot:
        base = base_currency.upper()
        if base not in self._usd_rates:
            raise ExchangeRateApiError(
                f"Base currency {base} is not supported by the exchange rate API",
                code="CURRENCY_NOT_SUPPORTED",
                upstream_status=404,
            )
        base_per_usd = self._usd_rates[base]
        rates = {
            code: (usd_rate / base_per_usd).quantize(Decimal("0.000001"))
            for code, usd_rate in self._usd_rates.items()
            if code != base
        }
        return RateSnapshot(
            base=base,
            date=start_of_day(self._as_of or now_utc()),
            rates=rates,
        )
