"""Exchange rate provider backed by the Frankfurter API."""

import logging
from decimal import Decimal
from typing import Optional

import httpx

from flowbalance.core.exceptions import ExchangeRateApiError
from flowbalance.core.timezone import parse_datetime_utc
from flowbalance.domain.views import RateSnapshot

logger = logging.getLogger(__name__)


class FrankfurterProvider:
    """
    Fetches ECB reference rates from https://api.frankfurter.dev.

    One request per call: GET {base_url}/latest?base=XXX.
    """

    def __init__(
        self,
        base_url: str = "https://api.frankfurter.dev/v1",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    def get_latest(self, base_currency: str) -> RateSnapshot:
        url = f"{self._base_url}/latest"
        base = base_currency.upper()
        try:
            if self._client is not None:
                response = self._client.get(url, params={"base": base}, timeout=self._timeout)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.get(url, params={"base": base})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._status_error(base, e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error("Network error fetching rates for %s: %s", base, e)
            raise ExchangeRateApiError(
                f"Network error while fetching exchange rates: {e}",
                code="NETWORK_ERROR",
            ) from e

        payload = response.json()
        rates = {
            code.upper(): Decimal(str(value))
            for code, value in (payload.get("rates") or {}).items()
        }
        return RateSnapshot(
            base=payload.get("base", base),
            date=parse_datetime_utc(payload["date"]),
            rates=rates,
        )

    @staticmethod
    def _status_error(base: str, status_code: int) -> ExchangeRateApiError:
        if status_code == 404:
            return ExchangeRateApiError(
                f"Base currency {base} is not supported by the exchange rate API",
                code="CURRENCY_NOT_SUPPORTED",
                upstream_status=status_code,
            )
        if status_code == 429:
            return ExchangeRateApiError(
                "Exchange rate API rate limit exceeded, try again later",
                code="RATE_LIMIT_EXCEEDED",
                upstream_status=status_code,
            )
        if status_code >= 500:
            return ExchangeRateApiError(
                "Exchange rate service is temporarily unavailable",
                code="SERVICE_UNAVAILABLE",
                upstream_status=status_code,
            )
        return ExchangeRateApiError(
            f"Exchange rate API request failed with status {status_code}",
            code="NETWORK_ERROR",
            upstream_status=status_code,
        )
