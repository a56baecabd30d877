"""Currency-aware amount formatting backed by a TTL cache."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from flowbalance.core.cache import get_cache
from flowbalance.core.formatting import Number, format_currency, format_number, round_amount, to_decimal
from flowbalance.domain.models import Currency
from flowbalance.repositories.protocols import CurrencyRepository

logger = logging.getLogger(__name__)

CACHE_NAME = "currency.format"


@dataclass
class PrecisionCheck:
    is_valid: bool
    corrected_amount: Decimal
    decimal_places: int
    message: Optional[str] = None


class CurrencyFormattingService:
    """
    Formats amounts with each currency's own symbol and decimal places.

    Currency lookups are cached for ttl_seconds; a global currency wins over a
    user's custom currency with the same code.
    """

    def __init__(self, currency_repo: CurrencyRepository, ttl_seconds: float = 300):
        self._currency_repo = currency_repo
        self._cache = get_cache(CACHE_NAME, ttl_seconds)

    def get_currency_config(self, code: str, user_id: Optional[str] = None) -> Optional[Currency]:
        code = code.upper()
        return self._cache.get_or_load(
            (code, user_id),
            lambda: self._currency_repo.get_by_code(code) or (
                self._currency_repo.get_by_code(code, user_id) if user_id else None
            ),
        )

    def format_amount(
        self,
        amount: Number,
        code: str,
        user_id: Optional[str] = None,
        show_symbol: bool = True,
    ) -> str:
        currency = self.get_currency_config(code, user_id)
        if currency is None:
            # Unknown code: plain number followed by the code
            return f"{format_number(amount)} {code.upper()}"
        if not show_symbol:
            return format_number(amount, currency.decimal_places)
        return format_currency(amount, currency.code, currency.symbol, currency.decimal_places)

    def get_decimal_places(self, code: str, user_id: Optional[str] = None) -> int:
        currency = self.get_currency_config(code, user_id)
        return currency.decimal_places if currency else 2

    def validate_amount_precision(
        self,
        amount: Number,
        code: str,
        user_id: Optional[str] = None,
    ) -> PrecisionCheck:
        """Check that amount has no more decimals than the currency allows."""
        places = self.get_decimal_places(code, user_id)
        value = to_decimal(amount)
        corrected = round_amount(value, places)
        exponent = value.normalize().as_tuple().exponent
        actual = -exponent if isinstance(exponent, int) and exponent < 0 else 0
        if actual <= places:
            return PrecisionCheck(True, corrected, places)
        return PrecisionCheck(
            False,
            corrected,
            places,
            f"{code.upper()} supports at most {places} decimal places",
        )
