"""Derivation and pruning of exchange rates."""

import logging
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from flowbalance.core.timezone import now_utc, start_of_day
from flowbalance.domain.models import ExchangeRate, ExchangeRateType
from flowbalance.domain.views import AutoGenerationResult
from flowbalance.repositories.protocols import CurrencyRepository, ExchangeRateRepository

logger = logging.getLogger(__name__)

RATE_QUANT = Decimal("0.00000001")

Pair = tuple[str, str]


def _quantize(rate: Decimal) -> Decimal:
    return rate.quantize(RATE_QUANT)


class ExchangeRateGenerationService:
    """
    Fills gaps in a user's rate table with AUTO rates.

    Two passes, both dated today (start of day):
    1. reverse rates 1/r for every USER rate lacking a reverse on that date;
    2. transitive rates between active user currencies, repeated for up to
       max_rounds so that chains longer than two hops resolve.
    """

    def __init__(
        self,
        currency_repo: CurrencyRepository,
        exchange_rate_repo: ExchangeRateRepository,
        clock: Callable = now_utc,
        max_rounds: int = 5,
    ):
        self._currency_repo = currency_repo
        self._rate_repo = exchange_rate_repo
        self._clock = clock
        self._max_rounds = max_rounds

    def generate_auto_exchange_rates(self, user_id: str) -> AutoGenerationResult:
        target_date = start_of_day(self._clock())
        result = AutoGenerationResult()

        user_rates = self._rate_repo.list_by_user(user_id, ExchangeRateType.USER)
        result.reverse_rates = self._generate_reverse_rates(user_id, user_rates, target_date, result.errors)
        result.transitive_rates = self._generate_transitive_rates(user_id, target_date, result.errors)

        if result.generated:
            logger.info(
                "Generated %d reverse and %d transitive rates for user %s",
                result.reverse_rates, result.transitive_rates, user_id,
            )
        return result

    def regenerate_all(self, user_id: str) -> AutoGenerationResult:
        """Drop every AUTO rate of the user and derive them again."""
        deleted = self._rate_repo.delete_by_type(user_id, ExchangeRateType.AUTO)
        logger.debug("Deleted %d auto rates for user %s", deleted, user_id)
        return self.generate_auto_exchange_rates(user_id)

    def cleanup_auto_generated_rates(self, user_id: str, source_rate_id: str) -> int:
        """Delete AUTO rates derived from source_rate_id, then regenerate."""
        deleted = self._rate_repo.delete_by_source(source_rate_id)
        self.generate_auto_exchange_rates(user_id)
        return deleted

    def cleanup_exchange_rate_history(
        self,
        user_id: str,
        pairs: Optional[list[Pair]] = None,
    ) -> int:
        """
        Keep only the newest record per currency pair.

        When pairs is given, only those pairs are pruned.
        """
        latest: dict[Pair, ExchangeRate] = {}
        stale: list[str] = []
        # list_by_user is ordered newest first
        for rate in self._rate_repo.list_by_user(user_id):
            pair = (rate.from_currency_id, rate.to_currency_id)
            if pairs is not None and pair not in pairs:
                continue
            if pair in latest:
                stale.append(rate.rate_id)
            else:
                latest[pair] = rate
        if not stale:
            return 0
        deleted = self._rate_repo.delete_many(stale)
        logger.info("Pruned %d historical exchange rates for user %s", deleted, user_id)
        return deleted

    def _generate_reverse_rates(
        self,
        user_id: str,
        user_rates: list[ExchangeRate],
        effective_date: datetime,
        errors: list[str],
    ) -> int:
        count = 0
        for rate in user_rates:
            if self._rate_repo.find(user_id, rate.to_currency_id, rate.from_currency_id, effective_date):
                continue
            try:
                reverse = _quantize(Decimal("1") / rate.rate)
            except (InvalidOperation, ZeroDivisionError):
                errors.append(f"Cannot reverse rate {rate.rate_id}: rate is zero")
                continue
            self._rate_repo.create(ExchangeRate(
                rate_id=str(uuid.uuid4()),
                user_id=user_id,
                from_currency_id=rate.to_currency_id,
                to_currency_id=rate.from_currency_id,
                rate=reverse,
                effective_date=effective_date,
                type=ExchangeRateType.AUTO,
                source_rate_id=rate.rate_id,
                notes=f"Auto-generated reverse of {self._code(rate.from_currency_id)}"
                      f"->{self._code(rate.to_currency_id)}",
            ))
            count += 1
        return count

    def _generate_transitive_rates(
        self,
        user_id: str,
        effective_date: datetime,
        errors: list[str],
    ) -> int:
        # Latest known rate per pair (list is newest first)
        rate_map: dict[Pair, Decimal] = {}
        for rate in self._rate_repo.list_by_user(user_id):
            rate_map.setdefault((rate.from_currency_id, rate.to_currency_id), rate.rate)

        currencies = [uc.currency_id for uc in self._currency_repo.list_user_currencies(user_id)]
        count = 0

        for _ in range(self._max_rounds):
            generated_this_round = 0
            for source in currencies:
                for target in currencies:
                    if source == target or (source, target) in rate_map:
                        continue
                    derived = self._derive(source, target, currencies, rate_map)
                    if derived is None:
                        continue
                    rate_value, path = derived
                    if self._rate_repo.find(user_id, source, target, effective_date):
                        continue
                    self._rate_repo.create(ExchangeRate(
                        rate_id=str(uuid.uuid4()),
                        user_id=user_id,
                        from_currency_id=source,
                        to_currency_id=target,
                        rate=rate_value,
                        effective_date=effective_date,
                        type=ExchangeRateType.AUTO,
                        notes=f"Auto-generated transitive rate ({path})",
                    ))
                    rate_map[(source, target)] = rate_value
                    count += 1
                    generated_this_round += 1
            if generated_this_round == 0:
                break
        return count

    @staticmethod
    def _derive(
        source: str,
        target: str,
        currencies: list[str],
        rate_map: dict[Pair, Decimal],
    ) -> Optional[tuple[Decimal, str]]:
        """Find a rate for source->target from known rates, or None."""
        # source -> X -> target
        for middle in currencies:
            if middle in (source, target):
                continue
            first = rate_map.get((source, middle))
            second = rate_map.get((middle, target))
            if first and second:
                return _quantize(first * second), "chain"

        reverse = rate_map.get((target, source))
        if reverse:
            return _quantize(Decimal("1") / reverse), "reverse"

        # source -> X and target -> X share a quote currency
        for base in currencies:
            first = rate_map.get((source, base))
            second = rate_map.get((target, base))
            if first and second:
                return _quantize(first / second), "common base"
        return None

    def _code(self, currency_id: str) -> str:
        currency = self._currency_repo.get_by_id(currency_id)
        return currency.code if currency else currency_id
