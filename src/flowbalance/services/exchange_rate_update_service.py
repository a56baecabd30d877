"""Automatic exchange rate updates from an external provider."""

import logging
import uuid
from typing import Callable, Optional

from flowbalance.config.settings import get_settings
from flowbalance.core.cache import clear_caches
from flowbalance.core.exceptions import ExchangeRateApiError
from flowbalance.core.timezone import hours_between, now_utc, start_of_day
from flowbalance.domain.models import ExchangeRate, ExchangeRateType
from flowbalance.domain.views import ExchangeRateUpdateResult, ExchangeRateUpdateStatus
from flowbalance.providers import ExchangeRateProvider
from flowbalance.repositories.protocols import (
    CurrencyRepository,
    ExchangeRateRepository,
    UserRepository,
)
from flowbalance.services.exchange_rate_generation import ExchangeRateGenerationService

logger = logging.getLogger(__name__)


class ExchangeRateUpdateService:
    """
    Pulls rates for a user's base currency and stores them as API rates.

    Updates are throttled to one per update_interval_hours unless forced.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        currency_repo: CurrencyRepository,
        exchange_rate_repo: ExchangeRateRepository,
        rate_generator: ExchangeRateGenerationService,
        provider: ExchangeRateProvider,
        clock: Callable = now_utc,
        update_interval_hours: Optional[int] = None,
    ):
        self._user_repo = user_repo
        self._currency_repo = currency_repo
        self._rate_repo = exchange_rate_repo
        self._rate_generator = rate_generator
        self._provider = provider
        self._clock = clock
        if update_interval_hours is None:
            update_interval_hours = get_settings().exchange_rate_update_interval_hours
        self._interval_hours = update_interval_hours

    def update_exchange_rates(self, user_id: str, force: bool = False) -> ExchangeRateUpdateResult:
        settings = self._user_repo.get_settings(user_id)
        if not settings:
            return ExchangeRateUpdateResult(False, "User settings not found")

        if not settings.auto_update_exchange_rates and not force:
            return ExchangeRateUpdateResult(
                True,
                "Automatic exchange rate updates are disabled",
                skipped=True,
                skip_reason="disabled",
            )

        base = self._currency_repo.get_by_id(settings.base_currency_id) if settings.base_currency_id else None
        if not base:
            return ExchangeRateUpdateResult(False, "Base currency is not set")

        now = self._clock()
        last = settings.last_exchange_rate_update
        if last and not force and hours_between(last, now) < self._interval_hours:
            return ExchangeRateUpdateResult(
                True,
                "Exchange rates were updated recently",
                skipped=True,
                skip_reason=f"Last update less than {self._interval_hours} hours ago",
                last_updated=last,
                base_currency=base.code,
            )

        selections = self._currency_repo.list_user_currencies(user_id)
        if not selections:
            return ExchangeRateUpdateResult(False, "No active currencies", base_currency=base.code)

        try:
            snapshot = self._provider.get_latest(base.code)
        except ExchangeRateApiError as e:
            logger.warning("Exchange rate fetch failed for user %s: %s (%s)", user_id, e.message, e.code)
            return ExchangeRateUpdateResult(
                False,
                e.message,
                error_code=e.code,
                base_currency=base.code,
            )

        effective = start_of_day(snapshot.date)
        updated = 0
        errors: list[str] = []
        for selection in selections:
            if selection.currency_id == base.currency_id:
                continue
            currency = self._currency_repo.get_by_id(selection.currency_id)
            if not currency:
                continue
            rate = snapshot.rates.get(currency.code)
            if rate is None:
                # Custom or exotic currencies the API does not publish
                logger.debug("No API rate for %s, skipping", currency.code)
                continue
            try:
                self._upsert_api_rate(user_id, base.currency_id, currency.currency_id, rate, effective)
                updated += 1
            except Exception as e:
                logger.exception("Failed to store %s->%s rate", base.code, currency.code)
                errors.append(f"{currency.code}: {e}")

        settings.last_exchange_rate_update = now
        self._user_repo.update_settings(settings)

        generation = self._rate_generator.regenerate_all(user_id)
        errors.extend(generation.errors)
        if updated > 0:
            self._rate_generator.cleanup_exchange_rate_history(user_id)
        clear_caches("currency")

        logger.info("Updated %d exchange rates for user %s (base %s)", updated, user_id, base.code)
        return ExchangeRateUpdateResult(
            True,
            f"Updated {updated} exchange rates",
            updated_count=updated,
            errors=errors,
            last_updated=now,
            base_currency=base.code,
        )

    def needs_update(self, user_id: str) -> bool:
        settings = self._user_repo.get_settings(user_id)
        if not settings or not settings.auto_update_exchange_rates:
            return False
        if not settings.last_exchange_rate_update:
            return True
        return hours_between(settings.last_exchange_rate_update, self._clock()) >= self._interval_hours

    def get_update_status(self, user_id: str) -> ExchangeRateUpdateStatus:
        settings = self._user_repo.get_settings(user_id)
        last = settings.last_exchange_rate_update if settings else None
        return ExchangeRateUpdateStatus(
            enabled=bool(settings and settings.auto_update_exchange_rates),
            last_update=last,
            needs_update=self.needs_update(user_id),
            hours_since_last_update=round(hours_between(last, self._clock()), 2) if last else None,
        )

    def _upsert_api_rate(self, user_id, from_id, to_id, rate, effective) -> ExchangeRate:
        existing = self._rate_repo.find(user_id, from_id, to_id, effective)
        if existing:
            existing.rate = rate
            existing.type = ExchangeRateType.API
            existing.source_rate_id = None
            existing.notes = "Updated from exchange rate API"
            return self._rate_repo.update(existing)
        return self._rate_repo.create(ExchangeRate(
            rate_id=str(uuid.uuid4()),
            user_id=user_id,
            from_currency_id=from_id,
            to_currency_id=to_id,
            rate=rate,
            effective_date=effective,
            type=ExchangeRateType.API,
            notes="Fetched from exchange rate API",
            created_at=self._clock(),
        ))
