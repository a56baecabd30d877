"""Currency service: catalog, user selections, exchange rates and conversion."""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from flowbalance.core.cache import clear_caches
from flowbalance.core.exceptions import ValidationError, NotFoundError, ConflictError
from flowbalance.core.formatting import round_amount
from flowbalance.core.timezone import now_utc, start_of_day
from flowbalance.domain.models import (
    Currency,
    ExchangeRate,
    ExchangeRateType,
    UserCurrency,
)
from flowbalance.domain.views import ConversionResult
from flowbalance.repositories.protocols import (
    CurrencyRepository,
    ExchangeRateRepository,
    UserRepository,
)
from flowbalance.services.exchange_rate_generation import ExchangeRateGenerationService

logger = logging.getLogger(__name__)

# (code, name, symbol, decimal_places)
GLOBAL_CURRENCIES: list[tuple[str, str, str, int]] = [
    ("USD", "US Dollar", "$", 2),
    ("EUR", "Euro", "€", 2),
    ("CNY", "Chinese Yuan", "¥", 2),
    ("JPY", "Japanese Yen", "¥", 0),
    ("GBP", "British Pound", "£", 2),
    ("HKD", "Hong Kong Dollar", "HK$", 2),
    ("TWD", "New Taiwan Dollar", "NT$", 2),
    ("SGD", "Singapore Dollar", "S$", 2),
    ("AUD", "Australian Dollar", "A$", 2),
    ("CAD", "Canadian Dollar", "C$", 2),
    ("CHF", "Swiss Franc", "CHF", 2),
    ("KRW", "South Korean Won", "₩", 0),
    ("INR", "Indian Rupee", "₹", 2),
    ("THB", "Thai Baht", "฿", 2),
]


class CurrencyService:
    """
    Service for currencies and user-entered exchange rates.

    Every change to a USER or API rate regenerates the user's AUTO rates.
    """

    def __init__(
        self,
        currency_repo: CurrencyRepository,
        exchange_rate_repo: ExchangeRateRepository,
        user_repo: UserRepository,
        rate_generator: ExchangeRateGenerationService,
        clock: Callable = now_utc,
    ):
        self._currency_repo = currency_repo
        self._rate_repo = exchange_rate_repo
        self._user_repo = user_repo
        self._rate_generator = rate_generator
        self._clock = clock

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def seed_global_currencies(self) -> int:
        """Insert missing global currencies. Returns how many were added."""
        added = 0
        for code, name, symbol, decimals in GLOBAL_CURRENCIES:
            if self._currency_repo.get_by_code(code):
                continue
            self._currency_repo.create(Currency(
                currency_id=str(uuid.uuid4()),
                code=code,
                name=name,
                symbol=symbol,
                decimal_places=decimals,
            ))
            added += 1
        if added:
            logger.info("Seeded %d global currencies", added)
        return added

    def list_available_currencies(self, user_id: str) -> list[Currency]:
        return self._currency_repo.list_available(user_id)

    def get_currency(self, user_id: str, code: str) -> Currency:
        currency = self._currency_repo.get_by_code(code or "", user_id)
        if not currency:
            raise NotFoundError("Currency", code)
        return currency

    def create_custom_currency(
        self,
        user_id: str,
        code: str,
        name: str,
        symbol: str,
        decimal_places: int = 2,
    ) -> Currency:
        code = (code or "").strip().upper()
        if not code.isalnum() or not 2 <= len(code) <= 10:
            raise ValidationError("Currency code must be 2-10 letters or digits")
        if not (name or "").strip() or not (symbol or "").strip():
            raise ValidationError("Currency name and symbol are required")
        if not 0 <= decimal_places <= 10:
            raise ValidationError("decimal_places must be between 0 and 10")
        existing = self._currency_repo.get_by_code(code, user_id)
        if existing and existing.created_by == user_id:
            raise ConflictError(f"Custom currency {code} already exists")

        currency = self._currency_repo.create(Currency(
            currency_id=str(uuid.uuid4()),
            code=code,
            name=name.strip(),
            symbol=symbol.strip(),
            decimal_places=decimal_places,
            is_custom=True,
            created_by=user_id,
        ))
        clear_caches("currency")
        return currency

    # ------------------------------------------------------------------
    # User selections
    # ------------------------------------------------------------------

    def list_user_currencies(self, user_id: str) -> list[Currency]:
        """Active currencies of the user in display order."""
        result = []
        for uc in self._currency_repo.list_user_currencies(user_id):
            currency = self._currency_repo.get_by_id(uc.currency_id)
            if currency:
                result.append(currency)
        return result

    def add_user_currency(self, user_id: str, code: str) -> Currency:
        currency = self.get_currency(user_id, code)
        existing = self._currency_repo.get_user_currency(user_id, currency.currency_id)
        if existing and existing.is_active:
            return currency
        if existing:
            existing.is_active = True
            self._currency_repo.update_user_currency(existing)
        else:
            order = len(self._currency_repo.list_user_currencies(user_id, active_only=False))
            self._currency_repo.add_user_currency(UserCurrency(
                user_currency_id=str(uuid.uuid4()),
                user_id=user_id,
                currency_id=currency.currency_id,
                order=order,
            ))
        self._rate_generator.generate_auto_exchange_rates(user_id)
        return currency

    def remove_user_currency(self, user_id: str, code: str) -> None:
        """Deactivate a currency selection. The base currency cannot be removed."""
        currency = self.get_currency(user_id, code)
        existing = self._currency_repo.get_user_currency(user_id, currency.currency_id)
        if not existing or not existing.is_active:
            raise NotFoundError("User currency", currency.code)
        settings = self._user_repo.get_settings(user_id)
        if settings and settings.base_currency_id == currency.currency_id:
            raise ValidationError("Cannot remove the base currency")
        existing.is_active = False
        self._currency_repo.update_user_currency(existing)

    def is_active_user_currency(self, user_id: str, currency_id: str) -> bool:
        selection = self._currency_repo.get_user_currency(user_id, currency_id)
        return bool(selection and selection.is_active)

    # ------------------------------------------------------------------
    # Exchange rates
    # ------------------------------------------------------------------

    def list_exchange_rates(
        self,
        user_id: str,
        rate_type: Optional[ExchangeRateType] = None,
    ) -> list[ExchangeRate]:
        return self._rate_repo.list_by_user(user_id, rate_type)

    def create_exchange_rate(
        self,
        user_id: str,
        from_code: str,
        to_code: str,
        rate: Decimal,
        effective_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ExchangeRate:
        """
        Record a USER rate (1 from = rate to) and regenerate derived rates.

        An existing record of the same pair and date is overwritten.
        """
        from_currency, to_currency = self._validate_pair(user_id, from_code, to_code)
        rate = self._validate_rate(rate)
        effective = start_of_day(effective_date or self._clock())

        existing = self._rate_repo.find(
            user_id, from_currency.currency_id, to_currency.currency_id, effective
        )
        if existing:
            existing.rate = rate
            existing.type = ExchangeRateType.USER
            existing.source_rate_id = None
            existing.notes = notes
            saved = self._rate_repo.update(existing)
        else:
            saved = self._rate_repo.create(ExchangeRate(
                rate_id=str(uuid.uuid4()),
                user_id=user_id,
                from_currency_id=from_currency.currency_id,
                to_currency_id=to_currency.currency_id,
                rate=rate,
                effective_date=effective,
                type=ExchangeRateType.USER,
                notes=notes,
                created_at=self._clock(),
            ))
        self._rate_generator.regenerate_all(user_id)
        clear_caches("currency")
        return saved

    def update_exchange_rate(
        self,
        user_id: str,
        rate_id: str,
        rate: Optional[Decimal] = None,
        effective_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ExchangeRate:
        record = self._get_rate(user_id, rate_id)
        if record.type == ExchangeRateType.AUTO:
            raise ValidationError("Auto-generated rates cannot be edited")
        if rate is not None:
            record.rate = self._validate_rate(rate)
        if effective_date is not None:
            record.effective_date = start_of_day(effective_date)
        if notes is not None:
            record.notes = notes
        saved = self._rate_repo.update(record)
        self._rate_generator.regenerate_all(user_id)
        clear_caches("currency")
        return saved

    def delete_exchange_rate(self, user_id: str, rate_id: str) -> None:
        record = self._get_rate(user_id, rate_id)
        if record.type == ExchangeRateType.AUTO:
            raise ValidationError("Auto-generated rates cannot be deleted directly")
        self._rate_repo.delete_by_source(rate_id)
        self._rate_repo.delete(rate_id)
        self._rate_generator.regenerate_all(user_id)
        clear_caches("currency")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def get_exchange_rate(
        self,
        user_id: str,
        from_code: str,
        to_code: str,
        as_of: Optional[datetime] = None,
    ) -> Optional[Decimal]:
        """Latest rate effective on or before as_of; 1 for the same currency."""
        if from_code.upper() == to_code.upper():
            return Decimal("1")
        from_currency = self._currency_repo.get_by_code(from_code, user_id)
        to_currency = self._currency_repo.get_by_code(to_code, user_id)
        if not from_currency or not to_currency:
            return None
        record = self._rate_repo.get_latest(
            user_id, from_currency.currency_id, to_currency.currency_id, as_of
        )
        return record.rate if record else None

    def convert_currency(
        self,
        user_id: str,
        amount: Decimal,
        from_code: str,
        to_code: str,
        as_of: Optional[datetime] = None,
    ) -> ConversionResult:
        """
        Convert an amount. Missing rates do not raise: the result carries
        success=False with the unconverted amount and rate 1.
        """
        amount = Decimal(str(amount))
        rate = self.get_exchange_rate(user_id, from_code, to_code, as_of)
        if rate is None:
            return ConversionResult(
                original_amount=amount,
                original_currency=from_code.upper(),
                converted_amount=amount,
                target_currency=to_code.upper(),
                exchange_rate=Decimal("1"),
                success=False,
                error=f"No exchange rate from {from_code.upper()} to {to_code.upper()}",
            )
        return ConversionResult(
            original_amount=amount,
            original_currency=from_code.upper(),
            converted_amount=round_amount(amount * rate, 2),
            target_currency=to_code.upper(),
            exchange_rate=rate,
        )

    def convert_multiple(
        self,
        user_id: str,
        amounts: list[tuple[Decimal, str]],
        to_code: str,
        as_of: Optional[datetime] = None,
    ) -> list[ConversionResult]:
        return [self.convert_currency(user_id, amount, code, to_code, as_of) for amount, code in amounts]

    def _get_rate(self, user_id: str, rate_id: str) -> ExchangeRate:
        record = self._rate_repo.get_by_id(rate_id)
        if not record or record.user_id != user_id:
            raise NotFoundError("Exchange rate", rate_id)
        return record

    def _validate_pair(self, user_id: str, from_code: str, to_code: str) -> tuple[Currency, Currency]:
        if (from_code or "").upper() == (to_code or "").upper():
            raise ValidationError("Source and target currencies must differ")
        from_currency = self.get_currency(user_id, from_code)
        to_currency = self.get_currency(user_id, to_code)
        for currency in (from_currency, to_currency):
            if not self.is_active_user_currency(user_id, currency.currency_id):
                raise ValidationError(f"{currency.code} is not one of your currencies")
        return from_currency, to_currency

    @staticmethod
    def _validate_rate(rate: Decimal) -> Decimal:
        rate = Decimal(str(rate))
        if rate <= 0:
            raise ValidationError("Exchange rate must be positive")
        return rate
