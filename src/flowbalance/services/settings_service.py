"""User settings service."""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from flowbalance.config.settings import get_settings
from flowbalance.core.exceptions import ValidationError
from flowbalance.core.timezone import now_utc
from flowbalance.domain.models import Currency, UserSettings
from flowbalance.repositories.protocols import CurrencyRepository, UserRepository

logger = logging.getLogger(__name__)

DATE_FORMATS = ("YYYY-MM-DD", "DD/MM/YYYY", "MM/DD/YYYY", "DD-MM-YYYY")
LANGUAGES = ("zh", "en")
THEMES = ("light", "dark", "system")
MAX_FUTURE_DATA_DAYS = 7


@dataclass
class SettingsUpdate:
    """Partial update of user preferences."""

    base_currency_code: Optional[str] = None
    date_format: Optional[str] = None
    language: Optional[str] = None
    theme: Optional[str] = None
    fire_enabled: Optional[bool] = None
    fire_swr: Optional[Decimal] = None
    future_data_days: Optional[int] = None
    auto_update_exchange_rates: Optional[bool] = None


class SettingsService:
    def __init__(
        self,
        user_repo: UserRepository,
        currency_repo: CurrencyRepository,
        clock: Callable = now_utc,
    ):
        self._user_repo = user_repo
        self._currency_repo = currency_repo
        self._clock = clock

    def get_settings(self, user_id: str) -> UserSettings:
        """Return the user's settings, creating defaults when missing."""
        settings = self._user_repo.get_settings(user_id)
        if settings is None:
            settings = self._user_repo.create_settings(UserSettings(
                settings_id=str(uuid.uuid4()),
                user_id=user_id,
                future_data_days=get_settings().default_future_data_days,
            ))
        return settings

    def get_base_currency(self, user_id: str) -> Optional[Currency]:
        settings = self._user_repo.get_settings(user_id)
        if not settings or not settings.base_currency_id:
            return None
        return self._currency_repo.get_by_id(settings.base_currency_id)

    def update_settings(self, user_id: str, patch: SettingsUpdate) -> UserSettings:
        """
        Apply a partial update.

        The base currency must be one of the user's active currencies.
        """
        settings = self.get_settings(user_id)

        if patch.base_currency_code is not None:
            currency = self._currency_repo.get_by_code(patch.base_currency_code, user_id)
            if not currency:
                raise ValidationError(f"Unknown currency: {patch.base_currency_code}")
            selection = self._currency_repo.get_user_currency(user_id, currency.currency_id)
            if not selection or not selection.is_active:
                raise ValidationError("Base currency must be one of your currencies")
            settings.base_currency_id = currency.currency_id
        if patch.date_format is not None:
            if patch.date_format not in DATE_FORMATS:
                raise ValidationError(f"Unsupported date format: {patch.date_format}")
            settings.date_format = patch.date_format
        if patch.language is not None:
            if patch.language not in LANGUAGES:
                raise ValidationError(f"Unsupported language: {patch.language}")
            settings.language = patch.language
        if patch.theme is not None:
            if patch.theme not in THEMES:
                raise ValidationError(f"Unsupported theme: {patch.theme}")
            settings.theme = patch.theme
        if patch.fire_enabled is not None:
            settings.fire_enabled = patch.fire_enabled
        if patch.fire_swr is not None:
            swr = Decimal(str(patch.fire_swr))
            if not Decimal("0") < swr <= Decimal("100"):
                raise ValidationError("fire_swr must be between 0 and 100")
            settings.fire_swr = swr
        if patch.future_data_days is not None:
            if not 0 <= patch.future_data_days <= MAX_FUTURE_DATA_DAYS:
                raise ValidationError(f"future_data_days must be between 0 and {MAX_FUTURE_DATA_DAYS}")
            settings.future_data_days = patch.future_data_days
        if patch.auto_update_exchange_rates is not None:
            settings.auto_update_exchange_rates = patch.auto_update_exchange_rates

        settings.updated_at = self._clock()
        return self._user_repo.update_settings(settings)
