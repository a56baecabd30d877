"""Exchange rate repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from flowbalance.domain.models import ExchangeRate, ExchangeRateType


class ExchangeRateRepository(Protocol):
    """Interface for exchange rate data access."""

    def create(self, rate: ExchangeRate) -> ExchangeRate:
        ...

    def get_by_id(self, rate_id: str) -> Optional[ExchangeRate]:
        ...

    def find(
        self,
        user_id: str,
        from_currency_id: str,
        to_currency_id: str,
        effective_date: datetime,
    ) -> Optional[ExchangeRate]:
        """Find the rate of a pair on an exact effective date."""
        ...

    def update(self, rate: ExchangeRate) -> ExchangeRate:
        ...

    def delete(self, rate_id: str) -> None:
        ...

    def list_by_user(
        self,
        user_id: str,
        rate_type: Optional[ExchangeRateType] = None,
    ) -> list[ExchangeRate]:
        """List rates, newest effective date first."""
        ...

    def get_latest(
        self,
        user_id: str,
        from_currency_id: str,
        to_currency_id: str,
        as_of: Optional[datetime] = None,
    ) -> Optional[ExchangeRate]:
        """Latest rate of a pair with effective_date <= as_of."""
        ...

    def delete_by_type(self, user_id: str, rate_type: ExchangeRateType) -> int:
        ...

    def delete_by_source(self, source_rate_id: str) -> int:
        ...

    def delete_many(self, rate_ids: list[str]) -> int:
        ...
