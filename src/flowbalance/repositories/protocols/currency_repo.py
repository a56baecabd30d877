"""Currency repository protocol."""

from typing import Protocol, Optional

from flowbalance.domain.models import Currency, UserCurrency


class CurrencyRepository(Protocol):
    """Interface for currencies and per-user currency selections."""

    def create(self, currency: Currency) -> Currency:
        ...

    def get_by_id(self, currency_id: str) -> Optional[Currency]:
        ...

    def get_by_code(self, code: str, user_id: Optional[str] = None) -> Optional[Currency]:
        """Find a currency by code, preferring the user's custom one over the global one."""
        ...

    def list_available(self, user_id: Optional[str] = None) -> list[Currency]:
        """List global currencies plus the user's custom ones."""
        ...

    def delete(self, currency_id: str) -> None:
        ...

    def add_user_currency(self, user_currency: UserCurrency) -> UserCurrency:
        ...

    def get_user_currency(self, user_id: str, currency_id: str) -> Optional[UserCurrency]:
        ...

    def list_user_currencies(self, user_id: str, active_only: bool = True) -> list[UserCurrency]:
        """List a user's selections ordered by `order`."""
        ...

    def update_user_currency(self, user_currency: UserCurrency) -> UserCurrency:
        ...
