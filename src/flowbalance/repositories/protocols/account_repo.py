"""Account and category repository protocol."""

from typing import Protocol, Optional

from flowbalance.domain.models import Account, Category


class AccountRepository(Protocol):
    """Interface for account and category data access."""

    def create(self, account: Account) -> Account:
        """Persist a new account."""
        ...

    def get_by_id(self, account_id: str) -> Optional[Account]:
        """Retrieve account by ID."""
        ...

    def list_by_user(self, user_id: str) -> list[Account]:
        ...

    def list_by_category(self, category_id: str) -> list[Account]:
        ...

    def update(self, account: Account) -> Account:
        ...

    def delete(self, account_id: str) -> None:
        ...

    def create_category(self, category: Category) -> Category:
        ...

    def get_category(self, category_id: str) -> Optional[Category]:
        ...

    def list_categories(self, user_id: str) -> list[Category]:
        ...

    def update_category(self, category: Category) -> Category:
        ...

    def delete_category(self, category_id: str) -> None:
        ...
