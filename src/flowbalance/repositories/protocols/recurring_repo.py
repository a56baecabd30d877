"""Recurring transaction repository protocol."""

from typing import Protocol, Optional

from flowbalance.domain.models import RecurringTransaction


class RecurringTransactionRepository(Protocol):
    """Interface for recurring transaction templates."""

    def create(self, recurring: RecurringTransaction) -> RecurringTransaction:
        ...

    def get_by_id(self, recurring_id: str) -> Optional[RecurringTransaction]:
        ...

    def list_by_user(self, user_id: str, active_only: bool = False) -> list[RecurringTransaction]:
        ...

    def list_active(self, user_id: Optional[str] = None) -> list[RecurringTransaction]:
        """List active templates, optionally for one user."""
        ...

    def update(self, recurring: RecurringTransaction) -> RecurringTransaction:
        ...

    def delete(self, recurring_id: str) -> None:
        ...
