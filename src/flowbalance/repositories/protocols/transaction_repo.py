"""Transaction and tag repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from flowbalance.domain.models import Transaction, TransactionType, Tag


class TransactionRepository(Protocol):
    """Interface for transaction and tag data access."""

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction with its tags."""
        ...

    def stage(self, transaction: Transaction) -> None:
        """Add a transaction to the current unit of work without committing."""
        ...

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        ...

    def update(self, transaction: Transaction) -> Transaction:
        ...

    def delete(self, txn_id: str) -> None:
        ...

    def delete_many(self, txn_ids: list[str]) -> int:
        ...

    def query(
        self,
        user_id: str,
        account_ids: Optional[list[str]] = None,
        category_ids: Optional[list[str]] = None,
        types: Optional[list[TransactionType]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tag_id: Optional[str] = None,
        search: Optional[str] = None,
        recurring_transaction_id: Optional[str] = None,
        loan_contract_id: Optional[str] = None,
        generated_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[Transaction]:
        """Query transactions with filters."""
        ...

    def count(self, user_id: str, account_ids: Optional[list[str]] = None) -> int:
        ...

    def list_recurring_dates(self, recurring_transaction_id: str) -> set:
        """Dates (day precision) already generated for a recurring template."""
        ...

    def create_tag(self, tag: Tag) -> Tag:
        ...

    def get_tag(self, tag_id: str) -> Optional[Tag]:
        ...

    def get_tag_by_name(self, user_id: str, name: str) -> Optional[Tag]:
        ...

    def list_tags(self, user_id: str) -> list[Tag]:
        ...

    def update_tag(self, tag: Tag) -> Tag:
        ...

    def delete_tag(self, tag_id: str) -> None:
        ...
