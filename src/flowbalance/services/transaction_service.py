"""Transaction service for ledger entries and tags."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from flowbalance.core.exceptions import ValidationError, NotFoundError
from flowbalance.core.timezone import now_utc
from flowbalance.domain.models import (
    Account,
    CategoryType,
    Tag,
    Transaction,
    TransactionType,
)
from flowbalance.domain.views import BatchCreateResult, BatchItemError
from flowbalance.repositories.protocols import (
    AccountRepository,
    CurrencyRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100


@dataclass
class TransactionCreate:
    """Input data for creating a transaction."""

    account_id: str
    type: TransactionType
    amount: Decimal
    description: str
    date: Optional[datetime] = None
    currency_code: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: list[str] = field(default_factory=list)


@dataclass
class TransactionUpdate:
    """Partial update data for editing a transaction."""

    amount: Optional[Decimal] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None
    tag_ids: Optional[list[str]] = None


@dataclass
class TransactionQuery:
    """Filters for listing transactions."""

    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: Optional[TransactionType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    tag_id: Optional[str] = None
    search: Optional[str] = None
    page: int = 1
    page_size: int = 50


def allowed_types(category_type: CategoryType) -> tuple[TransactionType, ...]:
    """Transaction types an account of the given kind accepts."""
    if category_type == CategoryType.INCOME:
        return (TransactionType.INCOME,)
    if category_type == CategoryType.EXPENSE:
        return (TransactionType.EXPENSE,)
    return (TransactionType.BALANCE,)


class TransactionService:
    """
    Service for ledger entries.

    Flow accounts take INCOME or EXPENSE entries matching their kind; stock
    accounts take BALANCE snapshots. Entries always use the account currency.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        currency_repo: CurrencyRepository,
        transaction_repo: TransactionRepository,
        clock: Callable = now_utc,
    ):
        self._account_repo = account_repo
        self._currency_repo = currency_repo
        self._transaction_repo = transaction_repo
        self._clock = clock

    def create_transaction(self, user_id: str, data: TransactionCreate) -> Transaction:
        """Validate and persist a manual transaction."""
        account = self._get_account(user_id, data.account_id)
        category = self._account_repo.get_category(account.category_id)
        txn_type = TransactionType(data.type)

        if txn_type not in allowed_types(category.type):
            raise ValidationError(
                f"{category.type.value} accounts do not accept {txn_type.value} transactions"
            )
        if data.currency_code:
            currency = self._currency_repo.get_by_id(account.currency_id)
            if currency and currency.code != data.currency_code.upper():
                raise ValidationError(
                    f"Transaction currency {data.currency_code.upper()} does not match "
                    f"account currency {currency.code}"
                )
        self._validate_amount(txn_type, data.amount)
        description = self._validate_description(data.description)
        self._validate_tags(user_id, data.tag_ids)

        now = self._clock()
        transaction = Transaction(
            txn_id=str(uuid.uuid4()),
            user_id=user_id,
            account_id=account.account_id,
            category_id=account.category_id,
            currency_id=account.currency_id,
            type=txn_type,
            amount=Decimal(str(data.amount)),
            description=description,
            notes=data.notes,
            date=data.date or now,
            tag_ids=list(data.tag_ids),
            created_at=now,
        )
        return self._transaction_repo.create(transaction)

    def create_batch(self, user_id: str, items: list[TransactionCreate]) -> BatchCreateResult:
        """
        Create several manual transactions, best effort.

        Each item is validated like a single create; invalid items are
        reported by index and the valid ones are still written.
        """
        if not items:
            raise ValidationError("At least one transaction is required")
        if len(items) > MAX_BATCH_SIZE:
            raise ValidationError(f"A batch holds at most {MAX_BATCH_SIZE} transactions")

        result = BatchCreateResult(total=len(items))
        for index, item in enumerate(items):
            try:
                result.created.append(self.create_transaction(user_id, item))
            except (ValidationError, NotFoundError) as e:
                result.errors.append(BatchItemError(index=index, message=e.message))
        logger.info(
            "Batch create for user %s: %d created, %d failed",
            user_id, len(result.created), result.failed,
        )
        return result

    def get_transaction(self, user_id: str, txn_id: str) -> Transaction:
        transaction = self._transaction_repo.get_by_id(txn_id)
        if not transaction or transaction.user_id != user_id:
            raise NotFoundError("Transaction", txn_id)
        return transaction

    def update_transaction(self, user_id: str, txn_id: str, patch: TransactionUpdate) -> Transaction:
        transaction = self.get_transaction(user_id, txn_id)
        if patch.amount is not None:
            self._validate_amount(transaction.type, patch.amount)
            transaction.amount = Decimal(str(patch.amount))
        if patch.description is not None:
            transaction.description = self._validate_description(patch.description)
        if patch.date is not None:
            transaction.date = patch.date
        if patch.notes is not None:
            transaction.notes = patch.notes
        if patch.tag_ids is not None:
            self._validate_tags(user_id, patch.tag_ids)
            transaction.tag_ids = list(patch.tag_ids)
        return self._transaction_repo.update(transaction)

    def delete_transaction(self, user_id: str, txn_id: str) -> None:
        self.get_transaction(user_id, txn_id)
        self._transaction_repo.delete(txn_id)

    def list_transactions(self, user_id: str, query: TransactionQuery) -> tuple[list[Transaction], int]:
        """Return one page of matching transactions (newest first) and the total count."""
        if query.page < 1 or query.page_size < 1:
            raise ValidationError("page and page_size must be positive")
        matches = self._transaction_repo.query(
            user_id,
            account_ids=[query.account_id] if query.account_id else None,
            category_ids=[query.category_id] if query.category_id else None,
            types=[query.type] if query.type else None,
            start_date=query.start_date,
            end_date=query.end_date,
            tag_id=query.tag_id,
            search=query.search,
            newest_first=True,
        )
        start = (query.page - 1) * query.page_size
        return matches[start:start + query.page_size], len(matches)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def create_tag(self, user_id: str, name: str, color: Optional[str] = None) -> Tag:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Tag name is required")
        if self._transaction_repo.get_tag_by_name(user_id, name):
            raise ValidationError(f"Tag '{name}' already exists")
        return self._transaction_repo.create_tag(Tag(
            tag_id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            color=color,
            created_at=self._clock(),
        ))

    def list_tags(self, user_id: str) -> list[Tag]:
        return self._transaction_repo.list_tags(user_id)

    def update_tag(
        self,
        user_id: str,
        tag_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Tag:
        tag = self._get_tag(user_id, tag_id)
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Tag name is required")
            existing = self._transaction_repo.get_tag_by_name(user_id, name)
            if existing and existing.tag_id != tag_id:
                raise ValidationError(f"Tag '{name}' already exists")
            tag.name = name
        if color is not None:
            tag.color = color
        return self._transaction_repo.update_tag(tag)

    def delete_tag(self, user_id: str, tag_id: str) -> None:
        self._get_tag(user_id, tag_id)
        self._transaction_repo.delete_tag(tag_id)

    def _get_tag(self, user_id: str, tag_id: str) -> Tag:
        tag = self._transaction_repo.get_tag(tag_id)
        if not tag or tag.user_id != user_id:
            raise NotFoundError("Tag", tag_id)
        return tag

    def _get_account(self, user_id: str, account_id: str) -> Account:
        account = self._account_repo.get_by_id(account_id)
        if not account or account.user_id != user_id:
            raise NotFoundError("Account", account_id)
        return account

    def _validate_tags(self, user_id: str, tag_ids: list[str]) -> None:
        for tag_id in tag_ids:
            self._get_tag(user_id, tag_id)

    @staticmethod
    def _validate_amount(txn_type: TransactionType, amount: Decimal) -> None:
        if amount is None:
            raise ValidationError("Amount is required")
        # Balance snapshots may be zero or negative (overdraft, paid-off loan)
        if txn_type != TransactionType.BALANCE and Decimal(str(amount)) <= 0:
            raise ValidationError("Amount must be positive")

    @staticmethod
    def _validate_description(description: str) -> str:
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required")
        return description
