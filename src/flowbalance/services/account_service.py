"""Account service for categories, accounts and balances."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from flowbalance.core.exceptions import ValidationError, NotFoundError
from flowbalance.core.formatting import format_number
from flowbalance.core.timezone import end_of_day, now_utc, start_of_day
from flowbalance.domain.models import (
    Account,
    Category,
    CategoryType,
    Currency,
    Transaction,
    TransactionType,
)
from flowbalance.domain.views import AccountBalanceView, BalanceUpdateResult, CategoryNode
from flowbalance.repositories.protocols import (
    AccountRepository,
    CurrencyRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class AccountCreate:
    """Input data for creating an account."""

    name: str
    category_id: str
    currency_code: str
    description: Optional[str] = None
    color: Optional[str] = None


@dataclass
class AccountUpdate:
    """Partial update data for editing an account."""

    name: Optional[str] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


@dataclass
class BalanceUpdate:
    """Balance of a stock account on a day, as an absolute value or a delta."""

    account_id: str
    new_balance: Optional[Decimal] = None
    balance_change: Optional[Decimal] = None
    update_date: Optional[datetime] = None
    currency_code: Optional[str] = None
    notes: Optional[str] = None


def apply_transaction(balance: Decimal, txn: Transaction) -> Decimal:
    """
    Fold one transaction into a running stock-account balance.

    BALANCE records are snapshots and replace the running value.
    """
    if txn.type == TransactionType.BALANCE:
        return txn.amount
    if txn.type == TransactionType.INCOME:
        return balance + txn.amount
    return balance - txn.amount


def calculate_balance(category_type: CategoryType, transactions: list[Transaction]) -> Decimal:
    """
    Compute an account balance from its transactions.

    Stock accounts (ASSET, LIABILITY) replay transactions in date order.
    Flow accounts (INCOME, EXPENSE) sum the amounts of their own type.
    """
    if category_type.is_stock:
        balance = Decimal("0")
        for txn in sorted(transactions, key=lambda t: (t.date, t.created_at or t.date)):
            balance = apply_transaction(balance, txn)
        return balance

    own_type = TransactionType(category_type.value)
    return sum((t.amount for t in transactions if t.type == own_type), Decimal("0"))


class AccountService:
    """
    Service for the category tree and accounts.

    Categories carry the account kind; children always inherit the type of
    their root. Balances are derived from the ledger, never stored.
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

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def create_category(
        self,
        user_id: str,
        name: str,
        type: Optional[CategoryType] = None,
        parent_id: Optional[str] = None,
        order: int = 0,
    ) -> Category:
        """
        Create a category.

        Top-level categories need a type; children take their parent's type
        and reject a conflicting one.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")

        if parent_id:
            parent = self.get_category(user_id, parent_id)
            if type is not None and CategoryType(type) != parent.type:
                raise ValidationError(
                    f"Child category must have the same type as its parent ({parent.type.value})"
                )
            category_type = parent.type
        else:
            if type is None:
                raise ValidationError("Top-level category requires a type")
            category_type = CategoryType(type)

        siblings = [
            c for c in self._account_repo.list_categories(user_id)
            if c.parent_id == parent_id and c.name == name
        ]
        if siblings:
            raise ValidationError(f"Category '{name}' already exists at this level")

        category = Category(
            category_id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            type=category_type,
            parent_id=parent_id,
            order=order,
            created_at=self._clock(),
        )
        return self._account_repo.create_category(category)

    def get_category(self, user_id: str, category_id: str) -> Category:
        category = self._account_repo.get_category(category_id)
        if not category or category.user_id != user_id:
            raise NotFoundError("Category", category_id)
        return category

    def list_categories(self, user_id: str) -> list[Category]:
        return self._account_repo.list_categories(user_id)

    def get_category_tree(self, user_id: str) -> list[CategoryNode]:
        """Return root nodes with nested children and their accounts."""
        categories = self._account_repo.list_categories(user_id)
        nodes = {c.category_id: CategoryNode(category=c) for c in categories}
        for account in self._account_repo.list_by_user(user_id):
            node = nodes.get(account.category_id)
            if node:
                node.accounts.append(account)

        roots = []
        for category in categories:
            node = nodes[category.category_id]
            parent = nodes.get(category.parent_id) if category.parent_id else None
            if parent:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots

    def update_category(
        self,
        user_id: str,
        category_id: str,
        name: Optional[str] = None,
        order: Optional[int] = None,
    ) -> Category:
        category = self.get_category(user_id, category_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("Category name is required")
            category.name = name.strip()
        if order is not None:
            category.order = order
        return self._account_repo.update_category(category)

    def move_category(self, user_id: str, category_id: str, new_parent_id: Optional[str]) -> Category:
        """
        Re-parent a category.

        Moves across category types and into the category's own subtree are
        rejected; new_parent_id None makes it a root.
        """
        category = self.get_category(user_id, category_id)
        if new_parent_id:
            if new_parent_id == category_id:
                raise ValidationError("A category cannot be its own parent")
            parent = self.get_category(user_id, new_parent_id)
            if parent.type != category.type:
                raise ValidationError(
                    f"Cannot move a {category.type.value} category under a {parent.type.value} category"
                )
            if new_parent_id in self._descendant_ids(user_id, category_id):
                raise ValidationError("Cannot move a category into its own subtree")
        category.parent_id = new_parent_id
        return self._account_repo.update_category(category)

    def delete_category(self, user_id: str, category_id: str) -> None:
        """Delete an empty category (no children, no accounts)."""
        self.get_category(user_id, category_id)
        children = [c for c in self._account_repo.list_categories(user_id) if c.parent_id == category_id]
        if children:
            raise ValidationError(
                f"Cannot delete category with {len(children)} subcategory(ies). Remove them first."
            )
        accounts = self._account_repo.list_by_category(category_id)
        if accounts:
            raise ValidationError(
                f"Cannot delete category with {len(accounts)} account(s). Remove accounts first."
            )
        self._account_repo.delete_category(category_id)

    def _descendant_ids(self, user_id: str, category_id: str) -> set[str]:
        categories = self._account_repo.list_categories(user_id)
        children_of: dict[str, list[str]] = {}
        for c in categories:
            if c.parent_id:
                children_of.setdefault(c.parent_id, []).append(c.category_id)
        result: set[str] = set()
        stack = [category_id]
        while stack:
            for child_id in children_of.get(stack.pop(), []):
                if child_id not in result:
                    result.add(child_id)
                    stack.append(child_id)
        return result

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, user_id: str, data: AccountCreate) -> Account:
        """
        Create an account in a category with a fixed currency.

        The currency must be global or one of the user's custom currencies.
        """
        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Account name is required")
        self.get_category(user_id, data.category_id)
        currency = self._resolve_currency(user_id, data.currency_code)

        if any(a.name == name for a in self._account_repo.list_by_user(user_id)):
            raise ValidationError(f"Account with name '{name}' already exists")

        now = self._clock()
        account = Account(
            account_id=str(uuid.uuid4()),
            user_id=user_id,
            category_id=data.category_id,
            currency_id=currency.currency_id,
            name=name,
            description=data.description,
            color=data.color,
            created_at=now,
        )
        created = self._account_repo.create(account)
        logger.info("Created account %s (%s) for user %s", created.account_id, name, user_id)
        return created

    def get_account(self, user_id: str, account_id: str) -> Account:
        """Get account by ID, scoped to the user."""
        account = self._account_repo.get_by_id(account_id)
        if not account or account.user_id != user_id:
            raise NotFoundError("Account", account_id)
        return account

    def list_accounts(self, user_id: str) -> list[Account]:
        return self._account_repo.list_by_user(user_id)

    def get_account_type(self, account: Account) -> CategoryType:
        category = self._account_repo.get_category(account.category_id)
        if not category:
            raise NotFoundError("Category", account.category_id)
        return category.type

    def update_account(self, user_id: str, account_id: str, patch: AccountUpdate) -> Account:
        """Edit an account. Category changes must keep the account kind."""
        account = self.get_account(user_id, account_id)
        if patch.name is not None:
            name = patch.name.strip()
            if not name:
                raise ValidationError("Account name is required")
            if any(a.name == name and a.account_id != account_id for a in self.list_accounts(user_id)):
                raise ValidationError(f"Account with name '{name}' already exists")
            account.name = name
        if patch.category_id is not None and patch.category_id != account.category_id:
            current = self.get_category(user_id, account.category_id)
            target = self.get_category(user_id, patch.category_id)
            if current.type != target.type:
                raise ValidationError(
                    f"Cannot move a {current.type.value} account into a {target.type.value} category"
                )
            account.category_id = patch.category_id
        if patch.description is not None:
            account.description = patch.description
        if patch.color is not None:
            account.color = patch.color
        account.updated_at = self._clock()
        return self._account_repo.update(account)

    def delete_account(self, user_id: str, account_id: str) -> None:
        """Delete an account. Fails if the account has transactions."""
        self.get_account(user_id, account_id)
        count = self._transaction_repo.count(user_id, account_ids=[account_id])
        if count > 0:
            raise ValidationError(
                f"Cannot delete account with {count} transaction(s). Remove transactions first."
            )
        self._account_repo.delete(account_id)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_account_balance(
        self,
        user_id: str,
        account_id: str,
        as_of: Optional[datetime] = None,
        start_date: Optional[datetime] = None,
    ) -> AccountBalanceView:
        """
        Balance of one account.

        start_date only applies to flow accounts (period totals).
        """
        account = self.get_account(user_id, account_id)
        categories = {c.category_id: c for c in self._account_repo.list_categories(user_id)}
        return self._balance_view(account, categories, as_of, start_date)

    def get_account_balances(
        self,
        user_id: str,
        as_of: Optional[datetime] = None,
        start_date: Optional[datetime] = None,
        category_types: Optional[list[CategoryType]] = None,
    ) -> list[AccountBalanceView]:
        categories = {c.category_id: c for c in self._account_repo.list_categories(user_id)}
        views = []
        for account in self._account_repo.list_by_user(user_id):
            category = categories.get(account.category_id)
            if category_types and (not category or category.type not in category_types):
                continue
            views.append(self._balance_view(account, categories, as_of, start_date))
        return views

    def _balance_view(
        self,
        account: Account,
        categories: dict[str, Category],
        as_of: Optional[datetime],
        start_date: Optional[datetime],
    ) -> AccountBalanceView:
        category = categories[account.category_id]
        transactions = self._transaction_repo.query(
            account.user_id,
            account_ids=[account.account_id],
            start_date=start_date if category.type.is_flow else None,
            end_date=as_of,
        )
        currency = self._currency_repo.get_by_id(account.currency_id)
        return AccountBalanceView(
            account_id=account.account_id,
            name=account.name,
            category_id=account.category_id,
            category_type=category.type,
            currency_code=currency.code if currency else "",
            balance=calculate_balance(category.type, transactions),
        )

    # ------------------------------------------------------------------
    # Balance updates
    # ------------------------------------------------------------------

    def update_balance(self, user_id: str, data: BalanceUpdate) -> BalanceUpdateResult:
        """
        Record the balance of an ASSET or LIABILITY account on a day.

        The target is new_balance, or the previous balance plus
        balance_change. A manual snapshot already on that day is replaced,
        so each day keeps one.
        """
        account = self.get_account(user_id, data.account_id)
        category_type = self.get_account_type(account)
        if not category_type.is_stock:
            raise ValidationError("Only ASSET or LIABILITY accounts support balance updates")
        currency = self._currency_repo.get_by_id(account.currency_id)
        if data.currency_code and currency and currency.code != data.currency_code.upper():
            raise ValidationError(
                f"This account only uses {currency.code}, not {data.currency_code.upper()}"
            )
        if data.new_balance is None and data.balance_change is None:
            raise ValidationError("Either new_balance or balance_change is required")

        when = data.update_date or self._clock()
        day_start = start_of_day(when)
        previous = self.get_account_balance(
            user_id, account.account_id, as_of=day_start - timedelta(microseconds=1)
        ).balance
        if data.new_balance is not None:
            target = Decimal(str(data.new_balance))
        else:
            target = previous + Decimal(str(data.balance_change))
        change = target - previous

        same_day = [
            t for t in self._transaction_repo.query(
                user_id,
                account_ids=[account.account_id],
                types=[TransactionType.BALANCE],
                start_date=day_start,
                end_date=end_of_day(when),
            )
            if not t.is_generated
        ]
        notes = data.notes or f"Balance set to {format_number(target)}, change {change:+,.2f}"
        description = f"Balance update - {account.name}"
        now = self._clock()

        if same_day:
            transaction = same_day[0]
            transaction.amount = target
            transaction.date = when
            transaction.description = description
            transaction.notes = notes
            transaction = self._transaction_repo.update(transaction)
        else:
            transaction = self._transaction_repo.create(Transaction(
                txn_id=str(uuid.uuid4()),
                user_id=user_id,
                account_id=account.account_id,
                category_id=account.category_id,
                currency_id=account.currency_id,
                type=TransactionType.BALANCE,
                amount=target,
                description=description,
                notes=notes,
                date=when,
                created_at=now,
            ))
        logger.info(
            "Balance of account %s set to %s on %s", account.account_id, target, day_start.date()
        )
        return BalanceUpdateResult(
            transaction=transaction,
            previous_balance=previous,
            new_balance=target,
            balance_change=change,
            currency_code=currency.code if currency else "",
            is_update=bool(same_day),
        )

    def get_balance_history(self, user_id: str, account_id: str, limit: int = 10) -> list[Transaction]:
        """Most recent BALANCE snapshots of a stock account, newest first."""
        account = self.get_account(user_id, account_id)
        if not self.get_account_type(account).is_stock:
            raise ValidationError("Only ASSET or LIABILITY accounts have a balance history")
        return self._transaction_repo.query(
            user_id,
            account_ids=[account_id],
            types=[TransactionType.BALANCE],
            limit=limit,
            newest_first=True,
        )

    def _resolve_currency(self, user_id: str, currency_code: str) -> Currency:
        currency = self._currency_repo.get_by_code(currency_code or "", user_id)
        if not currency or (currency.created_by and currency.created_by != user_id):
            raise ValidationError(f"Currency not available: {currency_code}")
        return currency
