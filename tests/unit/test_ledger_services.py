"""
Unit tests for the ledger: categories, accounts, transactions and tags.

Tests cover:
- Category tree rules (type inheritance, moves, deletion)
- Account creation and deletion guards
- Transaction type and currency rules per account kind
- Balance calculation for stock and flow accounts
- Listing, paging and tag filters
- Best-effort batch creation
- Day-level balance updates for stock accounts
"""

import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from flowbalance.core.exceptions import NotFoundError, ValidationError
from flowbalance.domain.models import CategoryType, Transaction, TransactionType
from flowbalance.services import (
    AccountCreate,
    AccountUpdate,
    BalanceUpdate,
    TransactionCreate,
    TransactionQuery,
    TransactionUpdate,
)
from flowbalance.services.account_service import calculate_balance


def _txn(type: TransactionType, amount: str, day: int) -> Transaction:
    return Transaction(
        txn_id=str(uuid.uuid4()),
        user_id="u",
        account_id="a",
        category_id="c",
        currency_id="cny",
        type=type,
        amount=Decimal(amount),
        description="entry",
        date=datetime(2024, 6, day),
    )


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:
    """Tests for the category tree."""

    def test_child_inherits_type(self, user, account_service):
        root = account_service.create_category(user.user_id, "Cash & Bank", type=CategoryType.ASSET)

        child = account_service.create_category(user.user_id, "Savings", parent_id=root.category_id)

        assert child.type == CategoryType.ASSET
        assert child.parent_id == root.category_id

    def test_root_requires_type(self, user, account_service):
        with pytest.raises(ValidationError):
            account_service.create_category(user.user_id, "Untyped")

    def test_child_type_conflict(self, user, account_service):
        root = account_service.create_category(user.user_id, "Living", type=CategoryType.EXPENSE)
        with pytest.raises(ValidationError):
            account_service.create_category(
                user.user_id, "Salary", type=CategoryType.INCOME, parent_id=root.category_id
            )

    def test_duplicate_sibling_name(self, user, account_service):
        account_service.create_category(user.user_id, "Living", type=CategoryType.EXPENSE)
        with pytest.raises(ValidationError):
            account_service.create_category(user.user_id, "Living", type=CategoryType.EXPENSE)

    def test_tree(self, user, account_service, account_factory):
        """
        GIVEN a root with one child holding an account
        WHEN the tree is built
        THEN the child is nested under the root with its account
        """
        root = account_service.create_category(user.user_id, "Assets", type=CategoryType.ASSET)
        child = account_service.create_category(user.user_id, "Bank", parent_id=root.category_id)
        account_factory(user.user_id, name="Checking", category_id=child.category_id)

        tree = account_service.get_category_tree(user.user_id)

        assert [n.category.name for n in tree] == ["Assets"]
        assert [n.category.name for n in tree[0].children] == ["Bank"]
        assert [a.name for a in tree[0].children[0].accounts] == ["Checking"]

    def test_move_rules(self, user, account_service):
        assets = account_service.create_category(user.user_id, "Assets", type=CategoryType.ASSET)
        bank = account_service.create_category(user.user_id, "Bank", parent_id=assets.category_id)
        online = account_service.create_category(user.user_id, "Online", parent_id=bank.category_id)
        debts = account_service.create_category(user.user_id, "Debts", type=CategoryType.LIABILITY)

        with pytest.raises(ValidationError):
            account_service.move_category(user.user_id, bank.category_id, bank.category_id)
        with pytest.raises(ValidationError):
            account_service.move_category(user.user_id, bank.category_id, debts.category_id)
        with pytest.raises(ValidationError):
            account_service.move_category(user.user_id, bank.category_id, online.category_id)

        moved = account_service.move_category(user.user_id, online.category_id, assets.category_id)
        assert moved.parent_id == assets.category_id
        promoted = account_service.move_category(user.user_id, online.category_id, None)
        assert promoted.parent_id is None

    def test_delete_guards(self, user, account_service, account_factory):
        root = account_service.create_category(user.user_id, "Assets", type=CategoryType.ASSET)
        child = account_service.create_category(user.user_id, "Bank", parent_id=root.category_id)
        account = account_factory(user.user_id, category_id=child.category_id)

        with pytest.raises(ValidationError):
            account_service.delete_category(user.user_id, root.category_id)
        with pytest.raises(ValidationError):
            account_service.delete_category(user.user_id, child.category_id)

        account_service.delete_account(user.user_id, account.account_id)
        account_service.delete_category(user.user_id, child.category_id)
        assert [c.name for c in account_service.list_categories(user.user_id)] == ["Assets"]


# =============================================================================
# ACCOUNTS
# =============================================================================


class TestAccounts:
    """Tests for account rules."""

    def test_create_with_currency(self, user, account_factory, currency_repo):
        account = account_factory(user.user_id, name="Wallet", currency_code="USD")
        assert currency_repo.get_by_id(account.currency_id).code == "USD"

    def test_unknown_currency(self, user, account_service, category_factory):
        category = category_factory(user.user_id, type=CategoryType.ASSET)
        with pytest.raises(ValidationError, match="Currency not available"):
            account_service.create_account(user.user_id, AccountCreate(
                name="Mystery", category_id=category.category_id, currency_code="XYZ",
            ))

    def test_duplicate_name(self, user, account_factory):
        account_factory(user.user_id, name="Wallet")
        with pytest.raises(ValidationError):
            account_factory(user.user_id, name="Wallet")

    def test_move_to_other_kind_rejected(self, user, account_factory, category_factory, account_service):
        account = account_factory(user.user_id, type=CategoryType.ASSET)
        debts = category_factory(user.user_id, type=CategoryType.LIABILITY)

        with pytest.raises(ValidationError):
            account_service.update_account(
                user.user_id, account.account_id, AccountUpdate(category_id=debts.category_id)
            )

    def test_delete_with_transactions_rejected(self, user, account_factory, transaction_factory, account_service):
        account = account_factory(user.user_id, type=CategoryType.ASSET)
        transaction_factory(user.user_id, account.account_id, TransactionType.BALANCE, Decimal("100"))

        with pytest.raises(ValidationError):
            account_service.delete_account(user.user_id, account.account_id)

    def test_other_users_account_hidden(self, user, user_factory, account_factory, account_service):
        account = account_factory(user.user_id)
        other = user_factory()
        with pytest.raises(NotFoundError):
            account_service.get_account(other.user_id, account.account_id)


# =============================================================================
# BALANCES
# =============================================================================


class TestCalculateBalance:
    """Tests for the balance fold."""

    def test_stock_replays_by_date(self):
        """
        GIVEN a snapshot of 1000, income of 200 and a later snapshot of 500 minus 50
        WHEN the stock balance is calculated
        THEN the last snapshot resets the running value
        """
        transactions = [
            _txn(TransactionType.EXPENSE, "50", 20),
            _txn(TransactionType.BALANCE, "1000", 1),
            _txn(TransactionType.INCOME, "200", 5),
            _txn(TransactionType.BALANCE, "500", 10),
        ]
        assert calculate_balance(CategoryType.ASSET, transactions) == Decimal("450")

    def test_flow_sums_own_type(self):
        transactions = [
            _txn(TransactionType.EXPENSE, "30", 1),
            _txn(TransactionType.EXPENSE, "20", 2),
            _txn(TransactionType.INCOME, "99", 3),
        ]
        assert calculate_balance(CategoryType.EXPENSE, transactions) == Decimal("50")

    def test_empty(self):
        assert calculate_balance(CategoryType.LIABILITY, []) == Decimal("0")


class TestAccountBalances:
    def test_balance_as_of(self, user, account_factory, transaction_factory, account_service):
        account = account_factory(user.user_id, type=CategoryType.ASSET)
        transaction_factory(user.user_id, account.account_id, TransactionType.BALANCE,
                            Decimal("1000"), date=datetime(2024, 6, 1))
        transaction_factory(user.user_id, account.account_id, TransactionType.BALANCE,
                            Decimal("1500"), date=datetime(2024, 6, 10))

        early = account_service.get_account_balance(user.user_id, account.account_id, as_of=datetime(2024, 6, 5))
        latest = account_service.get_account_balance(user.user_id, account.account_id)

        assert early.balance == Decimal("1000")
        assert latest.balance == Decimal("1500")
        assert latest.currency_code == "CNY"

    def test_flow_period(self, user, account_factory, transaction_factory, account_service):
        food = account_factory(user.user_id, type=CategoryType.EXPENSE)
        transaction_factory(user.user_id, food.account_id, TransactionType.EXPENSE,
                            Decimal("30"), date=datetime(2024, 5, 31))
        transaction_factory(user.user_id, food.account_id, TransactionType.EXPENSE,
                            Decimal("45"), date=datetime(2024, 6, 1))

        view = account_service.get_account_balance(
            user.user_id, food.account_id, start_date=datetime(2024, 6, 1)
        )

        assert view.balance == Decimal("45")

    def test_filter_by_type(self, user, account_factory, account_service):
        account_factory(user.user_id, type=CategoryType.ASSET)
        account_factory(user.user_id, type=CategoryType.INCOME)

        views = account_service.get_account_balances(user.user_id, category_types=[CategoryType.INCOME])

        assert [v.category_type for v in views] == [CategoryType.INCOME]


# =============================================================================
# TRANSACTIONS AND TAGS
# =============================================================================


class TestTransactions:
    """Tests for TransactionService."""

    @pytest.mark.parametrize("account_type,txn_type", [
        (CategoryType.INCOME, TransactionType.EXPENSE),
        (CategoryType.EXPENSE, TransactionType.INCOME),
        (CategoryType.ASSET, TransactionType.INCOME),
        (CategoryType.LIABILITY, TransactionType.EXPENSE),
    ])
    def test_type_must_fit_account(self, user, account_factory, transaction_factory, account_type, txn_type):
        account = account_factory(user.user_id, type=account_type)
        with pytest.raises(ValidationError):
            transaction_factory(user.user_id, account.account_id, txn_type, Decimal("10"))

    def test_currency_must_match_account(self, user, account_factory, transaction_service):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(user.user_id, TransactionCreate(
                account_id=account.account_id,
                type=TransactionType.EXPENSE,
                amount=Decimal("10"),
                description="Coffee",
                currency_code="USD",
            ))

    def test_flow_amount_must_be_positive(self, user, account_factory, transaction_factory):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        with pytest.raises(ValidationError):
            transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE, Decimal("0"))

    def test_balance_may_be_negative(self, user, account_factory, transaction_factory):
        account = account_factory(user.user_id, type=CategoryType.ASSET)
        txn = transaction_factory(user.user_id, account.account_id, TransactionType.BALANCE, Decimal("-20"))
        assert txn.amount == Decimal("-20")

    def test_defaults_to_now(self, user, account_factory, transaction_factory, fixed_now):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        txn = transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE, Decimal("5"))
        assert txn.date == fixed_now

    def test_update(self, user, account_factory, transaction_factory, transaction_service):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        txn = transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE, Decimal("5"))

        updated = transaction_service.update_transaction(
            user.user_id, txn.txn_id, TransactionUpdate(amount=Decimal("7.5"), description="Tea")
        )

        assert updated.amount == Decimal("7.5")
        assert updated.description == "Tea"

    def test_list_pages_newest_first(self, user, account_factory, transaction_factory, transaction_service):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        for day in range(1, 6):
            transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE,
                                Decimal(day), date=datetime(2024, 6, day), description=f"Day {day}")

        page, total = transaction_service.list_transactions(
            user.user_id, TransactionQuery(account_id=account.account_id, page=2, page_size=2)
        )

        assert total == 5
        assert [t.description for t in page] == ["Day 3", "Day 2"]

    def test_search_and_date_filters(self, user, account_factory, transaction_factory, transaction_service):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE,
                            Decimal("12"), date=datetime(2024, 6, 1), description="Lunch with team")
        transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE,
                            Decimal("8"), date=datetime(2024, 6, 2), description="Bus ticket")

        found, total = transaction_service.list_transactions(user.user_id, TransactionQuery(search="LUNCH"))
        assert total == 1 and found[0].description == "Lunch with team"

        ranged, _ = transaction_service.list_transactions(
            user.user_id, TransactionQuery(start_date=datetime(2024, 6, 2))
        )
        assert [t.description for t in ranged] == ["Bus ticket"]

    def test_invalid_page(self, user, transaction_service):
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(user.user_id, TransactionQuery(page=0))


class TestTags:
    def test_duplicate_name(self, user, transaction_service):
        transaction_service.create_tag(user.user_id, "travel")
        with pytest.raises(ValidationError):
            transaction_service.create_tag(user.user_id, "travel")

    def test_filter_by_tag(self, user, account_factory, transaction_factory, transaction_service):
        tag = transaction_service.create_tag(user.user_id, "travel", color="#00aaff")
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE,
                            Decimal("300"), description="Hotel", tag_ids=[tag.tag_id])
        transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE,
                            Decimal("20"), description="Groceries")

        tagged, total = transaction_service.list_transactions(user.user_id, TransactionQuery(tag_id=tag.tag_id))

        assert total == 1
        assert tagged[0].tag_ids == [tag.tag_id]

    def test_unknown_tag_rejected(self, user, account_factory, transaction_factory):
        account = account_factory(user.user_id, type=CategoryType.EXPENSE)
        with pytest.raises(NotFoundError):
            transaction_factory(user.user_id, account.account_id, TransactionType.EXPENSE,
                                Decimal("1"), tag_ids=["missing"])

    def test_rename_and_delete(self, user, transaction_service):
        tag = transaction_service.create_tag(user.user_id, "work")
        renamed = transaction_service.update_tag(user.user_id, tag.tag_id, name="office")
        assert renamed.name == "office"

        transaction_service.delete_tag(user.user_id, tag.tag_id)
        assert transaction_service.list_tags(user.user_id) == []


# =============================================================================
# BATCH CREATE
# =============================================================================


class TestBatchCreate:
    def _item(self, account_id: str, amount: str, **overrides) -> TransactionCreate:
        values = dict(
            account_id=account_id,
            type=TransactionType.EXPENSE,
            amount=Decimal(amount),
            description="Groceries",
            date=datetime(2024, 6, 1),
        )
        values.update(overrides)
        return TransactionCreate(**values)

    def test_invalid_items_do_not_block_valid_ones(self, user, account_factory, transaction_service):
        """
        GIVEN a batch of four items where the second has a bad amount and the fourth an unknown account
        WHEN the batch is created
        THEN the two valid items are stored and the failures are reported by index
        """
        food = account_factory(user.user_id, type=CategoryType.EXPENSE)
        items = [
            self._item(food.account_id, "12.50"),
            self._item(food.account_id, "0"),
            self._item(food.account_id, "7", description="Coffee"),
            self._item("missing", "3"),
        ]

        result = transaction_service.create_batch(user.user_id, items)

        assert result.total == 4
        assert [t.description for t in result.created] == ["Groceries", "Coffee"]
        assert [e.index for e in result.errors] == [1, 3]
        assert result.failed == 2
        _, total = transaction_service.list_transactions(
            user.user_id, TransactionQuery(account_id=food.account_id)
        )
        assert total == 2

    def test_empty_batch_rejected(self, user, transaction_service):
        with pytest.raises(ValidationError):
            transaction_service.create_batch(user.user_id, [])

    def test_oversized_batch_rejected(self, user, account_factory, transaction_service):
        food = account_factory(user.user_id, type=CategoryType.EXPENSE)
        with pytest.raises(ValidationError):
            transaction_service.create_batch(user.user_id, [self._item(food.account_id, "1")] * 101)


# =============================================================================
# BALANCE UPDATES
# =============================================================================


class TestBalanceUpdate:
    """Day-level balance snapshots for ASSET and LIABILITY accounts."""

    @pytest.fixture
    def bank(self, user, account_factory, transaction_factory):
        account = account_factory(user.user_id, type=CategoryType.ASSET, name="Bank")
        transaction_factory(user.user_id, account.account_id, TransactionType.BALANCE,
                            Decimal("1000"), date=datetime(2024, 6, 1))
        return account

    def test_absolute_balance(self, user, bank, account_service):
        result = account_service.update_balance(user.user_id, BalanceUpdate(
            account_id=bank.account_id,
            new_balance=Decimal("1500"),
            update_date=datetime(2024, 6, 10, 9, 0),
        ))

        assert result.previous_balance == Decimal("1000")
        assert result.new_balance == Decimal("1500")
        assert result.balance_change == Decimal("500")
        assert result.currency_code == "CNY"
        assert not result.is_update
        assert result.transaction.type == TransactionType.BALANCE
        assert result.transaction.description == "Balance update - Bank"
        assert result.transaction.notes == "Balance set to 1,500.00, change +500.00"

    def test_change_is_applied_to_previous_balance(self, user, bank, account_service):
        result = account_service.update_balance(user.user_id, BalanceUpdate(
            account_id=bank.account_id, balance_change=Decimal("-250"),
        ))

        assert result.new_balance == Decimal("750")
        assert result.transaction.date == datetime(2024, 6, 15, 12, 0)
        latest = account_service.get_account_balance(user.user_id, bank.account_id)
        assert latest.balance == Decimal("750")

    def test_same_day_update_replaces_snapshot(self, user, bank, account_service):
        """
        GIVEN a manual balance update on 2024-06-10
        WHEN a second update is made later that day
        THEN the first snapshot is edited in place and the change is measured from the day before
        """
        first = account_service.update_balance(user.user_id, BalanceUpdate(
            account_id=bank.account_id, new_balance=Decimal("1500"), update_date=datetime(2024, 6, 10, 9, 0),
        ))

        second = account_service.update_balance(user.user_id, BalanceUpdate(
            account_id=bank.account_id, balance_change=Decimal("200"), update_date=datetime(2024, 6, 10, 18, 0),
        ))

        assert second.is_update
        assert second.transaction.txn_id == first.transaction.txn_id
        assert second.previous_balance == Decimal("1000")
        assert second.new_balance == Decimal("1200")
        history = account_service.get_balance_history(user.user_id, bank.account_id)
        assert [t.amount for t in history] == [Decimal("1200"), Decimal("1000")]

    def test_flow_account_rejected(self, user, account_factory, account_service):
        food = account_factory(user.user_id, type=CategoryType.EXPENSE)
        with pytest.raises(ValidationError):
            account_service.update_balance(user.user_id, BalanceUpdate(
                account_id=food.account_id, new_balance=Decimal("10"),
            ))

    def test_requires_balance_or_change(self, user, bank, account_service):
        with pytest.raises(ValidationError):
            account_service.update_balance(user.user_id, BalanceUpdate(account_id=bank.account_id))

    def test_currency_must_match(self, user, bank, account_service):
        with pytest.raises(ValidationError):
            account_service.update_balance(user.user_id, BalanceUpdate(
                account_id=bank.account_id, new_balance=Decimal("10"), currency_code="USD",
            ))
