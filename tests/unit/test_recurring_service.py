"""
Unit tests for RecurringService.

Tests cover:
- Template validation against the account type
- Materialization up to the future-data horizon
- Idempotent re-runs
- max_occurrences and end_date limits
- Deleting a template with its future transactions
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from flowbalance.core.exceptions import NotFoundError, ValidationError
from flowbalance.domain.models import CategoryType, RecurrenceFrequency, TransactionType
from flowbalance.services import RecurringCreate, RecurringUpdate


@pytest.fixture
def salary_account(user, account_factory):
    return account_factory(user.user_id, type=CategoryType.INCOME, name="Salary")


def _monthly_salary(account_id: str, **overrides) -> RecurringCreate:
    values = dict(
        account_id=account_id,
        type=TransactionType.INCOME,
        amount=Decimal("8000"),
        description="Monthly salary",
        frequency=RecurrenceFrequency.MONTHLY,
        start_date=datetime(2024, 4, 10),
        day_of_month=10,
    )
    values.update(overrides)
    return RecurringCreate(**values)


# =============================================================================
# TEMPLATE VALIDATION
# =============================================================================


class TestCreateRecurring:
    """Tests for template creation."""

    def test_create_normalizes_start(self, user, salary_account, recurring_service):
        recurring = recurring_service.create_recurring(
            user.user_id,
            _monthly_salary(salary_account.account_id, start_date=datetime(2024, 4, 10, 15, 30)),
        )

        assert recurring.start_date == datetime(2024, 4, 10)
        assert recurring.next_date == datetime(2024, 4, 10)
        assert recurring.current_count == 0
        assert recurring.is_active

    def test_stock_account_rejected(self, user, account_factory, recurring_service):
        """
        GIVEN an ASSET account
        WHEN a recurring template is attached to it
        THEN ValidationError is raised
        """
        bank = account_factory(user.user_id, type=CategoryType.ASSET)

        with pytest.raises(ValidationError):
            recurring_service.create_recurring(
                user.user_id, _monthly_salary(bank.account_id, type=TransactionType.BALANCE)
            )

    def test_type_must_match_account(self, user, salary_account, recurring_service):
        with pytest.raises(ValidationError):
            recurring_service.create_recurring(
                user.user_id, _monthly_salary(salary_account.account_id, type=TransactionType.EXPENSE)
            )

    @pytest.mark.parametrize("overrides", [
        {"amount": Decimal("0")},
        {"description": "   "},
        {"interval": 0},
        {"day_of_month": 32},
        {"day_of_week": 7},
        {"end_date": datetime(2024, 1, 1)},
    ])
    def test_invalid_template(self, user, salary_account, recurring_service, overrides):
        with pytest.raises(ValidationError):
            recurring_service.create_recurring(
                user.user_id, _monthly_salary(salary_account.account_id, **overrides)
            )

    def test_other_users_account_not_found(self, user, user_factory, salary_account, recurring_service):
        other = user_factory()
        with pytest.raises(NotFoundError):
            recurring_service.create_recurring(other.user_id, _monthly_salary(salary_account.account_id))


# =============================================================================
# GENERATION
# =============================================================================


class TestGenerateRecurring:
    """Tests for materializing occurrences."""

    def test_generates_through_horizon(
        self, user, salary_account, recurring_service, recurring_repo, transaction_repo
    ):
        """
        GIVEN a monthly template starting 2024-04-10 and now = 2024-06-15 with a 7-day horizon
        WHEN generation runs
        THEN April, May and June occurrences exist and next_date is 2024-07-10
        """
        recurring = recurring_service.create_recurring(
            user.user_id, _monthly_salary(salary_account.account_id)
        )

        result = recurring_service.generate_recurring_transactions(user.user_id)

        assert result.processed == 3
        assert result.errors == []
        generated = transaction_repo.query(user.user_id, recurring_transaction_id=recurring.recurring_id)
        assert [t.date for t in generated] == [
            datetime(2024, 4, 10), datetime(2024, 5, 10), datetime(2024, 6, 10),
        ]
        assert all(t.amount == Decimal("8000") for t in generated)
        stored = recurring_repo.get_by_id(recurring.recurring_id)
        assert stored.current_count == 3
        assert stored.next_date == datetime(2024, 7, 10)

    def test_rerun_creates_nothing(self, user, salary_account, recurring_service):
        recurring_service.create_recurring(user.user_id, _monthly_salary(salary_account.account_id))
        recurring_service.generate_recurring_transactions(user.user_id)

        result = recurring_service.generate_recurring_transactions(user.user_id)

        assert result.processed == 0

    def test_respects_max_occurrences(self, user, salary_account, recurring_service, transaction_repo):
        recurring = recurring_service.create_recurring(
            user.user_id, _monthly_salary(salary_account.account_id, max_occurrences=2)
        )

        recurring_service.generate_recurring_transactions(user.user_id)

        generated = transaction_repo.query(user.user_id, recurring_transaction_id=recurring.recurring_id)
        assert len(generated) == 2

    def test_respects_end_date(self, user, salary_account, recurring_service, transaction_repo):
        recurring = recurring_service.create_recurring(
            user.user_id, _monthly_salary(salary_account.account_id, end_date=datetime(2024, 5, 31))
        )

        recurring_service.generate_recurring_transactions(user.user_id)

        generated = transaction_repo.query(user.user_id, recurring_transaction_id=recurring.recurring_id)
        assert [t.date.month for t in generated] == [4, 5]

    def test_long_running_template_catches_up(
        self, user, salary_account, recurring_service, recurring_repo, transaction_repo
    ):
        """
        GIVEN a daily template started 2021-06-01, with 1118 occurrences due by the 2024-06-22 horizon
        WHEN generation runs three times
        THEN the passes create 1000, 118 and 0 rows and today's occurrence exists
        """
        recurring = recurring_service.create_recurring(
            user.user_id,
            _monthly_salary(
                salary_account.account_id,
                frequency=RecurrenceFrequency.DAILY,
                start_date=datetime(2021, 6, 1),
                day_of_month=None,
            ),
        )

        first = recurring_service.generate_recurring_transactions(user.user_id)
        second = recurring_service.generate_recurring_transactions(user.user_id)
        third = recurring_service.generate_recurring_transactions(user.user_id)

        assert (first.processed, second.processed, third.processed) == (1000, 118, 0)
        dates = transaction_repo.list_recurring_dates(recurring.recurring_id)
        assert len(dates) == 1118
        assert date(2024, 6, 15) in dates
        assert max(dates) == date(2024, 6, 22)
        stored = recurring_repo.get_by_id(recurring.recurring_id)
        assert stored.current_count == 1118
        assert stored.next_date == datetime(2024, 6, 23)

    def test_inactive_template_skipped(self, user, salary_account, recurring_service):
        recurring = recurring_service.create_recurring(user.user_id, _monthly_salary(salary_account.account_id))
        recurring_service.update_recurring(user.user_id, recurring.recurring_id, RecurringUpdate(is_active=False))

        assert recurring_service.generate_recurring_transactions(user.user_id).processed == 0

    def test_due_templates(self, user, salary_account, recurring_service):
        recurring_service.create_recurring(user.user_id, _monthly_salary(salary_account.account_id))
        recurring_service.create_recurring(
            user.user_id,
            _monthly_salary(salary_account.account_id, description="Bonus", start_date=datetime(2024, 9, 1)),
        )

        due = recurring_service.get_due_recurring_transactions(user.user_id)

        assert [r.description for r in due] == ["Monthly salary"]


# =============================================================================
# DELETION
# =============================================================================


class TestDeleteRecurring:
    """Tests for template deletion."""

    def test_delete_removes_future_transactions(
        self, user, salary_account, recurring_service, recurring_repo, transaction_repo
    ):
        """
        GIVEN a daily template from 2024-06-10 generated through 2024-06-22
        WHEN it is deleted at 2024-06-15 12:00 with delete_future
        THEN the 7 later occurrences go and the 6 earlier ones stay
        """
        recurring = recurring_service.create_recurring(
            user.user_id,
            _monthly_salary(
                salary_account.account_id,
                frequency=RecurrenceFrequency.DAILY,
                start_date=datetime(2024, 6, 10),
                day_of_month=None,
            ),
        )
        recurring_service.generate_recurring_transactions(user.user_id)

        removed = recurring_service.delete_recurring(user.user_id, recurring.recurring_id, delete_future=True)

        assert removed == 7
        remaining = transaction_repo.query(user.user_id, account_ids=[salary_account.account_id])
        assert len(remaining) == 6
        assert max(t.date for t in remaining) == datetime(2024, 6, 15)
        assert recurring_repo.get_by_id(recurring.recurring_id) is None

    def test_delete_keeps_transactions(self, user, salary_account, recurring_service, transaction_repo):
        recurring = recurring_service.create_recurring(user.user_id, _monthly_salary(salary_account.account_id))
        recurring_service.generate_recurring_transactions(user.user_id)

        removed = recurring_service.delete_recurring(user.user_id, recurring.recurring_id, delete_future=False)

        assert removed == 0
        assert len(transaction_repo.query(user.user_id, account_ids=[salary_account.account_id])) == 3
