"""
Unit tests for LoanService.

Tests cover:
- Contract validation
- Stored payment schedules
- Booking due payments into the ledger
- Deleting a contract with its generated transactions
"""

from datetime import datetime
from decimal import Decimal

import pytest

from flowbalance.core.exceptions import ValidationError
from flowbalance.domain.models import CategoryType, LoanPaymentStatus, RepaymentType, TransactionType
from flowbalance.services import LoanContractCreate, LoanContractUpdate
from flowbalance.services.loan_service import render_template


@pytest.fixture
def mortgage_account(user, account_factory):
    return account_factory(user.user_id, type=CategoryType.LIABILITY, name="Mortgage")


@pytest.fixture
def repayment_account(user, account_factory):
    return account_factory(user.user_id, type=CategoryType.EXPENSE, name="Loan repayments")


def _contract(account_id: str, payment_account_id=None, **overrides) -> LoanContractCreate:
    values = dict(
        account_id=account_id,
        contract_name="Car loan",
        loan_amount=Decimal("12000"),
        interest_rate=Decimal("0.12"),
        total_periods=12,
        repayment_type=RepaymentType.EQUAL_PRINCIPAL,
        start_date=datetime(2024, 5, 20),
        payment_day=20,
        payment_account_id=payment_account_id,
    )
    values.update(overrides)
    return LoanContractCreate(**values)


# =============================================================================
# CONTRACTS
# =============================================================================


class TestCreateContract:
    """Tests for contract creation."""

    def test_creates_schedule(self, user, mortgage_account, loan_service):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))

        schedule = loan_service.get_schedule(user.user_id, contract.contract_id)
        assert len(schedule) == 12
        assert all(p.status == LoanPaymentStatus.PENDING for p in schedule)
        assert schedule[0].payment_date == datetime(2024, 5, 20)
        assert schedule[1].payment_date == datetime(2024, 6, 20)
        assert contract.next_payment_date == datetime(2024, 5, 20)
        assert contract.current_period == 0

    def test_requires_liability_account(self, user, account_factory, loan_service):
        """
        GIVEN an ASSET account
        WHEN a loan contract is created on it
        THEN ValidationError is raised
        """
        bank = account_factory(user.user_id, type=CategoryType.ASSET)
        with pytest.raises(ValidationError):
            loan_service.create_contract(user.user_id, _contract(bank.account_id))

    def test_payment_account_must_be_expense(self, user, mortgage_account, account_factory, loan_service):
        bank = account_factory(user.user_id, type=CategoryType.ASSET)
        with pytest.raises(ValidationError):
            loan_service.create_contract(
                user.user_id, _contract(mortgage_account.account_id, payment_account_id=bank.account_id)
            )

    def test_payment_account_currency_must_match(self, user, mortgage_account, account_factory, loan_service):
        usd_expense = account_factory(user.user_id, type=CategoryType.EXPENSE, currency_code="USD")
        with pytest.raises(ValidationError):
            loan_service.create_contract(
                user.user_id, _contract(mortgage_account.account_id, payment_account_id=usd_expense.account_id)
            )

    @pytest.mark.parametrize("overrides", [
        {"payment_day": 0},
        {"payment_day": 32},
        {"loan_amount": Decimal("0")},
        {"total_periods": 601},
        {"contract_name": " "},
    ])
    def test_invalid_terms(self, user, mortgage_account, loan_service, overrides):
        with pytest.raises(ValidationError):
            loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id, **overrides))

    def test_update_booking_details(self, user, mortgage_account, loan_service):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))

        updated = loan_service.update_contract(
            user.user_id, contract.contract_id, LoanContractUpdate(contract_name="Auto loan")
        )

        assert updated.contract_name == "Auto loan"
        assert updated.loan_amount == Decimal("12000")


# =============================================================================
# PROCESSING
# =============================================================================


class TestProcessLoanPayments:
    """Tests for booking due payments."""

    def test_books_due_periods(
        self,
        user,
        mortgage_account,
        repayment_account,
        loan_service,
        account_service,
        transaction_repo,
        loan_repo,
    ):
        """
        GIVEN a 12,000 loan at 12% starting 2024-05-20, and now = 2024-06-15 with a 7-day horizon
        WHEN payments are processed
        THEN periods 1 and 2 are booked as principal, interest and balance transactions
        """
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )

        result = loan_service.process_loan_payments(user.user_id)

        assert result.processed == 2
        assert result.errors == []
        generated = transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id)
        assert len(generated) == 6

        liability = account_service.get_account_balance(
            user.user_id, mortgage_account.account_id, as_of=datetime(2024, 6, 30)
        )
        assert liability.balance == Decimal("10000.00")
        expense = account_service.get_account_balance(user.user_id, repayment_account.account_id)
        assert expense.balance == Decimal("2230.00")

        stored = loan_repo.get_contract(contract.contract_id)
        assert stored.current_period == 2
        assert stored.next_payment_date == datetime(2024, 7, 20)
        assert stored.is_active

        payments = loan_service.get_schedule(user.user_id, contract.contract_id)
        assert [p.status for p in payments[:3]] == [
            LoanPaymentStatus.COMPLETED, LoanPaymentStatus.COMPLETED, LoanPaymentStatus.PENDING,
        ]
        assert payments[0].balance_transaction_id is not None

    def test_default_descriptions(self, user, mortgage_account, repayment_account, loan_service, transaction_repo):
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )
        loan_service.process_loan_payments(user.user_id)

        first_period = [
            t for t in transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id)
            if t.date == datetime(2024, 5, 20)
        ]
        assert sorted(t.description for t in first_period) == [
            "Car loan period 1 - balance",
            "Car loan period 1 - interest",
            "Car loan period 1 - principal",
        ]
        balance = next(t for t in first_period if t.type == TransactionType.BALANCE)
        assert balance.account_id == mortgage_account.account_id
        assert balance.amount == Decimal("11000.00")

    def test_without_payment_account_only_balance(self, user, mortgage_account, loan_service, transaction_repo):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))

        loan_service.process_loan_payments(user.user_id)

        generated = transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id)
        assert {t.type for t in generated} == {TransactionType.BALANCE}
        assert len(generated) == 2

    def test_last_period_deactivates_contract(self, user, mortgage_account, loan_service, loan_repo):
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, total_periods=2, start_date=datetime(2024, 5, 1), payment_day=1),
        )

        loan_service.process_loan_payments(user.user_id)

        stored = loan_repo.get_contract(contract.contract_id)
        assert stored.is_active is False
        assert stored.next_payment_date is None
        assert stored.current_period == 2

    def test_rerun_is_idempotent(self, user, mortgage_account, loan_service):
        loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))
        loan_service.process_loan_payments(user.user_id)

        assert loan_service.process_loan_payments(user.user_id).processed == 0

    def test_failed_payment_leaves_no_partial_bookings(
        self,
        user,
        mortgage_account,
        repayment_account,
        loan_service,
        transaction_repo,
        loan_repo,
        monkeypatch,
    ):
        """
        GIVEN a contract whose first payment fails while its payment row is being saved
        WHEN processing runs twice
        THEN the first run books nothing and the second books each period exactly once
        """
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )
        original = loan_repo._apply_payment
        calls = {"count": 0}

        def flaky_apply_payment(payment):
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("db hiccup")
            return original(payment)

        monkeypatch.setattr(loan_repo, "_apply_payment", flaky_apply_payment)

        first = loan_service.process_loan_payments(user.user_id)

        assert first.processed == 0
        assert first.errors == ["Loan 'Car loan' period 1: db hiccup"]
        assert transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id) == []
        assert all(
            p.status == LoanPaymentStatus.PENDING
            for p in loan_service.get_schedule(user.user_id, contract.contract_id)
        )

        second = loan_service.process_loan_payments(user.user_id)

        assert second.processed == 2
        assert second.errors == []
        expenses = transaction_repo.query(
            user.user_id,
            account_ids=[repayment_account.account_id],
            types=[TransactionType.EXPENSE],
        )
        assert len(expenses) == 4
        assert sorted(t.date.month for t in expenses) == [5, 5, 6, 6]
        stored = loan_repo.get_contract(contract.contract_id)
        assert stored.current_period == 2
        assert stored.next_payment_date == datetime(2024, 7, 20)

    def test_payment_without_contract_is_skipped(
        self, user, mortgage_account, loan_service, loan_repo, transaction_repo, monkeypatch
    ):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))
        monkeypatch.setattr(loan_repo, "get_contract", lambda contract_id: None)

        result = loan_service.process_loan_payments(user.user_id)

        assert result.processed == 0
        assert result.errors == []
        assert transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id) == []


# =============================================================================
# SCHEDULE CHANGES
# =============================================================================


class TestRegenerateSchedule:
    """Editing loan terms rebuilds the pending part of the schedule."""

    def test_rate_change_keeps_booked_periods(
        self, user, mortgage_account, repayment_account, loan_service, transaction_repo
    ):
        """
        GIVEN a 12-period loan with periods 1 and 2 booked
        WHEN the interest rate drops to 6%
        THEN periods 3..12 are rebuilt from the 10,000 still owed and periods 1-2 stay booked
        """
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )
        loan_service.process_loan_payments(user.user_id)
        booked = loan_service.get_schedule(user.user_id, contract.contract_id)[:2]

        updated = loan_service.update_contract(
            user.user_id, contract.contract_id, LoanContractUpdate(interest_rate=Decimal("0.06"))
        )

        schedule = loan_service.get_schedule(user.user_id, contract.contract_id)
        assert [p.period for p in schedule] == list(range(1, 13))
        assert [p.payment_id for p in schedule[:2]] == [p.payment_id for p in booked]
        assert all(p.status == LoanPaymentStatus.COMPLETED for p in schedule[:2])
        assert all(p.status == LoanPaymentStatus.PENDING for p in schedule[2:])
        assert schedule[2].payment_date == datetime(2024, 7, 20)
        assert schedule[2].principal_amount == Decimal("1000.00")
        assert schedule[2].interest_amount == Decimal("50.00")
        assert schedule[-1].remaining_balance == Decimal("0.00")
        assert updated.interest_rate == Decimal("0.06")
        assert updated.current_period == 2
        assert updated.next_payment_date == datetime(2024, 7, 20)
        assert len(transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id)) == 6

    def test_extending_term_adds_periods(self, user, mortgage_account, loan_service):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))

        loan_service.update_contract(
            user.user_id, contract.contract_id, LoanContractUpdate(total_periods=24)
        )

        schedule = loan_service.get_schedule(user.user_id, contract.contract_id)
        assert len(schedule) == 24
        assert schedule[0].principal_amount == Decimal("500.00")
        assert schedule[-1].payment_date == datetime(2026, 4, 20)

    def test_total_periods_must_exceed_booked(self, user, mortgage_account, loan_service):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))
        loan_service.process_loan_payments(user.user_id)

        with pytest.raises(ValidationError):
            loan_service.update_contract(
                user.user_id, contract.contract_id, LoanContractUpdate(total_periods=2)
            )

        assert len(loan_service.get_schedule(user.user_id, contract.contract_id)) == 12

    def test_unchanged_terms_do_not_rebuild(self, user, mortgage_account, loan_service):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))
        before = [p.payment_id for p in loan_service.get_schedule(user.user_id, contract.contract_id)]

        loan_service.update_contract(
            user.user_id, contract.contract_id, LoanContractUpdate(interest_rate=Decimal("0.12"))
        )

        after = [p.payment_id for p in loan_service.get_schedule(user.user_id, contract.contract_id)]
        assert after == before


class TestResetPayments:
    """Reverting booked payments to PENDING."""

    def test_reset_all_completed(
        self, user, mortgage_account, repayment_account, loan_service, transaction_repo, loan_repo
    ):
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )
        loan_service.process_loan_payments(user.user_id)

        result = loan_service.reset_payments(user.user_id, contract.contract_id)

        assert result.reset_count == 2
        assert result.deleted_transactions == 6
        assert transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id) == []
        schedule = loan_service.get_schedule(user.user_id, contract.contract_id)
        assert all(p.status == LoanPaymentStatus.PENDING for p in schedule)
        assert all(p.principal_transaction_id is None for p in schedule)
        stored = loan_repo.get_contract(contract.contract_id)
        assert stored.current_period == 0
        assert stored.next_payment_date == datetime(2024, 5, 20)
        assert stored.is_active

    def test_reset_selected_payment(self, user, mortgage_account, repayment_account, loan_service, loan_repo):
        """
        GIVEN periods 1 and 2 booked
        WHEN only period 2 is reset
        THEN period 1 stays booked and the contract resumes at period 2
        """
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )
        loan_service.process_loan_payments(user.user_id)
        second = loan_service.get_schedule(user.user_id, contract.contract_id)[1]

        result = loan_service.reset_payments(user.user_id, contract.contract_id, [second.payment_id])

        assert result.reset_count == 1
        assert result.deleted_transactions == 3
        stored = loan_repo.get_contract(contract.contract_id)
        assert stored.current_period == 1
        assert stored.next_payment_date == datetime(2024, 6, 20)

        rerun = loan_service.process_loan_payments(user.user_id)
        assert rerun.processed == 1

    def test_nothing_to_reset(self, user, mortgage_account, loan_service):
        contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))

        with pytest.raises(ValidationError):
            loan_service.reset_payments(user.user_id, contract.contract_id)


class TestDeleteContract:
    def test_removes_generated_transactions(
        self, user, mortgage_account, repayment_account, loan_service, transaction_repo, loan_repo
    ):
        contract = loan_service.create_contract(
            user.user_id,
            _contract(mortgage_account.account_id, payment_account_id=repayment_account.account_id),
        )
        loan_service.process_loan_payments(user.user_id)

        removed = loan_service.delete_contract(user.user_id, contract.contract_id)

        assert removed == 6
        assert transaction_repo.query(user.user_id, loan_contract_id=contract.contract_id) == []
        assert loan_repo.get_contract(contract.contract_id) is None


def test_render_template_placeholders(user, mortgage_account, loan_service):
    contract = loan_service.create_contract(user.user_id, _contract(mortgage_account.account_id))
    payment = loan_service.get_schedule(user.user_id, contract.contract_id)[0]

    text = render_template("{contractName} #{period}, left {remainingBalance}", contract, payment)

    assert text == "Car loan #1, left 11,000.00"
