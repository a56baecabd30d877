"""
Unit tests for sync status tracking and the unified sync run.

Tests cover:
- needs_sync decisions (first run, interval, failure, future data window)
- Processing log bookkeeping
- Trigger outcomes (started, already_synced, processing)
- A full run over recurring templates and loans
- Failure handling and retries
- Maintenance of stale data and stuck runs
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from flowbalance.domain.models import (
    CategoryType,
    ProcessingLog,
    RecurrenceFrequency,
    RepaymentType,
    SyncStatus,
    TransactionType,
)
from flowbalance.services import (
    LoanContractCreate,
    LoanContractUpdate,
    RecurringCreate,
    RecurringUpdate,
    UnifiedSyncService,
)


@pytest.fixture
def rent_account(user, account_factory):
    return account_factory(user.user_id, type=CategoryType.EXPENSE, name="Rent")


def _daily(account_id: str, start: datetime) -> RecurringCreate:
    return RecurringCreate(
        account_id=account_id,
        type=TransactionType.EXPENSE,
        amount=Decimal("50"),
        description="Daily lunch",
        frequency=RecurrenceFrequency.DAILY,
        start_date=start,
    )


def _mark_synced(sync_status_service, user_id: str, at: datetime) -> None:
    sync_status_service.update_sync_status(user_id, SyncStatus.COMPLETED, at)


# =============================================================================
# SYNC STATUS
# =============================================================================


class TestNeedsSync:
    """Tests for SyncStatusService.needs_sync."""

    def test_never_synced(self, user, sync_status_service):
        assert sync_status_service.needs_sync(user.user_id)

    def test_recently_synced(self, user, sync_status_service, fixed_now):
        _mark_synced(sync_status_service, user.user_id, fixed_now - timedelta(hours=1))
        assert sync_status_service.needs_sync(user.user_id) is False

    def test_interval_elapsed(self, user, sync_status_service, fixed_now):
        _mark_synced(sync_status_service, user.user_id, fixed_now - timedelta(hours=7))
        assert sync_status_service.needs_sync(user.user_id)

    def test_failed_status(self, user, sync_status_service, fixed_now):
        sync_status_service.update_sync_status(user.user_id, SyncStatus.FAILED, fixed_now)
        assert sync_status_service.needs_sync(user.user_id)

    def test_upcoming_occurrence_triggers_refresh(
        self, user, rent_account, recurring_service, sync_status_service, fixed_now
    ):
        """
        GIVEN a recent sync and a template whose next occurrence is tomorrow
        WHEN needs_sync is checked
        THEN the 2-day refresh window requires a sync
        """
        _mark_synced(sync_status_service, user.user_id, fixed_now - timedelta(hours=1))
        recurring_service.create_recurring(user.user_id, _daily(rent_account.account_id, datetime(2024, 6, 16)))

        assert sync_status_service.needs_future_data_refresh(user.user_id)
        assert sync_status_service.needs_sync(user.user_id)

    def test_distant_occurrence_ignored(self, user, rent_account, recurring_service, sync_status_service):
        recurring_service.create_recurring(user.user_id, _daily(rent_account.account_id, datetime(2024, 6, 20)))
        assert sync_status_service.needs_future_data_refresh(user.user_id) is False

    @pytest.mark.parametrize("start,expected", [
        (datetime(2024, 6, 16), True),
        (datetime(2024, 7, 16), False),
    ])
    def test_pending_loan_payment_in_window(
        self, user, account_factory, loan_service, sync_status_service, fixed_now, start, expected
    ):
        """
        GIVEN a recent sync and a loan whose first payment is tomorrow (or next month)
        WHEN the future data window is checked
        THEN only the payment inside the 2-day window requires a refresh
        """
        _mark_synced(sync_status_service, user.user_id, fixed_now - timedelta(hours=1))
        mortgage = account_factory(user.user_id, type=CategoryType.LIABILITY, name="Mortgage")
        loan_service.create_contract(user.user_id, LoanContractCreate(
            account_id=mortgage.account_id,
            contract_name="Car loan",
            loan_amount=Decimal("12000"),
            interest_rate=Decimal("0.12"),
            total_periods=12,
            repayment_type=RepaymentType.EQUAL_PRINCIPAL,
            start_date=start,
            payment_day=16,
        ))

        assert sync_status_service.needs_future_data_refresh(user.user_id) is expected
        assert sync_status_service.needs_sync(user.user_id) is expected

    def test_inactive_loan_ignored(self, user, account_factory, loan_service, sync_status_service):
        mortgage = account_factory(user.user_id, type=CategoryType.LIABILITY, name="Mortgage")
        contract = loan_service.create_contract(user.user_id, LoanContractCreate(
            account_id=mortgage.account_id,
            contract_name="Car loan",
            loan_amount=Decimal("12000"),
            interest_rate=Decimal("0.12"),
            total_periods=12,
            repayment_type=RepaymentType.EQUAL_PRINCIPAL,
            start_date=datetime(2024, 6, 16),
            payment_day=16,
        ))
        loan_service.update_contract(user.user_id, contract.contract_id, LoanContractUpdate(is_active=False))

        assert sync_status_service.needs_future_data_refresh(user.user_id) is False


class TestProcessingLogs:
    """Tests for processing log bookkeeping."""

    def test_create_and_update(self, user, sync_status_service, fixed_now):
        log = sync_status_service.create_processing_log(user.user_id)
        assert log.status == SyncStatus.PROCESSING
        assert log.start_time == fixed_now

        updated = sync_status_service.update_processing_log(
            log.log_id, status=SyncStatus.COMPLETED, processed_recurring=4, end_time=fixed_now
        )

        assert updated.status == SyncStatus.COMPLETED
        assert updated.processed_recurring == 4

    def test_unknown_field_rejected(self, user, sync_status_service):
        log = sync_status_service.create_processing_log(user.user_id)
        with pytest.raises(ValueError):
            sync_status_service.update_processing_log(log.log_id, user_id="someone-else")

    def test_unknown_log_rejected(self, sync_status_service):
        with pytest.raises(ValueError):
            sync_status_service.update_processing_log("missing", status=SyncStatus.FAILED)

    def test_cleanup_old_logs(self, user, sync_status_service, log_repo, fixed_now):
        log_repo.create(ProcessingLog(
            log_id=str(uuid.uuid4()),
            user_id=user.user_id,
            start_time=fixed_now - timedelta(days=60),
            status=SyncStatus.COMPLETED,
        ))
        sync_status_service.create_processing_log(user.user_id)

        assert sync_status_service.cleanup_old_logs(user.user_id) == 1
        assert len(sync_status_service.get_user_processing_logs(user.user_id)) == 1

    def test_system_stats(self, user, user_factory, sync_status_service):
        user_factory()
        sync_status_service.update_sync_status(user.user_id, SyncStatus.FAILED)

        stats = sync_status_service.get_system_sync_stats()

        assert stats.total_users == 2
        assert stats.status_counts == {"failed": 1, "idle": 1}


# =============================================================================
# UNIFIED SYNC
# =============================================================================


class TestTriggerUserSync:
    """Tests for trigger_user_sync outcomes."""

    def test_started_with_scheduler(self, user, unified_sync_service, sync_status_service):
        scheduled = []

        result = unified_sync_service.trigger_user_sync(user.user_id, schedule=scheduled.append)

        assert result.status == "started"
        assert scheduled == [user.user_id]
        assert sync_status_service.has_processing_task(user.user_id)

    def test_already_synced(self, user, unified_sync_service, sync_status_service, fixed_now):
        _mark_synced(sync_status_service, user.user_id, fixed_now)

        result = unified_sync_service.trigger_user_sync(user.user_id, schedule=lambda uid: None)

        assert result.status == "already_synced"

    def test_already_processing(self, user, unified_sync_service, sync_status_service):
        sync_status_service.update_sync_status(user.user_id, SyncStatus.PROCESSING)

        result = unified_sync_service.trigger_user_sync(user.user_id, force=True, schedule=lambda uid: None)

        assert result.status == "processing"

    def test_inline_run(self, user, rent_account, recurring_service, unified_sync_service, sync_status_service):
        recurring_service.create_recurring(user.user_id, _daily(rent_account.account_id, datetime(2024, 6, 10)))

        result = unified_sync_service.trigger_user_sync(user.user_id)

        assert result.status == "started"
        status = sync_status_service.get_sync_status(user.user_id)
        assert status.status == SyncStatus.COMPLETED
        assert status.processed_recurring == 13

    def test_retry_after_failure(self, user, unified_sync_service, sync_status_service, fixed_now):
        sync_status_service.update_sync_status(user.user_id, SyncStatus.FAILED, fixed_now)
        scheduled = []

        result = unified_sync_service.retry_failed_sync(user.user_id, schedule=scheduled.append)

        assert result.status == "started"
        assert scheduled == [user.user_id]


class TestProcessUserData:
    """Tests for a full sync run."""

    def test_generates_recurring_and_loans(
        self, user, rent_account, recurring_service, unified_sync_service, sync_status_service, fixed_now
    ):
        """
        GIVEN a daily template from 2024-06-10 and now = 2024-06-15 with a 7-day horizon
        WHEN the user's data is processed
        THEN 13 occurrences are generated and the run is logged as completed
        """
        recurring_service.create_recurring(user.user_id, _daily(rent_account.account_id, datetime(2024, 6, 10)))

        result = unified_sync_service.process_user_data(user.user_id)

        assert result.processed_recurring == 13
        assert result.processed_loans == 0
        assert result.errors == []
        status = sync_status_service.get_sync_status(user.user_id)
        assert status.status == SyncStatus.COMPLETED
        assert status.last_sync_time == fixed_now
        assert status.future_data_generated
        assert status.future_data_until == datetime(2024, 6, 22)

    def test_rate_failure_is_recorded_not_fatal(
        self,
        user,
        sync_status_service,
        exchange_rate_update_service,
        recurring_service,
        loan_service,
        user_repo,
        recurring_repo,
        transaction_repo,
        clock,
    ):
        updater = MagicMock(wraps=exchange_rate_update_service)
        updater.update_exchange_rates.side_effect = RuntimeError("rate api exploded")
        service = UnifiedSyncService(
            sync_status=sync_status_service,
            exchange_rate_updater=updater,
            recurring_service=recurring_service,
            loan_service=loan_service,
            user_repo=user_repo,
            recurring_repo=recurring_repo,
            transaction_repo=transaction_repo,
            clock=clock,
        )

        result = service.process_user_data(user.user_id)

        assert any("rate api exploded" in e for e in result.errors)
        status = sync_status_service.get_sync_status(user.user_id)
        assert status.status == SyncStatus.COMPLETED
        assert status.failed_count == 1

    def test_unexpected_failure_marks_failed(
        self,
        user,
        sync_status_service,
        exchange_rate_update_service,
        loan_service,
        user_repo,
        recurring_repo,
        transaction_repo,
        clock,
    ):
        """
        GIVEN recurring generation that raises
        WHEN the user's data is processed
        THEN the exception propagates and status and log are FAILED
        """
        recurring = MagicMock()
        recurring.generate_recurring_transactions.side_effect = RuntimeError("boom")
        service = UnifiedSyncService(
            sync_status=sync_status_service,
            exchange_rate_updater=exchange_rate_update_service,
            recurring_service=recurring,
            loan_service=loan_service,
            user_repo=user_repo,
            recurring_repo=recurring_repo,
            transaction_repo=transaction_repo,
            clock=clock,
        )

        with pytest.raises(RuntimeError):
            service.process_user_data(user.user_id)

        status = sync_status_service.get_sync_status(user.user_id)
        assert status.status == SyncStatus.FAILED
        assert status.error_message == "boom"
        assert sync_status_service.needs_sync(user.user_id)

        # Inline triggers swallow the failure after recording it
        assert service.trigger_user_sync(user.user_id).status == "started"
        assert sync_status_service.get_sync_status(user.user_id).status == SyncStatus.FAILED

    def test_system_wide_sync(self, user, user_factory, unified_sync_service):
        user_factory()

        result = unified_sync_service.system_wide_sync()

        assert result.total_users == 2
        assert result.processed_users == 2
        assert result.failed_users == 0


class TestSummaryAndMaintenance:
    def test_summary(self, user, rent_account, recurring_service, unified_sync_service):
        recurring_service.create_recurring(user.user_id, _daily(rent_account.account_id, datetime(2024, 6, 10)))
        unified_sync_service.process_user_data(user.user_id)

        summary = unified_sync_service.get_sync_summary(user.user_id)

        assert summary.future_stats.total_pending == 7
        assert summary.future_stats.recurring_count == 7
        assert summary.future_stats.latest_date == datetime(2024, 6, 22)
        assert summary.future_stats.days_ahead == 7
        assert len(summary.recent_logs) == 1

    def test_cleans_future_of_inactive_templates(
        self, user, rent_account, recurring_service, unified_sync_service
    ):
        recurring = recurring_service.create_recurring(
            user.user_id, _daily(rent_account.account_id, datetime(2024, 6, 10))
        )
        recurring_service.generate_recurring_transactions(user.user_id)
        recurring_service.update_recurring(user.user_id, recurring.recurring_id, RecurringUpdate(is_active=False))

        result = unified_sync_service.perform_maintenance(user.user_id)

        assert result.cleaned_transactions == 7
        assert result.errors == []

    def test_resets_stuck_processing(self, user, unified_sync_service, sync_status_service, log_repo, fixed_now):
        sync_status_service.update_sync_status(user.user_id, SyncStatus.PROCESSING)
        log_repo.create(ProcessingLog(
            log_id=str(uuid.uuid4()),
            user_id=user.user_id,
            start_time=fixed_now - timedelta(hours=2),
        ))

        result = unified_sync_service.perform_maintenance()

        assert result.reset_stuck == 1
        assert sync_status_service.has_processing_task(user.user_id) is False

    def test_recent_processing_not_reset(self, user, unified_sync_service, sync_status_service):
        sync_status_service.update_sync_status(user.user_id, SyncStatus.PROCESSING)
        sync_status_service.create_processing_log(user.user_id)

        assert unified_sync_service.perform_maintenance(user.user_id).reset_stuck == 0

    def test_health_check(self, user, unified_sync_service):
        health = unified_sync_service.health_check()
        assert health["status"] == "healthy"
        assert health["stats"].total_users == 1
