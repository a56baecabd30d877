"""Unified sync: exchange rates, recurring transactions and loan payments in one run."""

import logging
from datetime import timedelta
from typing import Callable, Optional

from flowbalance.core.timezone import now_utc
from flowbalance.domain.models import SyncStatus
from flowbalance.domain.views import (
    FutureDataStats,
    MaintenanceResult,
    ProcessingResult,
    SyncSummary,
    SyncTriggerResult,
    SystemSyncResult,
)
from flowbalance.repositories.protocols import (
    RecurringTransactionRepository,
    TransactionRepository,
    UserRepository,
)
from flowbalance.services.exchange_rate_update_service import ExchangeRateUpdateService
from flowbalance.services.loan_service import LoanService
from flowbalance.services.recurring_service import RecurringService
from flowbalance.services.sync_status_service import SyncStatusService

logger = logging.getLogger(__name__)

# A run still marked processing after this long is considered dead
STUCK_PROCESSING_HOURS = 1

Scheduler = Callable[[str], None]


class UnifiedSyncService:
    """
    Orchestrates the per-user sync run.

    trigger_user_sync only decides and marks the user as processing; the run
    itself (process_user_data) is handed to a scheduler so that HTTP callers
    can execute it after the response is sent.
    """

    def __init__(
        self,
        sync_status: SyncStatusService,
        exchange_rate_updater: ExchangeRateUpdateService,
        recurring_service: RecurringService,
        loan_service: LoanService,
        user_repo: UserRepository,
        recurring_repo: RecurringTransactionRepository,
        transaction_repo: TransactionRepository,
        clock: Callable = now_utc,
    ):
        self._sync_status = sync_status
        self._exchange_rate_updater = exchange_rate_updater
        self._recurring_service = recurring_service
        self._loan_service = loan_service
        self._user_repo = user_repo
        self._recurring_repo = recurring_repo
        self._transaction_repo = transaction_repo
        self._clock = clock

    def trigger_user_sync(
        self,
        user_id: str,
        force: bool = False,
        schedule: Optional[Scheduler] = None,
    ) -> SyncTriggerResult:
        """
        Start a sync unless the user is up to date or already running.

        Without a scheduler the run happens inline; its failure is recorded
        in the sync status and logged, not raised.
        """
        if not force and not self._sync_status.needs_sync(user_id):
            return SyncTriggerResult("already_synced", "Data is already up to date")
        if self._sync_status.has_processing_task(user_id):
            return SyncTriggerResult("processing", "Sync is already in progress")

        self._sync_status.update_sync_status(user_id, SyncStatus.PROCESSING)
        if schedule is not None:
            schedule(user_id)
        else:
            try:
                self.process_user_data(user_id)
            except Exception:
                logger.exception("Inline sync failed for user %s", user_id)
        return SyncTriggerResult("started", "Sync started")

    def process_user_data(self, user_id: str) -> ProcessingResult:
        """
        Run exchange rate update, recurring generation and loan processing.

        Per-item problems are collected into the log's error message; an
        unexpected exception marks the run failed and propagates.
        """
        self._sync_status.update_sync_status(user_id, SyncStatus.PROCESSING)
        log = self._sync_status.create_processing_log(user_id)
        result = ProcessingResult()

        try:
            self._process_exchange_rates(user_id, result)

            recurring = self._recurring_service.generate_recurring_transactions(user_id)
            result.processed_recurring += recurring.processed
            result.errors.extend(recurring.errors)

            loans = self._loan_service.process_loan_payments(user_id)
            result.processed_loans += loans.processed
            result.errors.extend(loans.errors)

            now = self._clock()
            self._sync_status.update_sync_status(user_id, SyncStatus.COMPLETED, now)
            self._sync_status.update_processing_log(
                log.log_id,
                end_time=now,
                status=SyncStatus.COMPLETED,
                processed_recurring=result.processed_recurring,
                processed_loans=result.processed_loans,
                processed_exchange_rates=result.processed_exchange_rates,
                failed_count=len(result.errors),
                error_message="; ".join(result.errors) if result.errors else None,
            )
        except Exception as e:
            self._sync_status.update_sync_status(user_id, SyncStatus.FAILED)
            self._sync_status.update_processing_log(
                log.log_id,
                end_time=self._clock(),
                status=SyncStatus.FAILED,
                processed_recurring=result.processed_recurring,
                processed_loans=result.processed_loans,
                processed_exchange_rates=result.processed_exchange_rates,
                failed_count=len(result.errors) + 1,
                error_message=str(e) or type(e).__name__,
            )
            raise

        logger.info(
            "Sync for user %s: %d recurring, %d loan payments, %d rates, %d errors",
            user_id,
            result.processed_recurring,
            result.processed_loans,
            result.processed_exchange_rates,
            len(result.errors),
        )
        return result

    def _process_exchange_rates(self, user_id: str, result: ProcessingResult) -> None:
        try:
            update = self._exchange_rate_updater.update_exchange_rates(user_id)
        except Exception as e:
            logger.exception("Exchange rate update crashed for user %s", user_id)
            result.errors.append(f"Exchange rate auto-update failed: {e}")
            return
        if update.skipped:
            logger.info("Exchange rate update skipped for user %s: %s", user_id, update.skip_reason)
        elif not update.success:
            result.errors.append(update.message or "Exchange rate update failed")
        else:
            result.processed_exchange_rates += update.updated_count
            result.errors.extend(update.errors)

    def retry_failed_sync(self, user_id: str, schedule: Optional[Scheduler] = None) -> SyncTriggerResult:
        self._sync_status.reset_processing_status(user_id)
        return self.trigger_user_sync(user_id, force=True, schedule=schedule)

    def get_future_transaction_stats(self, user_id: str) -> FutureDataStats:
        """Generated transactions dated after now."""
        settings = self._user_repo.get_settings(user_id)
        future = self._transaction_repo.query(
            user_id,
            start_date=self._clock(),
            generated_only=True,
        )
        return FutureDataStats(
            total_pending=len(future),
            recurring_count=sum(1 for t in future if t.recurring_transaction_id),
            loan_count=sum(1 for t in future if t.loan_contract_id),
            latest_date=max((t.date for t in future), default=None),
            days_ahead=settings.future_data_days if settings else 0,
        )

    def get_sync_summary(self, user_id: str) -> SyncSummary:
        return SyncSummary(
            sync_status=self._sync_status.get_sync_status(user_id),
            future_stats=self.get_future_transaction_stats(user_id),
            recent_logs=self._sync_status.get_user_processing_logs(user_id, 5),
        )

    def system_wide_sync(self) -> SystemSyncResult:
        """Run process_user_data for every user that needs it, one at a time."""
        users = self._user_repo.list_all()
        result = SystemSyncResult(total_users=len(users))
        for user in users:
            if self._sync_status.has_processing_task(user.user_id):
                continue
            if not self._sync_status.needs_sync(user.user_id):
                continue
            try:
                self.process_user_data(user.user_id)
                result.processed_users += 1
            except Exception as e:
                logger.exception("System sync failed for user %s", user.user_id)
                result.failed_users += 1
                result.errors.append(f"{user.user_id}: {e}")
        return result

    def perform_maintenance(self, user_id: Optional[str] = None) -> MaintenanceResult:
        """
        Prune old logs, future transactions of inactive templates and
        processing states left behind by dead runs.
        """
        result = MaintenanceResult()
        try:
            result.cleaned_logs = self._sync_status.cleanup_old_logs(user_id)
            user_ids = [user_id] if user_id else [u.user_id for u in self._user_repo.list_all()]
            for uid in user_ids:
                result.cleaned_transactions += self._cleanup_inactive_future(uid)
                if self._reset_if_stuck(uid):
                    result.reset_stuck += 1
        except Exception as e:
            logger.exception("Maintenance failed")
            result.errors.append(str(e))
        return result

    def health_check(self) -> dict:
        try:
            return {
                "status": "healthy",
                "timestamp": self._clock(),
                "stats": self._sync_status.get_system_sync_stats(),
            }
        except Exception as e:
            logger.exception("Sync health check failed")
            return {"status": "unhealthy", "timestamp": self._clock(), "error": str(e)}

    def _cleanup_inactive_future(self, user_id: str) -> int:
        now = self._clock()
        removed = 0
        for recurring in self._recurring_repo.list_by_user(user_id):
            if recurring.is_active:
                continue
            future = self._transaction_repo.query(
                user_id, recurring_transaction_id=recurring.recurring_id, start_date=now
            )
            if future:
                removed += self._transaction_repo.delete_many([t.txn_id for t in future])
        return removed

    def _reset_if_stuck(self, user_id: str) -> bool:
        if not self._sync_status.has_processing_task(user_id):
            return False
        logs = self._sync_status.get_user_processing_logs(user_id, 1)
        cutoff = self._clock() - timedelta(hours=STUCK_PROCESSING_HOURS)
        if logs and logs[0].start_time > cutoff:
            return False
        self._sync_status.reset_processing_status(user_id)
        logger.warning("Reset stuck sync status for user %s", user_id)
        return True
