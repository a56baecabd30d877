"""Sync status bookkeeping: per-user state, processing logs and statistics."""

import logging
import uuid
from datetime import timedelta
from typing import Callable, Optional

from flowbalance.config.settings import get_settings
from flowbalance.core.timezone import future_horizon, hours_between, now_utc
from flowbalance.domain.models import ProcessingLog, SyncStatus, UserSettings
from flowbalance.domain.views import SyncStatusView, SystemSyncStats
from flowbalance.repositories.protocols import (
    LoanRepository,
    ProcessingLogRepository,
    RecurringTransactionRepository,
    TransactionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

_LOG_FIELDS = (
    "end_time",
    "status",
    "processed_recurring",
    "processed_loans",
    "processed_exchange_rates",
    "failed_count",
    "error_message",
)


class SyncStatusService:
    """
    Tracks when each user's generated data was last brought up to date.

    The state lives on UserSettings (recurring_processing_status and
    last_recurring_sync); each run is recorded as a ProcessingLog.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        log_repo: ProcessingLogRepository,
        recurring_repo: RecurringTransactionRepository,
        loan_repo: LoanRepository,
        transaction_repo: TransactionRepository,
        clock: Callable = now_utc,
    ):
        self._user_repo = user_repo
        self._log_repo = log_repo
        self._recurring_repo = recurring_repo
        self._loan_repo = loan_repo
        self._transaction_repo = transaction_repo
        self._clock = clock

    def needs_sync(self, user_id: str) -> bool:
        settings = self._user_repo.get_settings(user_id)
        if not settings or not settings.last_recurring_sync:
            return True
        if settings.recurring_processing_status == SyncStatus.FAILED:
            return True
        hours = hours_between(settings.last_recurring_sync, self._clock())
        return hours > get_settings().sync_interval_hours or self.needs_future_data_refresh(user_id)

    def needs_future_data_refresh(self, user_id: str) -> bool:
        """
        True when generated data will run out soon: an active template's next
        occurrence or a pending loan payment falls inside the refresh window.
        """
        settings = self._user_repo.get_settings(user_id)
        days = settings.future_data_days if settings else get_settings().default_future_data_days
        window = min(get_settings().future_data_refresh_threshold_days, days)
        cutoff = future_horizon(self._clock(), window)

        for recurring in self._recurring_repo.list_active(user_id):
            if recurring.end_date and recurring.next_date > recurring.end_date:
                continue
            if recurring.max_occurrences and recurring.current_count >= recurring.max_occurrences:
                continue
            if recurring.next_date <= cutoff:
                return True
        return bool(self._loan_repo.list_due_payments(cutoff, user_id))

    def get_sync_status(self, user_id: str) -> SyncStatusView:
        settings = self._user_repo.get_settings(user_id)
        latest = self._log_repo.get_latest(user_id)
        future = self._transaction_repo.query(
            user_id,
            start_date=self._clock(),
            generated_only=True,
            newest_first=True,
            limit=1,
        )
        return SyncStatusView(
            status=settings.recurring_processing_status if settings else SyncStatus.IDLE,
            last_sync_time=settings.last_recurring_sync if settings else None,
            processed_recurring=latest.processed_recurring if latest else 0,
            processed_loans=latest.processed_loans if latest else 0,
            processed_exchange_rates=latest.processed_exchange_rates if latest else 0,
            failed_count=latest.failed_count if latest else 0,
            error_message=latest.error_message if latest else None,
            future_data_generated=bool(future),
            future_data_until=future[0].date if future else None,
        )

    def update_sync_status(self, user_id: str, status: SyncStatus, last_sync_time=None) -> UserSettings:
        settings = self._user_repo.get_settings(user_id)
        if settings is None:
            settings = self._user_repo.create_settings(UserSettings(
                settings_id=str(uuid.uuid4()),
                user_id=user_id,
                future_data_days=get_settings().default_future_data_days,
            ))
        settings.recurring_processing_status = SyncStatus(status)
        if last_sync_time is not None:
            settings.last_recurring_sync = last_sync_time
        return self._user_repo.update_settings(settings)

    def create_processing_log(self, user_id: str) -> ProcessingLog:
        return self._log_repo.create(ProcessingLog(
            log_id=str(uuid.uuid4()),
            user_id=user_id,
            start_time=self._clock(),
            status=SyncStatus.PROCESSING,
        ))

    def update_processing_log(self, log_id: str, **changes) -> ProcessingLog:
        """Update selected fields of a log (end_time, status, counters, error_message)."""
        log = self._log_repo.get_by_id(log_id)
        if log is None:
            raise ValueError(f"Processing log not found: {log_id}")
        for name, value in changes.items():
            if name not in _LOG_FIELDS:
                raise ValueError(f"Unknown processing log field: {name}")
            setattr(log, name, value)
        return self._log_repo.update(log)

    def get_user_processing_logs(self, user_id: str, limit: int = 10) -> list[ProcessingLog]:
        return self._log_repo.list_by_user(user_id, limit)

    def cleanup_old_logs(self, user_id: Optional[str] = None, keep_days: Optional[int] = None) -> int:
        if keep_days is None:
            keep_days = get_settings().processing_log_retention_days
        cutoff = self._clock() - timedelta(days=keep_days)
        return self._log_repo.delete_older_than(cutoff, user_id)

    def has_processing_task(self, user_id: str) -> bool:
        settings = self._user_repo.get_settings(user_id)
        return bool(settings and settings.recurring_processing_status == SyncStatus.PROCESSING)

    def reset_processing_status(self, user_id: str) -> UserSettings:
        return self.update_sync_status(user_id, SyncStatus.IDLE)

    def get_system_sync_stats(self) -> SystemSyncStats:
        stats = SystemSyncStats(total_users=len(self._user_repo.list_all()))
        for settings in self._user_repo.list_settings():
            key = settings.recurring_processing_status.value
            stats.status_counts[key] = stats.status_counts.get(key, 0) + 1

        for log in self._log_repo.list_since(self._clock() - timedelta(hours=24)):
            stats.total_processed_24h += log.processed_recurring + log.processed_loans
            stats.total_failed_24h += log.failed_count
            if log.status == SyncStatus.COMPLETED:
                stats.completed_tasks_24h += 1
            elif log.status == SyncStatus.FAILED:
                stats.failed_tasks_24h += 1
        return stats
