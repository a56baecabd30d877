"""View models for sync status and processing outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from flowbalance.domain.models import ProcessingLog, SyncStatus


@dataclass
class SyncStatusView:
    """Current sync state of a user, enriched with the latest run's counters."""

    status: SyncStatus = SyncStatus.IDLE
    last_sync_time: Optional[datetime] = None
    processed_recurring: int = 0
    processed_loans: int = 0
    processed_exchange_rates: int = 0
    failed_count: int = 0
    error_message: Optional[str] = None
    future_data_generated: bool = False
    future_data_until: Optional[datetime] = None


@dataclass
class FutureDataStats:
    """Generated-but-not-yet-due data for a user."""

    total_pending: int = 0
    recurring_count: int = 0
    loan_count: int = 0
    latest_date: Optional[datetime] = None
    days_ahead: int = 0


@dataclass
class SyncSummary:
    sync_status: SyncStatusView
    future_stats: FutureDataStats
    recent_logs: list[ProcessingLog] = field(default_factory=list)


@dataclass
class SyncTriggerResult:
    """Outcome of a sync trigger request: started, already_synced or processing."""

    status: str
    message: str


@dataclass
class ProcessingResult:
    """Totals of one process_user_data run."""

    processed_recurring: int = 0
    processed_loans: int = 0
    processed_exchange_rates: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class GenerationResult:
    """Result of a generation pass (recurring or loan payments)."""

    processed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class SystemSyncStats:
    total_users: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)
    total_processed_24h: int = 0
    total_failed_24h: int = 0
    completed_tasks_24h: int = 0
    failed_tasks_24h: int = 0


@dataclass
class SystemSyncResult:
    total_users: int = 0
    processed_users: int = 0
    failed_users: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class MaintenanceResult:
    cleaned_logs: int = 0
    cleaned_transactions: int = 0
    reset_stuck: int = 0
    errors: list[str] = field(default_factory=list)
