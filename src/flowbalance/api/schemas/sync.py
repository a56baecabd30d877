"""Pydantic schemas for sync endpoints."""

from datetime import datetime
from typing import Optional

from flowbalance.api.schemas.common import ApiModel
from flowbalance.domain.models import SyncStatus


class NeedsSyncResponse(ApiModel):
    needs_sync: bool


class SyncStatusResponse(ApiModel):
    status: SyncStatus
    last_sync_time: Optional[datetime] = None
    processed_recurring: int = 0
    processed_loans: int = 0
    processed_exchange_rates: int = 0
    failed_count: int = 0
    error_message: Optional[str] = None
    future_data_generated: bool = False
    future_data_until: Optional[datetime] = None


class FutureDataStatsResponse(ApiModel):
    total_pending: int
    recurring_count: int
    loan_count: int
    latest_date: Optional[datetime] = None
    days_ahead: int


class ProcessingLogResponse(ApiModel):
    log_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: SyncStatus
    processed_recurring: int
    processed_loans: int
    processed_exchange_rates: int
    failed_count: int
    error_message: Optional[str] = None


class SyncSummaryResponse(ApiModel):
    sync_status: SyncStatusResponse
    future_stats: FutureDataStatsResponse
    recent_logs: list[ProcessingLogResponse]


class SyncTriggerRequest(ApiModel):
    force: bool = False


class SyncTriggerResponse(ApiModel):
    status: str
    message: str
