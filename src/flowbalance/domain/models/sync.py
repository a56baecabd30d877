"""ProcessingLog domain model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from flowbalance.domain.models.enums import SyncStatus


@dataclass
class ProcessingLog:
    """Record of one background sync run for a user."""

    log_id: str
    user_id: str
    start_time: datetime
    status: SyncStatus = SyncStatus.PROCESSING
    end_time: Optional[datetime] = None
    processed_recurring: int = 0
    processed_loans: int = 0
    processed_exchange_rates: int = 0
    failed_count: int = 0
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = SyncStatus(self.status)
