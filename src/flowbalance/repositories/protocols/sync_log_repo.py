"""Processing log repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from flowbalance.domain.models import ProcessingLog


class ProcessingLogRepository(Protocol):
    """Interface for background sync run records."""

    def create(self, log: ProcessingLog) -> ProcessingLog:
        ...

    def get_by_id(self, log_id: str) -> Optional[ProcessingLog]:
        ...

    def update(self, log: ProcessingLog) -> ProcessingLog:
        ...

    def get_latest(self, user_id: str) -> Optional[ProcessingLog]:
        ...

    def list_by_user(self, user_id: str, limit: int = 10) -> list[ProcessingLog]:
        """List logs, newest start_time first."""
        ...

    def list_since(self, since: datetime) -> list[ProcessingLog]:
        ...

    def delete_older_than(self, cutoff: datetime, user_id: Optional[str] = None) -> int:
        ...
