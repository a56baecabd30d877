"""RecurringTransaction domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.domain.models.enums import RecurrenceFrequency, TransactionType


@dataclass
class RecurringTransaction:
    """
    Template that materializes into transactions on a schedule.

    day_of_week uses 0 = Sunday .. 6 = Saturday.
    """

    recurring_id: str
    user_id: str
    account_id: str
    currency_id: str
    type: TransactionType
    amount: Decimal
    description: str
    frequency: RecurrenceFrequency
    start_date: datetime
    next_date: datetime
    interval: int = 1
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    month_of_year: Optional[int] = None
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = None
    current_count: int = 0
    is_active: bool = True
    notes: Optional[str] = None
    tag_ids: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = TransactionType(self.type)
        if isinstance(self.frequency, str):
            self.frequency = RecurrenceFrequency(self.frequency)
