"""TransactionTemplate domain model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from flowbalance.domain.models.enums import TransactionType


@dataclass
class TransactionTemplate:
    """
    Saved prefill for INCOME or EXPENSE entries.

    Names are unique per user. A template carries no amount or date.
    """

    template_id: str
    user_id: str
    name: str
    account_id: str
    currency_id: str
    type: TransactionType
    description: str
    notes: Optional[str] = None
    tag_ids: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = TransactionType(self.type)
