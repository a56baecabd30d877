"""User and UserSettings domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.domain.models.enums import SyncStatus


@dataclass
class User:
    """Registered user. password_hash never leaves the service layer."""

    user_id: str
    email: str
    password_hash: str
    name: str
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)


@dataclass
class UserSettings:
    """
    Per-user preferences and sync bookkeeping.

    future_data_days controls how far ahead recurring transactions and loan
    payments are materialized (0 = only through today).
    """

    user_id: str
    base_currency_id: Optional[str] = None
    date_format: str = "YYYY-MM-DD"
    language: str = "zh"
    theme: str = "system"
    fire_enabled: bool = False
    fire_swr: Decimal = field(default_factory=lambda: Decimal("4.0"))
    future_data_days: int = 7
    auto_update_exchange_rates: bool = False
    last_exchange_rate_update: Optional[datetime] = None
    last_recurring_sync: Optional[datetime] = None
    recurring_processing_status: SyncStatus = SyncStatus.IDLE
    settings_id: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.recurring_processing_status, str):
            self.recurring_processing_status = SyncStatus(self.recurring_processing_status)
