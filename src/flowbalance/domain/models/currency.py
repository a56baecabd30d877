"""Currency, UserCurrency and ExchangeRate domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.domain.models.enums import ExchangeRateType


@dataclass
class Currency:
    """
    Currency definition.

    created_by is None for global currencies; custom currencies belong to
    the user that created them.
    """

    currency_id: str
    code: str
    name: str
    symbol: str
    decimal_places: int = 2
    is_custom: bool = False
    created_by: Optional[str] = None

    def __post_init__(self) -> None:
        self.code = self.code.upper()


@dataclass
class UserCurrency:
    """A currency selected by a user."""

    user_id: str
    currency_id: str
    is_active: bool = True
    order: int = 0
    user_currency_id: Optional[str] = None


@dataclass
class ExchangeRate:
    """Rate from one currency to another: 1 from = rate to."""

    rate_id: str
    user_id: str
    from_currency_id: str
    to_currency_id: str
    rate: Decimal
    effective_date: datetime
    type: ExchangeRateType = ExchangeRateType.USER
    source_rate_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = ExchangeRateType(self.type)
