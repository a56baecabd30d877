"""View models for currency conversion and exchange rate maintenance."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class RateSnapshot:
    """Latest rates published by a provider for one base currency."""

    base: str
    date: datetime
    rates: dict[str, Decimal] = field(default_factory=dict)


@dataclass
class ConversionResult:
    """
    Result of converting an amount between currencies.

    When no rate exists, success is False and the original amount is
    returned unchanged with rate 1.
    """

    original_amount: Decimal
    original_currency: str
    converted_amount: Decimal
    target_currency: str
    exchange_rate: Decimal
    success: bool = True
    error: Optional[str] = None


@dataclass
class AutoGenerationResult:
    reverse_rates: int = 0
    transitive_rates: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def generated(self) -> int:
        return self.reverse_rates + self.transitive_rates


@dataclass
class ExchangeRateUpdateResult:
    """Outcome of an automatic exchange rate update."""

    success: bool
    message: str
    updated_count: int = 0
    errors: list[str] = field(default_factory=list)
    skipped: bool = False
    skip_reason: Optional[str] = None
    error_code: Optional[str] = None
    last_updated: Optional[datetime] = None
    base_currency: Optional[str] = None


@dataclass
class ExchangeRateUpdateStatus:
    enabled: bool
    last_update: Optional[datetime]
    needs_update: bool
    hours_since_last_update: Optional[float] = None
