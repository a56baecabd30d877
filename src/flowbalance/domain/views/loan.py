"""View models for loan calculations."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class LoanScheduleItem:
    period: int
    principal: Decimal
    interest: Decimal
    total_payment: Decimal
    remaining_balance: Decimal
    payment_date: Optional[datetime] = None


@dataclass
class LoanCalculation:
    """Full amortization of a loan."""

    monthly_payment: Decimal
    total_interest: Decimal
    total_payment: Decimal
    schedule: list[LoanScheduleItem] = field(default_factory=list)


@dataclass
class LoanResetResult:
    reset_count: int = 0
    deleted_transactions: int = 0
