"""LoanContract and LoanPayment domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.domain.models.enums import RepaymentType, LoanPaymentStatus


@dataclass
class LoanContract:
    """
    Loan attached to a LIABILITY account.

    interest_rate is annual, as a fraction (0.045 = 4.5%). Payments are
    booked against payment_account_id, an EXPENSE account.
    """

    contract_id: str
    user_id: str
    account_id: str
    currency_id: str
    contract_name: str
    loan_amount: Decimal
    interest_rate: Decimal
    total_periods: int
    repayment_type: RepaymentType
    start_date: datetime
    payment_day: int
    payment_account_id: Optional[str] = None
    transaction_description: Optional[str] = None
    transaction_notes: Optional[str] = None
    transaction_tag_ids: list[str] = field(default_factory=list)
    is_active: bool = True
    current_period: int = 0
    next_payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.repayment_type, str):
            self.repayment_type = RepaymentType(self.repayment_type)


@dataclass
class LoanPayment:
    """One scheduled installment of a loan contract."""

    payment_id: str
    contract_id: str
    user_id: str
    period: int
    payment_date: datetime
    principal_amount: Decimal
    interest_amount: Decimal
    total_amount: Decimal
    remaining_balance: Decimal
    status: LoanPaymentStatus = LoanPaymentStatus.PENDING
    principal_transaction_id: Optional[str] = None
    interest_transaction_id: Optional[str] = None
    balance_transaction_id: Optional[str] = None
    processed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = LoanPaymentStatus(self.status)
