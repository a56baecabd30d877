"""Pydantic schemas for recurring transactions and loan contracts."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from flowbalance.api.schemas.common import ApiModel, UtcDateTime
from flowbalance.domain.models import (
    LoanPaymentStatus,
    RecurrenceFrequency,
    RepaymentType,
    TransactionType,
)


class RecurringCreateRequest(ApiModel):
    account_id: str
    type: TransactionType
    amount: Decimal
    description: str = Field(..., min_length=1, max_length=500)
    frequency: RecurrenceFrequency
    start_date: UtcDateTime
    interval: int = Field(1, ge=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    month_of_year: Optional[int] = Field(None, ge=1, le=12)
    end_date: Optional[UtcDateTime] = None
    max_occurrences: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    tag_ids: list[str] = []


class RecurringUpdateRequest(ApiModel):
    amount: Optional[Decimal] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    notes: Optional[str] = None
    end_date: Optional[UtcDateTime] = None
    max_occurrences: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    tag_ids: Optional[list[str]] = None


class RecurringResponse(ApiModel):
    recurring_id: str
    account_id: str
    currency_id: str
    type: TransactionType
    amount: Decimal
    description: str
    frequency: RecurrenceFrequency
    interval: int
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    month_of_year: Optional[int] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    next_date: datetime
    max_occurrences: Optional[int] = None
    current_count: int
    is_active: bool
    notes: Optional[str] = None
    tag_ids: list[str] = []


class LoanContractCreateRequest(ApiModel):
    account_id: str
    contract_name: str = Field(..., min_length=1, max_length=100)
    loan_amount: Decimal
    interest_rate: Decimal
    total_periods: int
    repayment_type: RepaymentType
    start_date: UtcDateTime
    payment_day: int = Field(..., ge=1, le=31)
    payment_account_id: Optional[str] = None
    transaction_description: Optional[str] = None
    transaction_notes: Optional[str] = None
    transaction_tag_ids: list[str] = []


class LoanContractUpdateRequest(ApiModel):
    contract_name: Optional[str] = Field(None, min_length=1, max_length=100)
    loan_amount: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    total_periods: Optional[int] = None
    repayment_type: Optional[RepaymentType] = None
    start_date: Optional[UtcDateTime] = None
    payment_day: Optional[int] = Field(None, ge=1, le=31)
    payment_account_id: Optional[str] = None
    transaction_description: Optional[str] = None
    transaction_notes: Optional[str] = None
    transaction_tag_ids: Optional[list[str]] = None
    is_active: Optional[bool] = None


class LoanContractResponse(ApiModel):
    contract_id: str
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
    transaction_tag_ids: list[str] = []
    is_active: bool
    current_period: int
    next_payment_date: Optional[datetime] = None


class LoanPaymentResponse(ApiModel):
    payment_id: str
    period: int
    payment_date: datetime
    principal_amount: Decimal
    interest_amount: Decimal
    total_amount: Decimal
    remaining_balance: Decimal
    status: LoanPaymentStatus
    processed_at: Optional[datetime] = None


class LoanResetRequest(ApiModel):
    payment_ids: Optional[list[str]] = None


class LoanResetResponse(ApiModel):
    reset_count: int
    deleted_transactions: int


class LoanPreviewRequest(ApiModel):
    loan_amount: Decimal
    interest_rate: Decimal
    total_periods: int
    repayment_type: RepaymentType
    start_date: Optional[UtcDateTime] = None
    payment_day: Optional[int] = Field(None, ge=1, le=31)


class LoanScheduleItemResponse(ApiModel):
    period: int
    principal: Decimal
    interest: Decimal
    total_payment: Decimal
    remaining_balance: Decimal
    payment_date: Optional[datetime] = None


class LoanCalculationResponse(ApiModel):
    monthly_payment: Decimal
    total_interest: Decimal
    total_payment: Decimal
    schedule: list[LoanScheduleItemResponse]
