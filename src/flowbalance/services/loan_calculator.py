"""Loan amortization math."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.core.exceptions import ValidationError
from flowbalance.core.formatting import Number, loan_payment_date_for_period, round_amount, to_decimal
from flowbalance.domain.models import RepaymentType
from flowbalance.domain.views import LoanCalculation, LoanScheduleItem

MAX_PERIODS = 600
ZERO = Decimal("0")


def validate_loan_parameters(amount: Decimal, annual_rate: Decimal, periods: int) -> None:
    if amount <= 0:
        raise ValidationError("Loan amount must be positive")
    if annual_rate < 0 or annual_rate > 1:
        raise ValidationError("Interest rate must be between 0 and 1")
    if periods < 1 or periods > MAX_PERIODS:
        raise ValidationError(f"Total periods must be between 1 and {MAX_PERIODS}")


def calculate_loan(
    loan_amount: Number,
    annual_rate: Number,
    total_periods: int,
    repayment_type: RepaymentType,
    start_date: Optional[datetime] = None,
    payment_day: Optional[int] = None,
) -> LoanCalculation:
    """
    Build the full repayment schedule.

    Payment dates are filled in when start_date and payment_day are given.
    monthly_payment is the first period's installment.
    """
    amount = to_decimal(loan_amount)
    rate = to_decimal(annual_rate)
    validate_loan_parameters(amount, rate, total_periods)
    monthly_rate = rate / 12
    repayment_type = RepaymentType(repayment_type)

    if repayment_type == RepaymentType.EQUAL_PAYMENT:
        schedule = _equal_payment(amount, monthly_rate, total_periods)
    elif repayment_type == RepaymentType.EQUAL_PRINCIPAL:
        schedule = _equal_principal(amount, monthly_rate, total_periods)
    else:
        schedule = _interest_only(amount, monthly_rate, total_periods)

    if start_date is not None and payment_day is not None:
        for item in schedule:
            item.payment_date = loan_payment_date_for_period(start_date, payment_day, item.period)

    total_interest = sum((item.interest for item in schedule), ZERO)
    total_payment = sum((item.total_payment for item in schedule), ZERO)
    return LoanCalculation(
        monthly_payment=schedule[0].total_payment,
        total_interest=round_amount(total_interest),
        total_payment=round_amount(total_payment),
        schedule=schedule,
    )


def _item(period: int, principal: Decimal, interest: Decimal, remaining: Decimal) -> LoanScheduleItem:
    principal = round_amount(principal)
    interest = round_amount(interest)
    return LoanScheduleItem(
        period=period,
        principal=principal,
        interest=interest,
        total_payment=principal + interest,
        remaining_balance=round_amount(max(remaining, ZERO)),
    )


def _equal_payment(amount: Decimal, monthly_rate: Decimal, periods: int) -> list[LoanScheduleItem]:
    if monthly_rate == 0:
        payment = amount / periods
    else:
        factor = (1 + monthly_rate) ** periods
        payment = amount * monthly_rate * factor / (factor - 1)

    schedule = []
    remaining = amount
    for period in range(1, periods + 1):
        interest = remaining * monthly_rate
        principal = payment - interest
        if period == periods:
            # Absorb rounding drift so the loan ends at exactly zero
            principal = remaining
        remaining -= principal
        schedule.append(_item(period, principal, interest, ZERO if period == periods else remaining))
    return schedule


def _equal_principal(amount: Decimal, monthly_rate: Decimal, periods: int) -> list[LoanScheduleItem]:
    principal = amount / periods
    schedule = []
    remaining = amount
    for period in range(1, periods + 1):
        interest = remaining * monthly_rate
        this_principal = remaining if period == periods else principal
        remaining -= this_principal
        schedule.append(_item(period, this_principal, interest, ZERO if period == periods else remaining))
    return schedule


def _interest_only(amount: Decimal, monthly_rate: Decimal, periods: int) -> list[LoanScheduleItem]:
    interest = amount * monthly_rate
    schedule = []
    for period in range(1, periods + 1):
        if period == periods:
            schedule.append(_item(period, amount, interest, ZERO))
        else:
            schedule.append(_item(period, ZERO, interest, amount))
    return schedule
