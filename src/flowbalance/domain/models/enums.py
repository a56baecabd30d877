"""Enumerations for domain models."""

from enum import Enum


class CategoryType(str, Enum):
    """Top-level account kinds."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    @property
    def is_stock(self) -> bool:
        """Stock categories hold balances at a point in time."""
        return self in (CategoryType.ASSET, CategoryType.LIABILITY)

    @property
    def is_flow(self) -> bool:
        """Flow categories accumulate amounts over a period."""
        return self in (CategoryType.INCOME, CategoryType.EXPENSE)


class TransactionType(str, Enum):
    """Types of ledger transactions."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    BALANCE = "BALANCE"  # balance snapshot on a stock account


class ExchangeRateType(str, Enum):
    """Origin of an exchange rate record."""

    USER = "USER"  # entered manually
    API = "API"  # fetched from the rate provider
    AUTO = "AUTO"  # derived (reverse or transitive)


class RecurrenceFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class RepaymentType(str, Enum):
    """Loan repayment schemes."""

    EQUAL_PAYMENT = "EQUAL_PAYMENT"  # annuity, constant installment
    EQUAL_PRINCIPAL = "EQUAL_PRINCIPAL"  # constant principal, decreasing interest
    INTEREST_ONLY = "INTEREST_ONLY"  # principal repaid in the last period


class LoanPaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SyncStatus(str, Enum):
    """Per-user background processing state."""

    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
