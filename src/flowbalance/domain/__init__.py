"""Domain layer - pure business models with no external dependencies."""

from flowbalance.domain.models import (
    CategoryType,
    TransactionType,
    ExchangeRateType,
    RecurrenceFrequency,
    RepaymentType,
    LoanPaymentStatus,
    SyncStatus,
    User,
    UserSettings,
    Currency,
    UserCurrency,
    ExchangeRate,
    Category,
    Account,
    Transaction,
    Tag,
    RecurringTransaction,
    LoanContract,
    LoanPayment,
    ProcessingLog,
)

__all__ = [
    "CategoryType",
    "TransactionType",
    "ExchangeRateType",
    "RecurrenceFrequency",
    "RepaymentType",
    "LoanPaymentStatus",
    "SyncStatus",
    "User",
    "UserSettings",
    "Currency",
    "UserCurrency",
    "ExchangeRate",
    "Category",
    "Account",
    "Transaction",
    "Tag",
    "RecurringTransaction",
    "LoanContract",
    "LoanPayment",
    "ProcessingLog",
]
