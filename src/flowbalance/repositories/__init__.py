"""Repository layer - data access abstractions and implementations."""

from flowbalance.repositories.protocols import (
    UserRepository,
    CurrencyRepository,
    ExchangeRateRepository,
    AccountRepository,
    TransactionRepository,
    RecurringTransactionRepository,
    TransactionTemplateRepository,
    LoanRepository,
    ProcessingLogRepository,
)

__all__ = [
    "UserRepository",
    "CurrencyRepository",
    "ExchangeRateRepository",
    "AccountRepository",
    "TransactionRepository",
    "RecurringTransactionRepository",
    "TransactionTemplateRepository",
    "LoanRepository",
    "ProcessingLogRepository",
]
