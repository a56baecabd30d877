"""Repository protocol definitions (interfaces)."""

from flowbalance.repositories.protocols.user_repo import UserRepository
from flowbalance.repositories.protocols.currency_repo import CurrencyRepository
from flowbalance.repositories.protocols.exchange_rate_repo import ExchangeRateRepository
from flowbalance.repositories.protocols.account_repo import AccountRepository
from flowbalance.repositories.protocols.transaction_repo import TransactionRepository
from flowbalance.repositories.protocols.recurring_repo import RecurringTransactionRepository
from flowbalance.repositories.protocols.template_repo import TransactionTemplateRepository
from flowbalance.repositories.protocols.loan_repo import LoanRepository
from flowbalance.repositories.protocols.sync_log_repo import ProcessingLogRepository

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
