"""Domain models package."""

from flowbalance.domain.models.enums import (
    CategoryType,
    TransactionType,
    ExchangeRateType,
    RecurrenceFrequency,
    RepaymentType,
    LoanPaymentStatus,
    SyncStatus,
)
from flowbalance.domain.models.user import User, UserSettings
from flowbalance.domain.models.currency import Currency, UserCurrency, ExchangeRate
from flowbalance.domain.models.account import Category, Account
from flowbalance.domain.models.transaction import Transaction, Tag
from flowbalance.domain.models.recurring import RecurringTransaction
from flowbalance.domain.models.template import TransactionTemplate
from flowbalance.domain.models.loan import LoanContract, LoanPayment
from flowbalance.domain.models.sync import ProcessingLog

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
    "TransactionTemplate",
    "LoanContract",
    "LoanPayment",
    "ProcessingLog",
]
