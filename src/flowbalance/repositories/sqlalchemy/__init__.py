"""SQLAlchemy repository implementations."""

from flowbalance.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_db,
    get_session,
    init_db,
    reset_database,
    Base,
)
from flowbalance.repositories.sqlalchemy.user_repo import SqlAlchemyUserRepository
from flowbalance.repositories.sqlalchemy.currency_repo import SqlAlchemyCurrencyRepository
from flowbalance.repositories.sqlalchemy.exchange_rate_repo import SqlAlchemyExchangeRateRepository
from flowbalance.repositories.sqlalchemy.account_repo import SqlAlchemyAccountRepository
from flowbalance.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository
from flowbalance.repositories.sqlalchemy.recurring_repo import SqlAlchemyRecurringTransactionRepository
from flowbalance.repositories.sqlalchemy.template_repo import SqlAlchemyTransactionTemplateRepository
from flowbalance.repositories.sqlalchemy.loan_repo import SqlAlchemyLoanRepository
from flowbalance.repositories.sqlalchemy.sync_log_repo import SqlAlchemyProcessingLogRepository

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_session",
    "init_db",
    "reset_database",
    "Base",
    "SqlAlchemyUserRepository",
    "SqlAlchemyCurrencyRepository",
    "SqlAlchemyExchangeRateRepository",
    "SqlAlchemyAccountRepository",
    "SqlAlchemyTransactionRepository",
    "SqlAlchemyRecurringTransactionRepository",
    "SqlAlchemyTransactionTemplateRepository",
    "SqlAlchemyLoanRepository",
    "SqlAlchemyProcessingLogRepository",
]
