"""Service layer - business logic orchestration."""

from flowbalance.services.auth_service import AuthService
from flowbalance.services.account_service import AccountService, AccountCreate, AccountUpdate, BalanceUpdate
from flowbalance.services.transaction_service import (
    TransactionService,
    TransactionCreate,
    TransactionUpdate,
    TransactionQuery,
)
from flowbalance.services.currency_service import CurrencyService
from flowbalance.services.currency_formatting import CurrencyFormattingService
from flowbalance.services.settings_service import SettingsService, SettingsUpdate
from flowbalance.services.exchange_rate_generation import ExchangeRateGenerationService
from flowbalance.services.exchange_rate_update_service import ExchangeRateUpdateService
from flowbalance.services.recurring_service import RecurringService, RecurringCreate, RecurringUpdate
from flowbalance.services.loan_service import LoanService, LoanContractCreate, LoanContractUpdate
from flowbalance.services.sync_status_service import SyncStatusService
from flowbalance.services.unified_sync_service import UnifiedSyncService
from flowbalance.services.report_service import ReportService
from flowbalance.services.template_service import TemplateService, TemplateCreate, TemplateUpdate

__all__ = [
    "AuthService",
    "AccountService",
    "AccountCreate",
    "AccountUpdate",
    "BalanceUpdate",
    "TransactionService",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionQuery",
    "CurrencyService",
    "CurrencyFormattingService",
    "SettingsService",
    "SettingsUpdate",
    "ExchangeRateGenerationService",
    "ExchangeRateUpdateService",
    "RecurringService",
    "RecurringCreate",
    "RecurringUpdate",
    "LoanService",
    "LoanContractCreate",
    "LoanContractUpdate",
    "SyncStatusService",
    "UnifiedSyncService",
    "ReportService",
    "TemplateService",
    "TemplateCreate",
    "TemplateUpdate",
]
