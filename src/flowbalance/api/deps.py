"""Dependency injection for FastAPI."""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from flowbalance.backup import DataExporter, DataImporter
from flowbalance.config.settings import get_settings
from flowbalance.core.exceptions import AuthenticationError
from flowbalance.domain.models import User
from flowbalance.providers import ExchangeRateProvider, FrankfurterProvider, StaticExchangeRateProvider
from flowbalance.repositories.sqlalchemy import (
    get_db,
    get_session_factory,
    SqlAlchemyUserRepository,
    SqlAlchemyCurrencyRepository,
    SqlAlchemyExchangeRateRepository,
    SqlAlchemyAccountRepository,
    SqlAlchemyTransactionRepository,
    SqlAlchemyRecurringTransactionRepository,
    SqlAlchemyTransactionTemplateRepository,
    SqlAlchemyLoanRepository,
    SqlAlchemyProcessingLogRepository,
)
from flowbalance.services import (
    AuthService,
    AccountService,
    TransactionService,
    CurrencyService,
    CurrencyFormattingService,
    SettingsService,
    ExchangeRateGenerationService,
    ExchangeRateUpdateService,
    RecurringService,
    LoanService,
    SyncStatusService,
    UnifiedSyncService,
    ReportService,
    TemplateService,
)

logger = logging.getLogger(__name__)


# ===== Repositories =====

def get_user_repo(db: Session = Depends(get_db)) -> SqlAlchemyUserRepository:
    """Provide UserRepository instance."""
    return SqlAlchemyUserRepository(db)


def get_currency_repo(db: Session = Depends(get_db)) -> SqlAlchemyCurrencyRepository:
    """Provide CurrencyRepository instance."""
    return SqlAlchemyCurrencyRepository(db)


def get_exchange_rate_repo(db: Session = Depends(get_db)) -> SqlAlchemyExchangeRateRepository:
    """Provide ExchangeRateRepository instance."""
    return SqlAlchemyExchangeRateRepository(db)


def get_account_repo(db: Session = Depends(get_db)) -> SqlAlchemyAccountRepository:
    """Provide AccountRepository instance."""
    return SqlAlchemyAccountRepository(db)


def get_transaction_repo(db: Session = Depends(get_db)) -> SqlAlchemyTransactionRepository:
    """Provide TransactionRepository instance."""
    return SqlAlchemyTransactionRepository(db)


def get_template_repo(db: Session = Depends(get_db)) -> SqlAlchemyTransactionTemplateRepository:
    """Provide TransactionTemplateRepository instance."""
    return SqlAlchemyTransactionTemplateRepository(db)


# ===== Providers =====

def get_exchange_rate_provider() -> ExchangeRateProvider:
    """Provide the configured exchange rate provider."""
    settings = get_settings()
    if settings.exchange_rate_provider == "static":
        return StaticExchangeRateProvider()
    return FrankfurterProvider(
        base_url=settings.exchange_rate_api_url,
        timeout=settings.exchange_rate_api_timeout_seconds,
    )


def get_sync_session_factory() -> sessionmaker:
    """Session factory used by background sync runs."""
    return get_session_factory()


# ===== Services =====

def get_auth_service(user_repo: SqlAlchemyUserRepository = Depends(get_user_repo)) -> AuthService:
    """Provide AuthService instance."""
    return AuthService(user_repo=user_repo)


def get_account_service(
    account_repo: SqlAlchemyAccountRepository = Depends(get_account_repo),
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
) -> AccountService:
    """Provide AccountService instance."""
    return AccountService(
        account_repo=account_repo,
        currency_repo=currency_repo,
        transaction_repo=transaction_repo,
    )


def get_transaction_service(
    account_repo: SqlAlchemyAccountRepository = Depends(get_account_repo),
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
) -> TransactionService:
    """Provide TransactionService instance."""
    return TransactionService(
        account_repo=account_repo,
        currency_repo=currency_repo,
        transaction_repo=transaction_repo,
    )


def get_rate_generator(
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
    exchange_rate_repo: SqlAlchemyExchangeRateRepository = Depends(get_exchange_rate_repo),
) -> ExchangeRateGenerationService:
    """Provide ExchangeRateGenerationService instance."""
    return ExchangeRateGenerationService(
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        max_rounds=get_settings().transitive_rate_max_rounds,
    )


def get_currency_service(
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
    exchange_rate_repo: SqlAlchemyExchangeRateRepository = Depends(get_exchange_rate_repo),
    user_repo: SqlAlchemyUserRepository = Depends(get_user_repo),
    rate_generator: ExchangeRateGenerationService = Depends(get_rate_generator),
) -> CurrencyService:
    """Provide CurrencyService instance."""
    return CurrencyService(
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        user_repo=user_repo,
        rate_generator=rate_generator,
    )


def get_currency_formatting_service(
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
) -> CurrencyFormattingService:
    """Provide CurrencyFormattingService instance."""
    return CurrencyFormattingService(currency_repo=currency_repo)


def get_template_service(
    template_repo: SqlAlchemyTransactionTemplateRepository = Depends(get_template_repo),
    account_repo: SqlAlchemyAccountRepository = Depends(get_account_repo),
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
    transaction_repo: SqlAlchemyTransactionRepository = Depends(get_transaction_repo),
) -> TemplateService:
    """Provide TemplateService instance."""
    return TemplateService(
        template_repo=template_repo,
        account_repo=account_repo,
        currency_repo=currency_repo,
        transaction_repo=transaction_repo,
    )


def get_settings_service(
    user_repo: SqlAlchemyUserRepository = Depends(get_user_repo),
    currency_repo: SqlAlchemyCurrencyRepository = Depends(get_currency_repo),
) -> SettingsService:
    """Provide SettingsService instance."""
    return SettingsService(user_repo=user_repo, currency_repo=currency_repo)


def get_exchange_rate_update_service(
    db: Session = Depends(get_db),
    provider: ExchangeRateProvider = Depends(get_exchange_rate_provider),
) -> ExchangeRateUpdateService:
    """Provide ExchangeRateUpdateService instance."""
    return build_exchange_rate_update_service(db, provider)


def get_recurring_service(db: Session = Depends(get_db)) -> RecurringService:
    """Provide RecurringService instance."""
    return build_recurring_service(db)


def get_loan_service(db: Session = Depends(get_db)) -> LoanService:
    """Provide LoanService instance."""
    return build_loan_service(db)


def get_sync_status_service(db: Session = Depends(get_db)) -> SyncStatusService:
    """Provide SyncStatusService instance."""
    return build_sync_status_service(db)


def get_unified_sync_service(
    db: Session = Depends(get_db),
    provider: ExchangeRateProvider = Depends(get_exchange_rate_provider),
) -> UnifiedSyncService:
    """Provide UnifiedSyncService instance."""
    return build_unified_sync_service(db, provider)


def get_report_service(
    account_service: AccountService = Depends(get_account_service),
    currency_service: CurrencyService = Depends(get_currency_service),
    settings_service: SettingsService = Depends(get_settings_service),
) -> ReportService:
    """Provide ReportService instance."""
    return ReportService(
        account_service=account_service,
        currency_service=currency_service,
        settings_service=settings_service,
    )


def get_data_exporter(db: Session = Depends(get_db)) -> DataExporter:
    """Provide DataExporter instance."""
    return DataExporter(
        user_repo=SqlAlchemyUserRepository(db),
        currency_repo=SqlAlchemyCurrencyRepository(db),
        exchange_rate_repo=SqlAlchemyExchangeRateRepository(db),
        account_repo=SqlAlchemyAccountRepository(db),
        transaction_repo=SqlAlchemyTransactionRepository(db),
        template_repo=SqlAlchemyTransactionTemplateRepository(db),
        recurring_repo=SqlAlchemyRecurringTransactionRepository(db),
        loan_repo=SqlAlchemyLoanRepository(db),
    )


def get_data_importer(
    db: Session = Depends(get_db),
    rate_generator: ExchangeRateGenerationService = Depends(get_rate_generator),
) -> DataImporter:
    """Provide DataImporter instance."""
    return DataImporter(
        user_repo=SqlAlchemyUserRepository(db),
        currency_repo=SqlAlchemyCurrencyRepository(db),
        exchange_rate_repo=SqlAlchemyExchangeRateRepository(db),
        account_repo=SqlAlchemyAccountRepository(db),
        transaction_repo=SqlAlchemyTransactionRepository(db),
        template_repo=SqlAlchemyTransactionTemplateRepository(db),
        recurring_repo=SqlAlchemyRecurringTransactionRepository(db),
        loan_repo=SqlAlchemyLoanRepository(db),
        rate_generator=rate_generator,
    )


# ===== Session-bound builders (shared with background tasks) =====

def build_exchange_rate_update_service(db: Session, provider: ExchangeRateProvider) -> ExchangeRateUpdateService:
    currency_repo = SqlAlchemyCurrencyRepository(db)
    exchange_rate_repo = SqlAlchemyExchangeRateRepository(db)
    return ExchangeRateUpdateService(
        user_repo=SqlAlchemyUserRepository(db),
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        rate_generator=ExchangeRateGenerationService(
            currency_repo=currency_repo,
            exchange_rate_repo=exchange_rate_repo,
            max_rounds=get_settings().transitive_rate_max_rounds,
        ),
        provider=provider,
    )


def build_recurring_service(db: Session) -> RecurringService:
    return RecurringService(
        recurring_repo=SqlAlchemyRecurringTransactionRepository(db),
        account_repo=SqlAlchemyAccountRepository(db),
        transaction_repo=SqlAlchemyTransactionRepository(db),
        user_repo=SqlAlchemyUserRepository(db),
    )


def build_loan_service(db: Session) -> LoanService:
    return LoanService(
        loan_repo=SqlAlchemyLoanRepository(db),
        account_repo=SqlAlchemyAccountRepository(db),
        transaction_repo=SqlAlchemyTransactionRepository(db),
        user_repo=SqlAlchemyUserRepository(db),
    )


def build_sync_status_service(db: Session) -> SyncStatusService:
    return SyncStatusService(
        user_repo=SqlAlchemyUserRepository(db),
        log_repo=SqlAlchemyProcessingLogRepository(db),
        recurring_repo=SqlAlchemyRecurringTransactionRepository(db),
        loan_repo=SqlAlchemyLoanRepository(db),
        transaction_repo=SqlAlchemyTransactionRepository(db),
    )


def build_unified_sync_service(db: Session, provider: ExchangeRateProvider) -> UnifiedSyncService:
    return UnifiedSyncService(
        sync_status=build_sync_status_service(db),
        exchange_rate_updater=build_exchange_rate_update_service(db, provider),
        recurring_service=build_recurring_service(db),
        loan_service=build_loan_service(db),
        user_repo=SqlAlchemyUserRepository(db),
        recurring_repo=SqlAlchemyRecurringTransactionRepository(db),
        transaction_repo=SqlAlchemyTransactionRepository(db),
    )


def run_background_sync(session_factory: sessionmaker, provider: ExchangeRateProvider, user_id: str) -> None:
    """Run one user's sync in its own session after the response is sent."""
    db = session_factory()
    try:
        build_unified_sync_service(db, provider).process_user_data(user_id)
    except Exception:
        # Failure is already recorded on the user's sync status
        logger.exception("Background sync failed for user %s", user_id)
    finally:
        db.close()


# ===== Authentication =====

def get_current_user(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the user from the auth cookie; 401 when missing or invalid."""
    token = request.cookies.get(get_settings().auth_cookie_name)
    user = auth_service.get_user_from_token(token)
    if user is None:
        raise AuthenticationError()
    return user
