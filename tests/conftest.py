"""
Pytest configuration and fixtures for the Flow Balance backend tests.

This module provides:
- In-memory SQLite database fixtures
- Repository and service fixtures with a fixed clock
- Factory helpers for users, categories, accounts and transactions
- A deterministic exchange rate provider
- An API test client with an authenticated variant
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from flowbalance.main import app
from flowbalance.api.deps import get_exchange_rate_provider, get_sync_session_factory
from flowbalance.config.settings import Settings, reset_settings, set_settings
from flowbalance.core.cache import clear_caches
from flowbalance.core.exceptions import ExchangeRateApiError
from flowbalance.repositories.sqlalchemy.database import Base, get_db, reset_database
# Import ORM models to register them with Base before creating tables
from flowbalance.repositories.sqlalchemy import orm_models  # noqa: F401
from flowbalance.repositories.sqlalchemy import (
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
from flowbalance.backup import DataExporter, DataImporter
from flowbalance.providers import StaticExchangeRateProvider
from flowbalance.services import (
    AuthService,
    AccountService,
    AccountCreate,
    TransactionService,
    TransactionCreate,
    CurrencyService,
    SettingsService,
    SettingsUpdate,
    ExchangeRateGenerationService,
    ExchangeRateUpdateService,
    RecurringService,
    LoanService,
    SyncStatusService,
    UnifiedSyncService,
    ReportService,
    TemplateService,
)
from flowbalance.domain.models import (
    Account,
    Category,
    CategoryType,
    Transaction,
    TransactionType,
    User,
)

TEST_PASSWORD = "secret123"


# =============================================================================
# SETTINGS AND TIME
# =============================================================================


def make_test_settings(**overrides) -> Settings:
    values = dict(
        environment="test",
        database_url="sqlite://",
        exchange_rate_provider="static",
        bcrypt_rounds=4,
        jwt_secret="test-secret",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def test_settings():
    """Isolated settings and empty caches for every test."""
    reset_settings()
    reset_database()
    settings = make_test_settings()
    set_settings(settings)
    clear_caches()
    yield settings
    clear_caches()
    reset_database()
    reset_settings()


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' (naive UTC) for deterministic tests."""
    return datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def clock(fixed_now) -> Callable[[], datetime]:
    return lambda: fixed_now


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_session(session_factory) -> Session:
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def user_repo(test_session) -> SqlAlchemyUserRepository:
    return SqlAlchemyUserRepository(test_session)


@pytest.fixture
def currency_repo(test_session) -> SqlAlchemyCurrencyRepository:
    return SqlAlchemyCurrencyRepository(test_session)


@pytest.fixture
def exchange_rate_repo(test_session) -> SqlAlchemyExchangeRateRepository:
    return SqlAlchemyExchangeRateRepository(test_session)


@pytest.fixture
def account_repo(test_session) -> SqlAlchemyAccountRepository:
    return SqlAlchemyAccountRepository(test_session)


@pytest.fixture
def transaction_repo(test_session) -> SqlAlchemyTransactionRepository:
    return SqlAlchemyTransactionRepository(test_session)


@pytest.fixture
def recurring_repo(test_session) -> SqlAlchemyRecurringTransactionRepository:
    return SqlAlchemyRecurringTransactionRepository(test_session)


@pytest.fixture
def loan_repo(test_session) -> SqlAlchemyLoanRepository:
    return SqlAlchemyLoanRepository(test_session)


@pytest.fixture
def template_repo(test_session) -> SqlAlchemyTransactionTemplateRepository:
    return SqlAlchemyTransactionTemplateRepository(test_session)


@pytest.fixture
def log_repo(test_session) -> SqlAlchemyProcessingLogRepository:
    return SqlAlchemyProcessingLogRepository(test_session)


# =============================================================================
# EXCHANGE RATE PROVIDERS
# =============================================================================


class FailingRateProvider:
    """Provider whose upstream is always unreachable."""

    def get_latest(self, base_currency: str):
        raise ExchangeRateApiError("Network unavailable", code="NETWORK_ERROR")


@pytest.fixture
def rate_provider(fixed_now) -> StaticExchangeRateProvider:
    """Deterministic USD-quoted rates dated at fixed_now."""
    return StaticExchangeRateProvider(as_of=fixed_now)


@pytest.fixture
def failing_provider() -> FailingRateProvider:
    return FailingRateProvider()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def auth_service(user_repo, clock) -> AuthService:
    return AuthService(user_repo=user_repo, clock=clock)


@pytest.fixture
def account_service(account_repo, currency_repo, transaction_repo, clock) -> AccountService:
    return AccountService(
        account_repo=account_repo,
        currency_repo=currency_repo,
        transaction_repo=transaction_repo,
        clock=clock,
    )


@pytest.fixture
def transaction_service(account_repo, currency_repo, transaction_repo, clock) -> TransactionService:
    return TransactionService(
        account_repo=account_repo,
        currency_repo=currency_repo,
        transaction_repo=transaction_repo,
        clock=clock,
    )


@pytest.fixture
def rate_generator(currency_repo, exchange_rate_repo, clock) -> ExchangeRateGenerationService:
    return ExchangeRateGenerationService(
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        clock=clock,
    )


@pytest.fixture
def currency_service(currency_repo, exchange_rate_repo, user_repo, rate_generator, clock) -> CurrencyService:
    return CurrencyService(
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        user_repo=user_repo,
        rate_generator=rate_generator,
        clock=clock,
    )


@pytest.fixture
def settings_service(user_repo, currency_repo, clock) -> SettingsService:
    return SettingsService(user_repo=user_repo, currency_repo=currency_repo, clock=clock)


@pytest.fixture
def exchange_rate_update_service(
    user_repo, currency_repo, exchange_rate_repo, rate_generator, rate_provider, clock
) -> ExchangeRateUpdateService:
    return ExchangeRateUpdateService(
        user_repo=user_repo,
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        rate_generator=rate_generator,
        provider=rate_provider,
        clock=clock,
        update_interval_hours=24,
    )


@pytest.fixture
def recurring_service(recurring_repo, account_repo, transaction_repo, user_repo, clock) -> RecurringService:
    return RecurringService(
        recurring_repo=recurring_repo,
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        user_repo=user_repo,
        clock=clock,
    )


@pytest.fixture
def loan_service(loan_repo, account_repo, transaction_repo, user_repo, clock) -> LoanService:
    return LoanService(
        loan_repo=loan_repo,
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        user_repo=user_repo,
        clock=clock,
    )


@pytest.fixture
def sync_status_service(user_repo, log_repo, recurring_repo, loan_repo, transaction_repo, clock) -> SyncStatusService:
    return SyncStatusService(
        user_repo=user_repo,
        log_repo=log_repo,
        recurring_repo=recurring_repo,
        loan_repo=loan_repo,
        transaction_repo=transaction_repo,
        clock=clock,
    )


@pytest.fixture
def unified_sync_service(
    sync_status_service,
    exchange_rate_update_service,
    recurring_service,
    loan_service,
    user_repo,
    recurring_repo,
    transaction_repo,
    clock,
) -> UnifiedSyncService:
    return UnifiedSyncService(
        sync_status=sync_status_service,
        exchange_rate_updater=exchange_rate_update_service,
        recurring_service=recurring_service,
        loan_service=loan_service,
        user_repo=user_repo,
        recurring_repo=recurring_repo,
        transaction_repo=transaction_repo,
        clock=clock,
    )


@pytest.fixture
def report_service(account_service, currency_service, settings_service, clock) -> ReportService:
    return ReportService(
        account_service=account_service,
        currency_service=currency_service,
        settings_service=settings_service,
        clock=clock,
    )


@pytest.fixture
def template_service(template_repo, account_repo, currency_repo, transaction_repo, clock) -> TemplateService:
    return TemplateService(
        template_repo=template_repo,
        account_repo=account_repo,
        currency_repo=currency_repo,
        transaction_repo=transaction_repo,
        clock=clock,
    )


@pytest.fixture
def data_exporter(
    user_repo, currency_repo, exchange_rate_repo, account_repo, transaction_repo,
    template_repo, recurring_repo, loan_repo, clock,
) -> DataExporter:
    return DataExporter(
        user_repo=user_repo,
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        template_repo=template_repo,
        recurring_repo=recurring_repo,
        loan_repo=loan_repo,
        clock=clock,
    )


@pytest.fixture
def data_importer(
    user_repo, currency_repo, exchange_rate_repo, account_repo, transaction_repo,
    template_repo, recurring_repo, loan_repo, rate_generator, clock,
) -> DataImporter:
    return DataImporter(
        user_repo=user_repo,
        currency_repo=currency_repo,
        exchange_rate_repo=exchange_rate_repo,
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        template_repo=template_repo,
        recurring_repo=recurring_repo,
        loan_repo=loan_repo,
        rate_generator=rate_generator,
        clock=clock,
    )


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def seeded_currencies(currency_service) -> int:
    """Seed the global currency catalog."""
    return currency_service.seed_global_currencies()


@pytest.fixture
def user_factory(auth_service) -> Callable[..., User]:
    """Factory for registered users."""

    def _create_user(email: Optional[str] = None, name: Optional[str] = None) -> User:
        if email is None:
            email = f"user-{uuid.uuid4().hex[:8]}@example.com"
        return auth_service.register(email, TEST_PASSWORD, name)

    return _create_user


@pytest.fixture
def user(seeded_currencies, user_factory, currency_service, settings_service) -> User:
    """A user with CNY (base) and USD selected."""
    user = user_factory(email="alice@example.com", name="Alice")
    currency_service.add_user_currency(user.user_id, "CNY")
    currency_service.add_user_currency(user.user_id, "USD")
    settings_service.update_settings(user.user_id, SettingsUpdate(base_currency_code="CNY"))
    return user


@pytest.fixture
def category_factory(account_service) -> Callable[..., Category]:
    def _create_category(
        user_id: str,
        name: Optional[str] = None,
        type: Optional[CategoryType] = None,
        parent_id: Optional[str] = None,
    ) -> Category:
        if name is None:
            name = f"Category {uuid.uuid4().hex[:6]}"
        return account_service.create_category(user_id, name, type=type, parent_id=parent_id)

    return _create_category


@pytest.fixture
def account_factory(account_service, category_factory) -> Callable[..., Account]:
    """Factory for accounts; creates a root category of the given type when none is passed."""

    def _create_account(
        user_id: str,
        type: CategoryType = CategoryType.ASSET,
        name: Optional[str] = None,
        currency_code: str = "CNY",
        category_id: Optional[str] = None,
    ) -> Account:
        if category_id is None:
            category_id = category_factory(user_id, type=type).category_id
        if name is None:
            name = f"Account {uuid.uuid4().hex[:6]}"
        return account_service.create_account(user_id, AccountCreate(
            name=name,
            category_id=category_id,
            currency_code=currency_code,
        ))

    return _create_account


@pytest.fixture
def transaction_factory(transaction_service) -> Callable[..., Transaction]:
    def _create_transaction(
        user_id: str,
        account_id: str,
        type: TransactionType,
        amount: Decimal,
        date: Optional[datetime] = None,
        description: str = "Test entry",
        tag_ids: Optional[list[str]] = None,
    ) -> Transaction:
        return transaction_service.create_transaction(user_id, TransactionCreate(
            account_id=account_id,
            type=type,
            amount=amount,
            description=description,
            date=date,
            tag_ids=tag_ids or [],
        ))

    return _create_transaction


# =============================================================================
# API TEST CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def client(session_factory, seeded_currencies, fixed_now) -> TestClient:
    """Provide FastAPI test client with test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sync_session_factory] = lambda: session_factory
    app.dependency_overrides[get_exchange_rate_provider] = lambda: StaticExchangeRateProvider(as_of=fixed_now)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register_user(client: TestClient, email: str = "bob@example.com", password: str = TEST_PASSWORD) -> dict:
    """Register through the API; the auth cookie stays on the client."""
    response = client.post("/api/auth/register", json={
        "email": email,
        "password": password,
        "name": "Bob",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]["user"]


@pytest.fixture
def auth_client(client) -> TestClient:
    """Client logged in as a fresh user with CNY as base currency."""
    register_user(client)
    client.post("/api/user/currencies", json={"code": "CNY"})
    client.post("/api/user/currencies", json={"code": "USD"})
    client.put("/api/user/settings", json={"baseCurrencyCode": "CNY"})
    return client


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(Decimal(str(actual)) - Decimal(str(expected)))
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"
