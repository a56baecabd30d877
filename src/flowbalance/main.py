"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flowbalance.config.settings import get_settings
from flowbalance.config.logging_config import setup_logging
from flowbalance.repositories.sqlalchemy.database import get_session, init_db
from flowbalance.repositories.sqlalchemy import (
    SqlAlchemyCurrencyRepository,
    SqlAlchemyExchangeRateRepository,
    SqlAlchemyUserRepository,
)
from flowbalance.api.responses import error_response, internal_error_response
from flowbalance.api.routers import (
    auth_router,
    user_settings_router,
    categories_router,
    accounts_router,
    balance_router,
    transactions_router,
    tags_router,
    templates_router,
    currencies_router,
    exchange_rates_router,
    recurring_router,
    loans_router,
    reports_router,
    sync_router,
    data_router,
    dev_router,
)
from flowbalance.core.exceptions import AppError
from flowbalance.services import CurrencyService, ExchangeRateGenerationService

logger = logging.getLogger(__name__)


def seed_currencies() -> None:
    """Make sure the global currency catalog exists."""
    db = get_session()
    try:
        currency_repo = SqlAlchemyCurrencyRepository(db)
        rate_repo = SqlAlchemyExchangeRateRepository(db)
        CurrencyService(
            currency_repo=currency_repo,
            exchange_rate_repo=rate_repo,
            user_repo=SqlAlchemyUserRepository(db),
            rate_generator=ExchangeRateGenerationService(currency_repo, rate_repo),
        ).seed_global_currencies()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()
    seed_currencies()
    yield
    # Shutdown (nothing to clean up)


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Personal finance ledger with multi-currency accounts, recurring entries and loans",
    version=settings.app_version,
    lifespan=lifespan,
)

# Include routers
app.include_router(auth_router)
app.include_router(user_settings_router)
app.include_router(categories_router)
app.include_router(accounts_router)
app.include_router(balance_router)
app.include_router(transactions_router)
app.include_router(tags_router)
app.include_router(templates_router)
app.include_router(currencies_router)
app.include_router(exchange_rates_router)
app.include_router(recurring_router)
app.include_router(loans_router)
app.include_router(reports_router)
app.include_router(sync_router)
app.include_router(data_router)
app.include_router(dev_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return error_response(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response("Invalid request", 422, details=exc.errors())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return internal_error_response()


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
