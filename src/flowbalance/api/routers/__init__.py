"""API routers package."""

from flowbalance.api.routers.auth import router as auth_router
from flowbalance.api.routers.user_settings import router as user_settings_router
from flowbalance.api.routers.categories import router as categories_router
from flowbalance.api.routers.accounts import router as accounts_router
from flowbalance.api.routers.balance import router as balance_router
from flowbalance.api.routers.transactions import router as transactions_router
from flowbalance.api.routers.tags import router as tags_router
from flowbalance.api.routers.templates import router as templates_router
from flowbalance.api.routers.currencies import router as currencies_router
from flowbalance.api.routers.exchange_rates import router as exchange_rates_router
from flowbalance.api.routers.recurring import router as recurring_router
from flowbalance.api.routers.loans import router as loans_router
from flowbalance.api.routers.reports import router as reports_router
from flowbalance.api.routers.sync import router as sync_router
from flowbalance.api.routers.data import router as data_router
from flowbalance.api.routers.dev import router as dev_router

__all__ = [
    "auth_router",
    "user_settings_router",
    "categories_router",
    "accounts_router",
    "balance_router",
    "transactions_router",
    "tags_router",
    "templates_router",
    "currencies_router",
    "exchange_rates_router",
    "recurring_router",
    "loans_router",
    "reports_router",
    "sync_router",
    "data_router",
    "dev_router",
]
