"""JSON export of everything a user owns."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from flowbalance.core.exceptions import NotFoundError
from flowbalance.core.timezone import now_utc
from flowbalance.domain.models import Currency, ExchangeRateType
from flowbalance.repositories.protocols import (
    AccountRepository,
    CurrencyRepository,
    ExchangeRateRepository,
    LoanRepository,
    RecurringTransactionRepository,
    TransactionRepository,
    TransactionTemplateRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

EXPORT_VERSION = "2.0"
APP_NAME = "Flow Balance"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _text(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


class DataExporter:
    """
    Builds a self-contained JSON document of a user's data.

    Records keep their ids so references between them survive; currencies
    are referenced by code. Auto-generated exchange rates are left out and
    rebuilt on import.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        currency_repo: CurrencyRepository,
        exchange_rate_repo: ExchangeRateRepository,
        account_repo: AccountRepository,
        transaction_repo: TransactionRepository,
        template_repo: TransactionTemplateRepository,
        recurring_repo: RecurringTransactionRepository,
        loan_repo: LoanRepository,
        clock: Callable = now_utc,
    ):
        self._user_repo = user_repo
        self._currency_repo = currency_repo
        self._rate_repo = exchange_rate_repo
        self._account_repo = account_repo
        self._transaction_repo = transaction_repo
        self._template_repo = template_repo
        self._recurring_repo = recurring_repo
        self._loan_repo = loan_repo
        self._clock = clock

    def export_data(self, user_id: str) -> dict[str, Any]:
        user = self._user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        codes = _CodeLookup(self._currency_repo)

        custom_currencies = [c for c in self._currency_repo.list_available(user_id) if c.created_by == user_id]
        user_currencies = self._currency_repo.list_user_currencies(user_id, active_only=False)
        categories = self._account_repo.list_categories(user_id)
        accounts = self._account_repo.list_by_user(user_id)
        tags = self._transaction_repo.list_tags(user_id)
        transactions = self._transaction_repo.query(user_id)
        templates = self._template_repo.list_by_user(user_id)
        recurring = self._recurring_repo.list_by_user(user_id)
        contracts = self._loan_repo.list_contracts(user_id)
        payments = [p for c in contracts for p in self._loan_repo.list_payments(c.contract_id)]
        rates = self._rate_repo.list_by_user(user_id, ExchangeRateType.USER)

        document = {
            "exportInfo": {
                "exportDate": self._clock().isoformat(),
                "version": EXPORT_VERSION,
                "appName": APP_NAME,
                "description": f"Full data export for {user.email}",
            },
            "user": {"email": user.email, "name": user.name, "createdAt": _iso(user.created_at)},
            "userSettings": self._settings(user_id, codes),
            "customCurrencies": [self._currency(c) for c in custom_currencies],
            "userCurrencies": [
                {"currencyCode": codes.code(uc.currency_id), "isActive": uc.is_active, "order": uc.order}
                for uc in user_currencies
            ],
            "exchangeRates": [
                {
                    "id": r.rate_id,
                    "fromCurrencyCode": codes.code(r.from_currency_id),
                    "toCurrencyCode": codes.code(r.to_currency_id),
                    "rate": str(r.rate),
                    "effectiveDate": _iso(r.effective_date),
                    "type": r.type.value,
                    "notes": r.notes,
                }
                for r in rates
            ],
            "categories": [
                {"id": c.category_id, "name": c.name, "type": c.type.value, "parentId": c.parent_id, "order": c.order}
                for c in categories
            ],
            "accounts": [
                {
                    "id": a.account_id,
                    "name": a.name,
                    "description": a.description,
                    "color": a.color,
                    "categoryId": a.category_id,
                    "currencyCode": codes.code(a.currency_id),
                }
                for a in accounts
            ],
            "tags": [{"id": t.tag_id, "name": t.name, "color": t.color} for t in tags],
            "transactionTemplates": [
                {
                    "id": t.template_id,
                    "name": t.name,
                    "accountId": t.account_id,
                    "type": t.type.value,
                    "description": t.description,
                    "notes": t.notes,
                    "tagIds": list(t.tag_ids),
                }
                for t in templates
            ],
            "recurringTransactions": [
                {
                    "id": r.recurring_id,
                    "accountId": r.account_id,
                    "type": r.type.value,
                    "amount": str(r.amount),
                    "description": r.description,
                    "notes": r.notes,
                    "frequency": r.frequency.value,
                    "interval": r.interval,
                    "dayOfMonth": r.day_of_month,
                    "dayOfWeek": r.day_of_week,
                    "monthOfYear": r.month_of_year,
                    "startDate": _iso(r.start_date),
                    "endDate": _iso(r.end_date),
                    "nextDate": _iso(r.next_date),
                    "maxOccurrences": r.max_occurrences,
                    "currentCount": r.current_count,
                    "isActive": r.is_active,
                    "tagIds": list(r.tag_ids),
                }
                for r in recurring
            ],
            "loanContracts": [
                {
                    "id": c.contract_id,
                    "accountId": c.account_id,
                    "contractName": c.contract_name,
                    "loanAmount": str(c.loan_amount),
                    "interestRate": str(c.interest_rate),
                    "totalPeriods": c.total_periods,
                    "repaymentType": c.repayment_type.value,
                    "startDate": _iso(c.start_date),
                    "paymentDay": c.payment_day,
                    "paymentAccountId": c.payment_account_id,
                    "transactionDescription": c.transaction_description,
                    "transactionNotes": c.transaction_notes,
                    "transactionTagIds": list(c.transaction_tag_ids),
                    "isActive": c.is_active,
                    "currentPeriod": c.current_period,
                    "nextPaymentDate": _iso(c.next_payment_date),
                }
                for c in contracts
            ],
            "loanPayments": [
                {
                    "id": p.payment_id,
                    "loanContractId": p.contract_id,
                    "period": p.period,
                    "paymentDate": _iso(p.payment_date),
                    "principalAmount": str(p.principal_amount),
                    "interestAmount": str(p.interest_amount),
                    "totalAmount": str(p.total_amount),
                    "remainingBalance": str(p.remaining_balance),
                    "status": p.status.value,
                    "principalTransactionId": p.principal_transaction_id,
                    "interestTransactionId": p.interest_transaction_id,
                    "balanceTransactionId": p.balance_transaction_id,
                    "processedAt": _iso(p.processed_at),
                }
                for p in payments
            ],
            "transactions": [
                {
                    "id": t.txn_id,
                    "type": t.type.value,
                    "amount": str(t.amount),
                    "description": t.description,
                    "notes": t.notes,
                    "date": _iso(t.date),
                    "accountId": t.account_id,
                    "currencyCode": codes.code(t.currency_id),
                    "tagIds": list(t.tag_ids),
                    "recurringTransactionId": t.recurring_transaction_id,
                    "loanContractId": t.loan_contract_id,
                    "loanPaymentId": t.loan_payment_id,
                }
                for t in transactions
            ],
        }
        document["statistics"] = {
            "totalCategories": len(categories),
            "totalAccounts": len(accounts),
            "totalTransactions": len(transactions),
            "totalTags": len(tags),
            "totalCustomCurrencies": len(custom_currencies),
            "totalExchangeRates": len(rates),
            "totalTransactionTemplates": len(templates),
            "totalRecurringTransactions": len(recurring),
            "totalLoanContracts": len(contracts),
            "totalLoanPayments": len(payments),
        }
        logger.info("Exported %d transactions for user %s", len(transactions), user_id)
        return document

    def _settings(self, user_id: str, codes: "_CodeLookup") -> Optional[dict[str, Any]]:
        settings = self._user_repo.get_settings(user_id)
        if settings is None:
            return None
        return {
            "baseCurrencyCode": codes.code(settings.base_currency_id) if settings.base_currency_id else None,
            "dateFormat": settings.date_format,
            "theme": settings.theme,
            "language": settings.language,
            "fireEnabled": settings.fire_enabled,
            "fireSWR": _text(settings.fire_swr),
            "futureDataDays": settings.future_data_days,
            "autoUpdateExchangeRates": settings.auto_update_exchange_rates,
        }

    @staticmethod
    def _currency(currency: Currency) -> dict[str, Any]:
        return {
            "code": currency.code,
            "name": currency.name,
            "symbol": currency.symbol,
            "decimalPlaces": currency.decimal_places,
        }


class _CodeLookup:
    """currency_id -> code, loaded lazily."""

    def __init__(self, currency_repo: CurrencyRepository):
        self._repo = currency_repo
        self._codes: dict[str, str] = {}

    def code(self, currency_id: str) -> str:
        if currency_id not in self._codes:
            currency = self._repo.get_by_id(currency_id)
            self._codes[currency_id] = currency.code if currency else currency_id
        return self._codes[currency_id]
