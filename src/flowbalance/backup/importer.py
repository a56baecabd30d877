"""Import of a JSON data export into an existing user."""

import logging
import uuid
from decimal import Decimal
from typing import Any, Callable, Optional

from flowbalance.core.exceptions import AppError, NotFoundError, ValidationError
from flowbalance.core.timezone import now_utc, parse_datetime_utc
from flowbalance.domain.models import (
    Account,
    Category,
    CategoryType,
    Currency,
    ExchangeRate,
    ExchangeRateType,
    LoanContract,
    LoanPayment,
    LoanPaymentStatus,
    RecurrenceFrequency,
    RecurringTransaction,
    RepaymentType,
    Tag,
    Transaction,
    TransactionTemplate,
    TransactionType,
    UserCurrency,
)
from flowbalance.domain.views import ImportSummary
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
from flowbalance.services.exchange_rate_generation import ExchangeRateGenerationService

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("1.0", "2.0")

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


def _date(value: Optional[str]):
    return parse_datetime_utc(value) if value else None


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


class _ImportRun:
    """State of one import: old id -> new id maps per record kind."""

    def __init__(self, user_id: str, skip_duplicates: bool):
        self.user_id = user_id
        self.skip_duplicates = skip_duplicates
        self.summary = ImportSummary()
        self.ids: dict[str, dict[str, str]] = {}

    def map(self, kind: str, old_id: Optional[str]) -> Optional[str]:
        if not old_id:
            return None
        return self.ids.setdefault(kind, {}).get(old_id)

    def assign(self, kind: str, old_id: Optional[str], new_id: str) -> str:
        if old_id:
            self.ids.setdefault(kind, {})[old_id] = new_id
        return new_id

    def require(self, kind: str, old_id: Optional[str]) -> str:
        new_id = self.map(kind, old_id)
        if not new_id:
            raise ValidationError(f"Unknown {kind} reference: {old_id}")
        return new_id

    def tags(self, old_ids: Optional[list[str]]) -> list[str]:
        return [t for t in (self.map("tag", old) for old in old_ids or []) if t]


class DataImporter:
    """
    Imports a document produced by DataExporter.

    Records get fresh ids and references are rewritten through an id map.
    Sections go in dependency order and each record is imported on its own:
    a bad record is reported and the rest still go in. With skip_duplicates,
    a category, account or template whose name already exists is mapped to
    the existing one; otherwise the import copy is renamed "Name (2)".
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
        rate_generator: ExchangeRateGenerationService,
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
        self._rate_generator = rate_generator
        self._clock = clock

    def validate(self, document: Any) -> list[str]:
        """Check the document shape; returns warnings, raises ValidationError."""
        if not isinstance(document, dict):
            raise ValidationError("Import data must be a JSON object")
        if not isinstance(document.get("exportInfo"), dict):
            raise ValidationError("Missing exportInfo section")
        if not isinstance(document.get("user"), dict):
            raise ValidationError("Missing user section")
        warnings = []
        version = document["exportInfo"].get("version")
        if version not in SUPPORTED_VERSIONS:
            warnings.append(f"Unknown export version {version}; importing anyway")
        return warnings

    def import_data(self, user_id: str, document: Any, skip_duplicates: bool = False) -> ImportSummary:
        warnings = self.validate(document)
        if not self._user_repo.get_by_id(user_id):
            raise NotFoundError("User", user_id)

        run = _ImportRun(user_id, skip_duplicates)
        run.summary.warnings.extend(warnings)
        # Payments point at transactions imported after them
        for record in document.get("transactions") or []:
            run.assign("transaction", record.get("id"), str(uuid.uuid4()))

        self._each(run, "customCurrency", document.get("customCurrencies"), self._import_custom_currency)
        self._each(run, "userCurrency", document.get("userCurrencies"), self._import_user_currency)
        if document.get("userSettings"):
            self._each(run, "userSettings", [document["userSettings"]], self._import_settings)
        self._each(run, "exchangeRate", document.get("exchangeRates"), self._import_rate)
        self._import_categories(run, document.get("categories") or [])
        self._each(run, "tag", document.get("tags"), self._import_tag)
        self._each(run, "account", document.get("accounts"), self._import_account)
        self._each(run, "template", document.get("transactionTemplates"), self._import_template)
        self._each(run, "recurring", document.get("recurringTransactions"), self._import_recurring)
        self._each(run, "loanContract", document.get("loanContracts"), self._import_contract)
        self._each(run, "loanPayment", document.get("loanPayments"), self._import_payment)
        self._each(run, "transaction", document.get("transactions"), self._import_transaction)

        self._rate_generator.generate_auto_exchange_rates(user_id)
        stats = run.summary.statistics
        logger.info(
            "Import for user %s: %d processed, %d created, %d skipped, %d failed",
            user_id, stats.processed, stats.created, stats.skipped, stats.failed,
        )
        return run.summary

    def _each(self, run: _ImportRun, section: str, records: Optional[list], handler: Callable) -> None:
        stats = run.summary.statistics
        for record in records or []:
            stats.processed += 1
            try:
                outcome = handler(run, record)
            except Exception as e:
                stats.failed += 1
                message = e.message if isinstance(e, AppError) else str(e)
                record_id = record.get("id", "?") if isinstance(record, dict) else "?"
                run.summary.errors.append(f"{section} {record_id}: {message}")
                continue
            if outcome == SKIPPED:
                stats.skipped += 1
            elif outcome == UPDATED:
                stats.updated += 1
            else:
                stats.created += 1

    # ===== Currencies and settings =====

    def _currency(self, run: _ImportRun, code: Optional[str]) -> Currency:
        currency = self._currency_repo.get_by_code(code or "", run.user_id)
        if not currency:
            raise ValidationError(f"Currency not available: {code}")
        return currency

    def _import_custom_currency(self, run: _ImportRun, record: dict) -> str:
        if self._currency_repo.get_by_code(record["code"], run.user_id):
            return SKIPPED
        self._currency_repo.create(Currency(
            currency_id=str(uuid.uuid4()),
            code=record["code"].upper(),
            name=record["name"],
            symbol=record["symbol"],
            decimal_places=int(record.get("decimalPlaces", 2)),
            is_custom=True,
            created_by=run.user_id,
        ))
        return CREATED

    def _import_user_currency(self, run: _ImportRun, record: dict) -> str:
        currency = self._currency(run, record.get("currencyCode"))
        if self._currency_repo.get_user_currency(run.user_id, currency.currency_id):
            return SKIPPED
        self._currency_repo.add_user_currency(UserCurrency(
            user_currency_id=str(uuid.uuid4()),
            user_id=run.user_id,
            currency_id=currency.currency_id,
            is_active=bool(record.get("isActive", True)),
            order=int(record.get("order", 0)),
        ))
        return CREATED

    def _import_settings(self, run: _ImportRun, record: dict) -> str:
        settings = self._user_repo.get_settings(run.user_id)
        if settings is None:
            raise NotFoundError("User settings", run.user_id)
        if record.get("baseCurrencyCode"):
            settings.base_currency_id = self._currency(run, record["baseCurrencyCode"]).currency_id
        for key, attr in (
            ("dateFormat", "date_format"),
            ("theme", "theme"),
            ("language", "language"),
            ("fireEnabled", "fire_enabled"),
            ("futureDataDays", "future_data_days"),
            ("autoUpdateExchangeRates", "auto_update_exchange_rates"),
        ):
            if record.get(key) is not None:
                setattr(settings, attr, record[key])
        if record.get("fireSWR") is not None:
            settings.fire_swr = _decimal(record["fireSWR"])
        settings.updated_at = self._clock()
        self._user_repo.update_settings(settings)
        return UPDATED

    def _import_rate(self, run: _ImportRun, record: dict) -> str:
        # AUTO and API rates are derived data
        if record.get("type", ExchangeRateType.USER.value) != ExchangeRateType.USER.value:
            return SKIPPED
        from_id = self._currency(run, record.get("fromCurrencyCode")).currency_id
        to_id = self._currency(run, record.get("toCurrencyCode")).currency_id
        effective_date = _date(record["effectiveDate"])
        now = self._clock()
        existing = self._rate_repo.find(run.user_id, from_id, to_id, effective_date)
        if existing and existing.type == ExchangeRateType.USER:
            return SKIPPED
        if existing:
            # A derived rate gives way to the imported one
            existing.rate = _decimal(record["rate"])
            existing.type = ExchangeRateType.USER
            existing.source_rate_id = None
            existing.notes = record.get("notes")
            existing.updated_at = now
            self._rate_repo.update(existing)
            return UPDATED
        self._rate_repo.create(ExchangeRate(
            rate_id=str(uuid.uuid4()),
            user_id=run.user_id,
            from_currency_id=from_id,
            to_currency_id=to_id,
            rate=_decimal(record["rate"]),
            effective_date=effective_date,
            type=ExchangeRateType.USER,
            notes=record.get("notes"),
            created_at=now,
            updated_at=now,
        ))
        return CREATED

    # ===== Categories, tags and accounts =====

    def _import_categories(self, run: _ImportRun, records: list) -> None:
        """Parents before children; records whose parent never appears fail."""
        pending = list(records)
        while pending:
            ready = [r for r in pending if not r.get("parentId") or run.map("category", r["parentId"])]
            if not ready:
                break
            self._each(run, "category", ready, self._import_category)
            pending = [r for r in pending if r not in ready]
        for record in pending:
            run.summary.statistics.processed += 1
            run.summary.statistics.failed += 1
            run.summary.errors.append(f"category {record.get('id', '?')}: parent {record['parentId']} not imported")

    def _import_category(self, run: _ImportRun, record: dict) -> str:
        parent_id = run.map("category", record.get("parentId"))
        if parent_id:
            parent = self._account_repo.get_category(parent_id)
            category_type = parent.type
        else:
            category_type = CategoryType(record["type"])

        siblings = {
            c.name: c for c in self._account_repo.list_categories(run.user_id) if c.parent_id == parent_id
        }
        name = record["name"]
        if name in siblings:
            if run.skip_duplicates:
                run.assign("category", record.get("id"), siblings[name].category_id)
                return SKIPPED
            name = _unique_name(name, siblings)

        category = self._account_repo.create_category(Category(
            category_id=str(uuid.uuid4()),
            user_id=run.user_id,
            name=name,
            type=category_type,
            parent_id=parent_id,
            order=int(record.get("order", 0)),
            created_at=self._clock(),
        ))
        run.assign("category", record.get("id"), category.category_id)
        return CREATED

    def _import_tag(self, run: _ImportRun, record: dict) -> str:
        existing = self._transaction_repo.get_tag_by_name(run.user_id, record["name"])
        if existing:
            run.assign("tag", record.get("id"), existing.tag_id)
            return SKIPPED
        tag = self._transaction_repo.create_tag(Tag(
            tag_id=str(uuid.uuid4()),
            user_id=run.user_id,
            name=record["name"],
            color=record.get("color"),
            created_at=self._clock(),
        ))
        run.assign("tag", record.get("id"), tag.tag_id)
        return CREATED

    def _import_account(self, run: _ImportRun, record: dict) -> str:
        category_id = run.require("category", record.get("categoryId"))
        currency = self._currency(run, record.get("currencyCode"))
        existing = {a.name: a for a in self._account_repo.list_by_user(run.user_id)}
        name = record["name"]
        if name in existing:
            if run.skip_duplicates:
                run.assign("account", record.get("id"), existing[name].account_id)
                return SKIPPED
            name = _unique_name(name, existing)

        now = self._clock()
        account = self._account_repo.create(Account(
            account_id=str(uuid.uuid4()),
            user_id=run.user_id,
            category_id=category_id,
            currency_id=currency.currency_id,
            name=name,
            description=record.get("description"),
            color=record.get("color"),
            created_at=now,
            updated_at=now,
        ))
        run.assign("account", record.get("id"), account.account_id)
        return CREATED

    # ===== Templates, schedules and loans =====

    def _import_template(self, run: _ImportRun, record: dict) -> str:
        account = self._account_repo.get_by_id(run.require("account", record.get("accountId")))
        name = record["name"]
        if self._template_repo.get_by_name(run.user_id, name):
            if run.skip_duplicates:
                return SKIPPED
            taken = {t.name for t in self._template_repo.list_by_user(run.user_id)}
            name = _unique_name(name, taken)

        now = self._clock()
        self._template_repo.create(TransactionTemplate(
            template_id=str(uuid.uuid4()),
            user_id=run.user_id,
            name=name,
            account_id=account.account_id,
            currency_id=account.currency_id,
            type=TransactionType(record["type"]),
            description=record["description"],
            notes=record.get("notes"),
            tag_ids=run.tags(record.get("tagIds")),
            created_at=now,
            updated_at=now,
        ))
        return CREATED

    def _import_recurring(self, run: _ImportRun, record: dict) -> str:
        account = self._account_repo.get_by_id(run.require("account", record.get("accountId")))
        start_date = _date(record["startDate"])
        now = self._clock()
        recurring = self._recurring_repo.create(RecurringTransaction(
            recurring_id=str(uuid.uuid4()),
            user_id=run.user_id,
            account_id=account.account_id,
            currency_id=account.currency_id,
            type=TransactionType(record["type"]),
            amount=_decimal(record["amount"]),
            description=record["description"],
            notes=record.get("notes"),
            frequency=RecurrenceFrequency(record["frequency"]),
            interval=int(record.get("interval") or 1),
            day_of_month=record.get("dayOfMonth"),
            day_of_week=record.get("dayOfWeek"),
            month_of_year=record.get("monthOfYear"),
            start_date=start_date,
            end_date=_date(record.get("endDate")),
            next_date=_date(record.get("nextDate")) or start_date,
            max_occurrences=record.get("maxOccurrences"),
            current_count=int(record.get("currentCount") or 0),
            is_active=bool(record.get("isActive", True)),
            tag_ids=run.tags(record.get("tagIds")),
            created_at=now,
            updated_at=now,
        ))
        run.assign("recurring", record.get("id"), recurring.recurring_id)
        return CREATED

    def _import_contract(self, run: _ImportRun, record: dict) -> str:
        account = self._account_repo.get_by_id(run.require("account", record.get("accountId")))
        payment_account_id = None
        if record.get("paymentAccountId"):
            payment_account_id = run.require("account", record["paymentAccountId"])
        now = self._clock()
        contract = self._loan_repo.create_contract(LoanContract(
            contract_id=str(uuid.uuid4()),
            user_id=run.user_id,
            account_id=account.account_id,
            currency_id=account.currency_id,
            contract_name=record["contractName"],
            loan_amount=_decimal(record["loanAmount"]),
            interest_rate=_decimal(record["interestRate"]),
            total_periods=int(record["totalPeriods"]),
            repayment_type=RepaymentType(record["repaymentType"]),
            start_date=_date(record["startDate"]),
            payment_day=int(record["paymentDay"]),
            payment_account_id=payment_account_id,
            transaction_description=record.get("transactionDescription"),
            transaction_notes=record.get("transactionNotes"),
            transaction_tag_ids=run.tags(record.get("transactionTagIds")),
            is_active=bool(record.get("isActive", True)),
            current_period=int(record.get("currentPeriod") or 0),
            next_payment_date=_date(record.get("nextPaymentDate")),
            created_at=now,
            updated_at=now,
        ))
        run.assign("loanContract", record.get("id"), contract.contract_id)
        return CREATED

    def _import_payment(self, run: _ImportRun, record: dict) -> str:
        payment_id = str(uuid.uuid4())
        self._loan_repo.create_payments([LoanPayment(
            payment_id=payment_id,
            contract_id=run.require("loanContract", record.get("loanContractId")),
            user_id=run.user_id,
            period=int(record["period"]),
            payment_date=_date(record["paymentDate"]),
            principal_amount=_decimal(record["principalAmount"]),
            interest_amount=_decimal(record["interestAmount"]),
            total_amount=_decimal(record["totalAmount"]),
            remaining_balance=_decimal(record["remainingBalance"]),
            status=LoanPaymentStatus(record.get("status", LoanPaymentStatus.PENDING.value)),
            principal_transaction_id=run.map("transaction", record.get("principalTransactionId")),
            interest_transaction_id=run.map("transaction", record.get("interestTransactionId")),
            balance_transaction_id=run.map("transaction", record.get("balanceTransactionId")),
            processed_at=_date(record.get("processedAt")),
        )])
        run.assign("loanPayment", record.get("id"), payment_id)
        return CREATED

    # ===== Transactions =====

    def _import_transaction(self, run: _ImportRun, record: dict) -> str:
        account = self._account_repo.get_by_id(run.require("account", record.get("accountId")))
        code = record.get("currencyCode")
        if code:
            currency = self._currency(run, code)
            if currency.currency_id != account.currency_id:
                raise ValidationError(f"Currency {code} does not match the account currency")

        self._transaction_repo.create(Transaction(
            txn_id=run.map("transaction", record.get("id")) or str(uuid.uuid4()),
            user_id=run.user_id,
            account_id=account.account_id,
            category_id=account.category_id,
            currency_id=account.currency_id,
            type=TransactionType(record["type"]),
            amount=_decimal(record["amount"]),
            description=record["description"],
            notes=record.get("notes"),
            date=_date(record["date"]),
            tag_ids=run.tags(record.get("tagIds")),
            recurring_transaction_id=run.map("recurring", record.get("recurringTransactionId")),
            loan_contract_id=run.map("loanContract", record.get("loanContractId")),
            loan_payment_id=run.map("loanPayment", record.get("loanPaymentId")),
            created_at=self._clock(),
        ))
        return CREATED


def _unique_name(name: str, taken) -> str:
    n = 2
    while f"{name} ({n})" in taken:
        n += 1
    return f"{name} ({n})"
