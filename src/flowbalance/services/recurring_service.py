"""Recurring transaction templates and their materialization."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from flowbalance.config.settings import get_settings
from flowbalance.core.exceptions import ValidationError, NotFoundError
from flowbalance.core.formatting import clamp_day
from flowbalance.core.timezone import future_horizon, now_utc, start_of_day
from flowbalance.domain.models import (
    CategoryType,
    RecurrenceFrequency,
    RecurringTransaction,
    Transaction,
    TransactionType,
)
from flowbalance.domain.views import GenerationResult
from flowbalance.repositories.protocols import (
    AccountRepository,
    RecurringTransactionRepository,
    TransactionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

# Rows created for one template in a single generation pass
MAX_OCCURRENCES_PER_RUN = 1000


def calculate_next_date(
    current: datetime,
    frequency: RecurrenceFrequency,
    interval: int = 1,
    day_of_month: Optional[int] = None,
    day_of_week: Optional[int] = None,
    month_of_year: Optional[int] = None,
) -> datetime:
    """
    Return the occurrence after current.

    day_of_week is 0 = Sunday .. 6 = Saturday. Days of month past the end of
    the target month are clamped to its last day.
    """
    interval = interval or 1
    try:
        frequency = RecurrenceFrequency(frequency)
    except ValueError:
        raise ValidationError(f"Unsupported frequency: {frequency}")

    if frequency == RecurrenceFrequency.DAILY:
        return current + timedelta(days=interval)

    if frequency == RecurrenceFrequency.WEEKLY:
        result = current + timedelta(weeks=interval)
        if day_of_week is not None:
            # Python weekday(): Monday = 0; shift to Sunday = 0
            current_dow = (result.weekday() + 1) % 7
            result += timedelta(days=(day_of_week - current_dow) % 7)
        return result

    if frequency in (RecurrenceFrequency.MONTHLY, RecurrenceFrequency.QUARTERLY):
        months = interval * (3 if frequency == RecurrenceFrequency.QUARTERLY else 1)
        result = current.replace(day=1) + relativedelta(months=months)
        day = day_of_month if day_of_month is not None else current.day
        return result.replace(day=clamp_day(result.year, result.month, day))

    # YEARLY
    result = current.replace(day=1) + relativedelta(years=interval)
    if month_of_year is not None:
        result = result.replace(month=month_of_year)
    day = day_of_month if day_of_month is not None else current.day
    return result.replace(day=clamp_day(result.year, result.month, day))


@dataclass
class RecurringCreate:
    """Input data for creating a recurring template."""

    account_id: str
    type: TransactionType
    amount: Decimal
    description: str
    frequency: RecurrenceFrequency
    start_date: datetime
    interval: int = 1
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    month_of_year: Optional[int] = None
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = None
    notes: Optional[str] = None
    tag_ids: list[str] = field(default_factory=list)


@dataclass
class RecurringUpdate:
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    end_date: Optional[datetime] = None
    max_occurrences: Optional[int] = None
    is_active: Optional[bool] = None
    tag_ids: Optional[list[str]] = None


class RecurringService:
    """
    Service for recurring templates.

    Templates only attach to flow accounts and produce transactions of the
    account's own type, up to the user's future-data horizon.
    """

    def __init__(
        self,
        recurring_repo: RecurringTransactionRepository,
        account_repo: AccountRepository,
        transaction_repo: TransactionRepository,
        user_repo: UserRepository,
        clock: Callable = now_utc,
    ):
        self._recurring_repo = recurring_repo
        self._account_repo = account_repo
        self._transaction_repo = transaction_repo
        self._user_repo = user_repo
        self._clock = clock

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_recurring(self, user_id: str, data: RecurringCreate) -> RecurringTransaction:
        account = self._account_repo.get_by_id(data.account_id)
        if not account or account.user_id != user_id:
            raise NotFoundError("Account", data.account_id)
        category = self._account_repo.get_category(account.category_id)
        txn_type = TransactionType(data.type)
        if category.type not in (CategoryType.INCOME, CategoryType.EXPENSE):
            raise ValidationError("Recurring transactions require an INCOME or EXPENSE account")
        if txn_type.value != category.type.value:
            raise ValidationError(
                f"{category.type.value} accounts do not accept {txn_type.value} transactions"
            )
        if Decimal(str(data.amount)) <= 0:
            raise ValidationError("Amount must be positive")
        if not (data.description or "").strip():
            raise ValidationError("Description is required")
        self._validate_schedule(data)
        for tag_id in data.tag_ids:
            tag = self._transaction_repo.get_tag(tag_id)
            if not tag or tag.user_id != user_id:
                raise NotFoundError("Tag", tag_id)

        start = start_of_day(data.start_date)
        recurring = RecurringTransaction(
            recurring_id=str(uuid.uuid4()),
            user_id=user_id,
            account_id=account.account_id,
            currency_id=account.currency_id,
            type=txn_type,
            amount=Decimal(str(data.amount)),
            description=data.description.strip(),
            frequency=RecurrenceFrequency(data.frequency),
            start_date=start,
            next_date=start,
            interval=data.interval,
            day_of_month=data.day_of_month,
            day_of_week=data.day_of_week,
            month_of_year=data.month_of_year,
            end_date=data.end_date,
            max_occurrences=data.max_occurrences,
            notes=data.notes,
            tag_ids=list(data.tag_ids),
            created_at=self._clock(),
        )
        return self._recurring_repo.create(recurring)

    def get_recurring(self, user_id: str, recurring_id: str) -> RecurringTransaction:
        recurring = self._recurring_repo.get_by_id(recurring_id)
        if not recurring or recurring.user_id != user_id:
            raise NotFoundError("Recurring transaction", recurring_id)
        return recurring

    def list_recurring(self, user_id: str, active_only: bool = False) -> list[RecurringTransaction]:
        return self._recurring_repo.list_by_user(user_id, active_only)

    def update_recurring(self, user_id: str, recurring_id: str, patch: RecurringUpdate) -> RecurringTransaction:
        recurring = self.get_recurring(user_id, recurring_id)
        if patch.amount is not None:
            if Decimal(str(patch.amount)) <= 0:
                raise ValidationError("Amount must be positive")
            recurring.amount = Decimal(str(patch.amount))
        if patch.description is not None:
            if not patch.description.strip():
                raise ValidationError("Description is required")
            recurring.description = patch.description.strip()
        if patch.notes is not None:
            recurring.notes = patch.notes
        if patch.end_date is not None:
            if patch.end_date < recurring.start_date:
                raise ValidationError("end_date must not be before start_date")
            recurring.end_date = patch.end_date
        if patch.max_occurrences is not None:
            if patch.max_occurrences < 1:
                raise ValidationError("max_occurrences must be at least 1")
            recurring.max_occurrences = patch.max_occurrences
        if patch.is_active is not None:
            recurring.is_active = patch.is_active
        if patch.tag_ids is not None:
            recurring.tag_ids = list(patch.tag_ids)
        recurring.updated_at = self._clock()
        return self._recurring_repo.update(recurring)

    def delete_recurring(self, user_id: str, recurring_id: str, delete_future: bool = True) -> int:
        """
        Delete a template. Generated transactions dated after now go with it
        when delete_future is set; past ones stay in the ledger.
        """
        self.get_recurring(user_id, recurring_id)
        removed = 0
        if delete_future:
            future = self._transaction_repo.query(
                user_id,
                recurring_transaction_id=recurring_id,
                start_date=self._clock(),
            )
            removed = self._transaction_repo.delete_many([t.txn_id for t in future])
        self._recurring_repo.delete(recurring_id)
        return removed

    @staticmethod
    def _validate_schedule(data: RecurringCreate) -> None:
        if data.interval < 1:
            raise ValidationError("interval must be at least 1")
        if data.day_of_month is not None and not 1 <= data.day_of_month <= 31:
            raise ValidationError("day_of_month must be between 1 and 31")
        if data.day_of_week is not None and not 0 <= data.day_of_week <= 6:
            raise ValidationError("day_of_week must be between 0 (Sunday) and 6")
        if data.month_of_year is not None and not 1 <= data.month_of_year <= 12:
            raise ValidationError("month_of_year must be between 1 and 12")
        if data.end_date is not None and data.end_date < data.start_date:
            raise ValidationError("end_date must not be before start_date")
        if data.max_occurrences is not None and data.max_occurrences < 1:
            raise ValidationError("max_occurrences must be at least 1")

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def get_due_recurring_transactions(self, user_id: Optional[str] = None) -> list[RecurringTransaction]:
        """Active templates whose next occurrence is today or earlier."""
        cutoff = self._clock()
        return [r for r in self._recurring_repo.list_active(user_id) if r.next_date <= cutoff]

    def generate_recurring_transactions(self, user_id: str) -> GenerationResult:
        """
        Materialize occurrences of every active template up to the horizon.

        Failures of one template are recorded and do not stop the others.
        """
        settings = self._user_repo.get_settings(user_id)
        days = settings.future_data_days if settings else get_settings().default_future_data_days
        horizon = future_horizon(self._clock(), days)

        result = GenerationResult()
        for recurring in self._recurring_repo.list_active(user_id):
            try:
                result.processed += self._generate_for_template(recurring, horizon)
            except Exception as e:
                logger.exception("Recurring generation failed for %s", recurring.recurring_id)
                result.errors.append(f"Recurring '{recurring.description}': {e}")
        return result

    def _generate_for_template(self, recurring: RecurringTransaction, horizon: datetime) -> int:
        """
        Walk the template from its next pending occurrence up to the horizon.

        At most MAX_OCCURRENCES_PER_RUN rows are created per pass; next_date
        then points at the first occurrence still missing, so the following
        pass picks up where this one stopped.
        """
        existing = self._transaction_repo.list_recurring_dates(recurring.recurring_id)
        account = self._account_repo.get_by_id(recurring.account_id)
        if not account:
            raise NotFoundError("Account", recurring.account_id)

        created = 0
        current = max(start_of_day(recurring.start_date), recurring.next_date)
        while current <= horizon and created < MAX_OCCURRENCES_PER_RUN:
            if recurring.end_date and current > recurring.end_date:
                break
            if recurring.max_occurrences and recurring.current_count + created >= recurring.max_occurrences:
                break
            if current.date() not in existing:
                self._transaction_repo.create(Transaction(
                    txn_id=str(uuid.uuid4()),
                    user_id=recurring.user_id,
                    account_id=recurring.account_id,
                    category_id=account.category_id,
                    currency_id=recurring.currency_id,
                    type=recurring.type,
                    amount=recurring.amount,
                    description=recurring.description,
                    notes=recurring.notes,
                    date=current,
                    tag_ids=list(recurring.tag_ids),
                    recurring_transaction_id=recurring.recurring_id,
                    created_at=self._clock(),
                ))
                existing.add(current.date())
                created += 1
            current = calculate_next_date(
                current,
                recurring.frequency,
                recurring.interval,
                recurring.day_of_month,
                recurring.day_of_week,
                recurring.month_of_year,
            )

        if created or current != recurring.next_date:
            recurring.current_count += created
            recurring.next_date = current
            recurring.updated_at = self._clock()
            self._recurring_repo.update(recurring)
        if created:
            logger.debug("Generated %d occurrences of %s", created, recurring.recurring_id)
        return created
