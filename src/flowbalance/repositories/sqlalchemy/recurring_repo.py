"""SQLAlchemy implementation of RecurringTransactionRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from flowbalance.domain.models import RecurringTransaction
from flowbalance.repositories.sqlalchemy.orm_models import RecurringTransactionORM

_MUTABLE_FIELDS = (
    "account_id",
    "currency_id",
    "type",
    "amount",
    "description",
    "notes",
    "frequency",
    "interval",
    "day_of_month",
    "day_of_week",
    "month_of_year",
    "start_date",
    "end_date",
    "next_date",
    "is_active",
    "max_occurrences",
    "current_count",
)


class SqlAlchemyRecurringTransactionRepository:
    """SQLAlchemy-backed recurring transaction repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, recurring: RecurringTransaction) -> RecurringTransaction:
        orm_rec = RecurringTransactionORM(
            recurring_id=recurring.recurring_id,
            user_id=recurring.user_id,
            tag_ids=list(recurring.tag_ids),
            created_at=recurring.created_at,
        )
        for name in _MUTABLE_FIELDS:
            setattr(orm_rec, name, getattr(recurring, name))
        self._db.add(orm_rec)
        self._db.commit()
        self._db.refresh(orm_rec)
        return self._to_domain(orm_rec)

    def get_by_id(self, recurring_id: str) -> Optional[RecurringTransaction]:
        orm_rec = self._db.query(RecurringTransactionORM).filter(
            RecurringTransactionORM.recurring_id == recurring_id
        ).first()
        return self._to_domain(orm_rec) if orm_rec else None

    def list_by_user(self, user_id: str, active_only: bool = False) -> list[RecurringTransaction]:
        query = self._db.query(RecurringTransactionORM).filter(
            RecurringTransactionORM.user_id == user_id
        )
        if active_only:
            query = query.filter(RecurringTransactionORM.is_active == True)  # noqa: E712
        query = query.order_by(RecurringTransactionORM.next_date)
        return [self._to_domain(r) for r in query.all()]

    def list_active(self, user_id: Optional[str] = None) -> list[RecurringTransaction]:
        query = self._db.query(RecurringTransactionORM).filter(
            RecurringTransactionORM.is_active == True  # noqa: E712
        )
        if user_id:
            query = query.filter(RecurringTransactionORM.user_id == user_id)
        query = query.order_by(RecurringTransactionORM.next_date)
        return [self._to_domain(r) for r in query.all()]

    def update(self, recurring: RecurringTransaction) -> RecurringTransaction:
        orm_rec = self._db.query(RecurringTransactionORM).filter(
            RecurringTransactionORM.recurring_id == recurring.recurring_id
        ).first()
        if not orm_rec:
            raise ValueError(f"Recurring transaction not found: {recurring.recurring_id}")
        for name in _MUTABLE_FIELDS:
            setattr(orm_rec, name, getattr(recurring, name))
        orm_rec.tag_ids = list(recurring.tag_ids)
        self._db.commit()
        self._db.refresh(orm_rec)
        return self._to_domain(orm_rec)

    def delete(self, recurring_id: str) -> None:
        self._db.query(RecurringTransactionORM).filter(
            RecurringTransactionORM.recurring_id == recurring_id
        ).delete()
        self._db.commit()

    @staticmethod
    def _to_domain(orm: RecurringTransactionORM) -> RecurringTransaction:
        """Convert ORM model to domain model."""
        return RecurringTransaction(
            recurring_id=orm.recurring_id,
            user_id=orm.user_id,
            account_id=orm.account_id,
            currency_id=orm.currency_id,
            type=orm.type,
            amount=Decimal(str(orm.amount)),
            description=orm.description,
            notes=orm.notes,
            tag_ids=list(orm.tag_ids or []),
            frequency=orm.frequency,
            interval=orm.interval,
            day_of_month=orm.day_of_month,
            day_of_week=orm.day_of_week,
            month_of_year=orm.month_of_year,
            start_date=orm.start_date,
            end_date=orm.end_date,
            next_date=orm.next_date,
            is_active=orm.is_active,
            max_occurrences=orm.max_occurrences,
            current_count=orm.current_count,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
