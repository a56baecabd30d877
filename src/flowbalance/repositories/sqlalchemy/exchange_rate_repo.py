"""SQLAlchemy implementation of ExchangeRateRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from flowbalance.domain.models import ExchangeRate, ExchangeRateType
from flowbalance.repositories.sqlalchemy.orm_models import ExchangeRateORM


class SqlAlchemyExchangeRateRepository:
    """SQLAlchemy-backed exchange rate repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, rate: ExchangeRate) -> ExchangeRate:
        orm_rate = ExchangeRateORM(
            rate_id=rate.rate_id,
            user_id=rate.user_id,
            from_currency_id=rate.from_currency_id,
            to_currency_id=rate.to_currency_id,
            rate=rate.rate,
            effective_date=rate.effective_date,
            type=rate.type,
            source_rate_id=rate.source_rate_id,
            notes=rate.notes,
            created_at=rate.created_at,
        )
        self._db.add(orm_rate)
        self._db.commit()
        self._db.refresh(orm_rate)
        return self._to_domain(orm_rate)

    def get_by_id(self, rate_id: str) -> Optional[ExchangeRate]:
        orm_rate = self._db.query(ExchangeRateORM).filter(ExchangeRateORM.rate_id == rate_id).first()
        return self._to_domain(orm_rate) if orm_rate else None

    def find(
        self,
        user_id: str,
        from_currency_id: str,
        to_currency_id: str,
        effective_date: datetime,
    ) -> Optional[ExchangeRate]:
        orm_rate = self._db.query(ExchangeRateORM).filter(
            ExchangeRateORM.user_id == user_id,
            ExchangeRateORM.from_currency_id == from_currency_id,
            ExchangeRateORM.to_currency_id == to_currency_id,
            ExchangeRateORM.effective_date == effective_date,
        ).first()
        return self._to_domain(orm_rate) if orm_rate else None

    def update(self, rate: ExchangeRate) -> ExchangeRate:
        orm_rate = self._db.query(ExchangeRateORM).filter(
            ExchangeRateORM.rate_id == rate.rate_id
        ).first()
        if not orm_rate:
            raise ValueError(f"Exchange rate not found: {rate.rate_id}")
        orm_rate.rate = rate.rate
        orm_rate.effective_date = rate.effective_date
        orm_rate.type = rate.type
        orm_rate.source_rate_id = rate.source_rate_id
        orm_rate.notes = rate.notes
        self._db.commit()
        self._db.refresh(orm_rate)
        return self._to_domain(orm_rate)

    def delete(self, rate_id: str) -> None:
        self._db.query(ExchangeRateORM).filter(ExchangeRateORM.rate_id == rate_id).delete()
        self._db.commit()

    def list_by_user(
        self,
        user_id: str,
        rate_type: Optional[ExchangeRateType] = None,
    ) -> list[ExchangeRate]:
        query = self._db.query(ExchangeRateORM).filter(ExchangeRateORM.user_id == user_id)
        if rate_type is not None:
            query = query.filter(ExchangeRateORM.type == rate_type)
        query = query.order_by(ExchangeRateORM.effective_date.desc(), ExchangeRateORM.created_at.desc())
        return [self._to_domain(r) for r in query.all()]

    def get_latest(
        self,
        user_id: str,
        from_currency_id: str,
        to_currency_id: str,
        as_of: Optional[datetime] = None,
    ) -> Optional[ExchangeRate]:
        query = self._db.query(ExchangeRateORM).filter(
            ExchangeRateORM.user_id == user_id,
            ExchangeRateORM.from_currency_id == from_currency_id,
            ExchangeRateORM.to_currency_id == to_currency_id,
        )
        if as_of is not None:
            query = query.filter(ExchangeRateORM.effective_date <= as_of)
        orm_rate = query.order_by(
            ExchangeRateORM.effective_date.desc(),
            ExchangeRateORM.created_at.desc(),
        ).first()
        return self._to_domain(orm_rate) if orm_rate else None

    def delete_by_type(self, user_id: str, rate_type: ExchangeRateType) -> int:
        deleted = self._db.query(ExchangeRateORM).filter(
            ExchangeRateORM.user_id == user_id,
            ExchangeRateORM.type == rate_type,
        ).delete(synchronize_session=False)
        self._db.commit()
        return deleted

    def delete_by_source(self, source_rate_id: str) -> int:
        deleted = self._db.query(ExchangeRateORM).filter(
            ExchangeRateORM.source_rate_id == source_rate_id
        ).delete(synchronize_session=False)
        self._db.commit()
        return deleted

    def delete_many(self, rate_ids: list[str]) -> int:
        if not rate_ids:
            return 0
        deleted = self._db.query(ExchangeRateORM).filter(
            ExchangeRateORM.rate_id.in_(rate_ids)
        ).delete(synchronize_session=False)
        self._db.commit()
        return deleted

    @staticmethod
    def _to_domain(orm: ExchangeRateORM) -> ExchangeRate:
        """Convert ORM model to domain model."""
        return ExchangeRate(
            rate_id=orm.rate_id,
            user_id=orm.user_id,
            from_currency_id=orm.from_currency_id,
            to_currency_id=orm.to_currency_id,
            rate=Decimal(str(orm.rate)),
            effective_date=orm.effective_date,
            type=orm.type,
            source_rate_id=orm.source_rate_id,
            notes=orm.notes,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
