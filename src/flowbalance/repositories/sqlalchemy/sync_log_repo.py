"""SQLAlchemy implementation of ProcessingLogRepository."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from flowbalance.domain.models import ProcessingLog
from flowbalance.repositories.sqlalchemy.orm_models import ProcessingLogORM


class SqlAlchemyProcessingLogRepository:
    """SQLAlchemy-backed processing log repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, log: ProcessingLog) -> ProcessingLog:
        orm_log = ProcessingLogORM(
            log_id=log.log_id,
            user_id=log.user_id,
            start_time=log.start_time,
            end_time=log.end_time,
            status=log.status,
            processed_recurring=log.processed_recurring,
            processed_loans=log.processed_loans,
            processed_exchange_rates=log.processed_exchange_rates,
            failed_count=log.failed_count,
            error_message=log.error_message,
        )
        self._db.add(orm_log)
        self._db.commit()
        self._db.refresh(orm_log)
        return self._to_domain(orm_log)

    def get_by_id(self, log_id: str) -> Optional[ProcessingLog]:
        orm_log = self._db.query(ProcessingLogORM).filter(ProcessingLogORM.log_id == log_id).first()
        return self._to_domain(orm_log) if orm_log else None

    def update(self, log: ProcessingLog) -> ProcessingLog:
        orm_log = self._db.query(ProcessingLogORM).filter(ProcessingLogORM.log_id == log.log_id).first()
        if not orm_log:
            raise ValueError(f"Processing log not found: {log.log_id}")
        orm_log.end_time = log.end_time
        orm_log.status = log.status
        orm_log.processed_recurring = log.processed_recurring
        orm_log.processed_loans = log.processed_loans
        orm_log.processed_exchange_rates = log.processed_exchange_rates
        orm_log.failed_count = log.failed_count
        orm_log.error_message = log.error_message
        self._db.commit()
        self._db.refresh(orm_log)
        return self._to_domain(orm_log)

    def get_latest(self, user_id: str) -> Optional[ProcessingLog]:
        orm_log = (
            self._db.query(ProcessingLogORM)
            .filter(ProcessingLogORM.user_id == user_id)
            .order_by(ProcessingLogORM.start_time.desc())
            .first()
        )
        return self._to_domain(orm_log) if orm_log else None

    def list_by_user(self, user_id: str, limit: int = 10) -> list[ProcessingLog]:
        orm_logs = (
            self._db.query(ProcessingLogORM)
            .filter(ProcessingLogORM.user_id == user_id)
            .order_by(ProcessingLogORM.start_time.desc())
            .limit(limit)
            .all()
        )
        return [self._to_domain(log) for log in orm_logs]

    def list_since(self, since: datetime) -> list[ProcessingLog]:
        orm_logs = self._db.query(ProcessingLogORM).filter(ProcessingLogORM.start_time >= since).all()
        return [self._to_domain(log) for log in orm_logs]

    def delete_older_than(self, cutoff: datetime, user_id: Optional[str] = None) -> int:
        query = self._db.query(ProcessingLogORM).filter(ProcessingLogORM.start_time < cutoff)
        if user_id:
            query = query.filter(ProcessingLogORM.user_id == user_id)
        deleted = query.delete(synchronize_session=False)
        self._db.commit()
        return deleted

    @staticmethod
    def _to_domain(orm: ProcessingLogORM) -> ProcessingLog:
        """Convert ORM model to domain model."""
        return ProcessingLog(
            log_id=orm.log_id,
            user_id=orm.user_id,
            start_time=orm.start_time,
            end_time=orm.end_time,
            status=orm.status,
            processed_recurring=orm.processed_recurring,
            processed_loans=orm.processed_loans,
            processed_exchange_rates=orm.processed_exchange_rates,
            failed_count=orm.failed_count,
            error_message=orm.error_message,
        )
