"""SQLAlchemy implementation of TransactionTemplateRepository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from flowbalance.domain.models import TransactionTemplate, TransactionType
from flowbalance.repositories.sqlalchemy.orm_models import TransactionTemplateORM

_MUTABLE_FIELDS = (
    "name",
    "account_id",
    "currency_id",
    "type",
    "description",
    "notes",
)


class SqlAlchemyTransactionTemplateRepository:
    """SQLAlchemy-backed transaction template repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, template: TransactionTemplate) -> TransactionTemplate:
        orm_template = TransactionTemplateORM(
            template_id=template.template_id,
            user_id=template.user_id,
            tag_ids=list(template.tag_ids),
            created_at=template.created_at,
            updated_at=template.updated_at,
        )
        for name in _MUTABLE_FIELDS:
            setattr(orm_template, name, getattr(template, name))
        self._db.add(orm_template)
        self._db.commit()
        self._db.refresh(orm_template)
        return self._to_domain(orm_template)

    def get_by_id(self, template_id: str) -> Optional[TransactionTemplate]:
        orm_template = self._db.query(TransactionTemplateORM).filter(
            TransactionTemplateORM.template_id == template_id
        ).first()
        return self._to_domain(orm_template) if orm_template else None

    def get_by_name(self, user_id: str, name: str) -> Optional[TransactionTemplate]:
        orm_template = self._db.query(TransactionTemplateORM).filter(
            TransactionTemplateORM.user_id == user_id,
            TransactionTemplateORM.name == name,
        ).first()
        return self._to_domain(orm_template) if orm_template else None

    def list_by_user(
        self,
        user_id: str,
        type: Optional[TransactionType] = None,
        account_id: Optional[str] = None,
    ) -> list[TransactionTemplate]:
        query = self._db.query(TransactionTemplateORM).filter(TransactionTemplateORM.user_id == user_id)
        if type:
            query = query.filter(TransactionTemplateORM.type == type)
        if account_id:
            query = query.filter(TransactionTemplateORM.account_id == account_id)
        query = query.order_by(
            func.coalesce(TransactionTemplateORM.updated_at, TransactionTemplateORM.created_at).desc(),
            TransactionTemplateORM.name,
        )
        return [self._to_domain(t) for t in query.all()]

    def update(self, template: TransactionTemplate) -> TransactionTemplate:
        orm_template = self._db.query(TransactionTemplateORM).filter(
            TransactionTemplateORM.template_id == template.template_id
        ).first()
        if not orm_template:
            raise ValueError(f"Transaction template not found: {template.template_id}")
        for name in _MUTABLE_FIELDS:
            setattr(orm_template, name, getattr(template, name))
        orm_template.tag_ids = list(template.tag_ids)
        orm_template.updated_at = template.updated_at or datetime.utcnow()
        self._db.commit()
        self._db.refresh(orm_template)
        return self._to_domain(orm_template)

    def delete(self, template_id: str) -> None:
        self._db.query(TransactionTemplateORM).filter(
            TransactionTemplateORM.template_id == template_id
        ).delete()
        self._db.commit()

    @staticmethod
    def _to_domain(orm: TransactionTemplateORM) -> TransactionTemplate:
        return TransactionTemplate(
            template_id=orm.template_id,
            user_id=orm.user_id,
            name=orm.name,
            account_id=orm.account_id,
            currency_id=orm.currency_id,
            type=orm.type,
            description=orm.description,
            notes=orm.notes,
            tag_ids=list(orm.tag_ids or []),
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
