"""SQLAlchemy implementation of TransactionRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, or_, func
from sqlalchemy.orm import Session

from flowbalance.domain.models import Transaction, TransactionType, Tag
from flowbalance.repositories.sqlalchemy.orm_models import TransactionORM, TagORM


class SqlAlchemyTransactionRepository:
    """SQLAlchemy-backed transaction and tag repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, transaction: Transaction) -> Transaction:
        """Persist a new transaction."""
        orm_txn = self._to_orm(transaction)
        orm_txn.tags = self._load_tags(transaction.tag_ids)
        self._db.add(orm_txn)
        self._db.commit()
        self._db.refresh(orm_txn)
        return self._to_domain(orm_txn)

    def stage(self, transaction: Transaction) -> None:
        """Add a transaction to the session without committing it."""
        orm_txn = self._to_orm(transaction)
        orm_txn.tags = self._load_tags(transaction.tag_ids)
        self._db.add(orm_txn)

    def get_by_id(self, txn_id: str) -> Optional[Transaction]:
        """Retrieve transaction by ID."""
        orm_txn = self._db.query(TransactionORM).filter(
            TransactionORM.txn_id == txn_id
        ).first()
        return self._to_domain(orm_txn) if orm_txn else None

    def update(self, transaction: Transaction) -> Transaction:
        """Update an existing transaction."""
        orm_txn = self._db.query(TransactionORM).filter(
            TransactionORM.txn_id == transaction.txn_id
        ).first()
        if not orm_txn:
            raise ValueError(f"Transaction not found: {transaction.txn_id}")

        orm_txn.account_id = transaction.account_id
        orm_txn.category_id = transaction.category_id
        orm_txn.currency_id = transaction.currency_id
        orm_txn.type = transaction.type
        orm_txn.amount = transaction.amount
        orm_txn.description = transaction.description
        orm_txn.notes = transaction.notes
        orm_txn.date = transaction.date
        orm_txn.tags = self._load_tags(transaction.tag_ids)
        orm_txn.updated_at = datetime.utcnow()

        self._db.commit()
        self._db.refresh(orm_txn)
        return self._to_domain(orm_txn)

    def delete(self, txn_id: str) -> None:
        orm_txn = self._db.query(TransactionORM).filter(TransactionORM.txn_id == txn_id).first()
        if orm_txn:
            self._db.delete(orm_txn)
            self._db.commit()

    def delete_many(self, txn_ids: list[str]) -> int:
        if not txn_ids:
            return 0
        orm_txns = self._db.query(TransactionORM).filter(TransactionORM.txn_id.in_(txn_ids)).all()
        for orm_txn in orm_txns:
            self._db.delete(orm_txn)
        self._db.commit()
        return len(orm_txns)

    def query(
        self,
        user_id: str,
        account_ids: Optional[list[str]] = None,
        category_ids: Optional[list[str]] = None,
        types: Optional[list[TransactionType]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tag_id: Optional[str] = None,
        search: Optional[str] = None,
        recurring_transaction_id: Optional[str] = None,
        loan_contract_id: Optional[str] = None,
        generated_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[Transaction]:
        """Query transactions with filters, ordered by date."""
        query = self._db.query(TransactionORM)

        conditions = [TransactionORM.user_id == user_id]
        if account_ids:
            conditions.append(TransactionORM.account_id.in_(account_ids))
        if category_ids:
            conditions.append(TransactionORM.category_id.in_(category_ids))
        if types:
            conditions.append(TransactionORM.type.in_(types))
        if start_date:
            conditions.append(TransactionORM.date >= start_date)
        if end_date:
            conditions.append(TransactionORM.date <= end_date)
        if tag_id:
            conditions.append(TransactionORM.tags.any(TagORM.tag_id == tag_id))
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(
                func.lower(TransactionORM.description).like(pattern),
                func.lower(TransactionORM.notes).like(pattern),
            ))
        if recurring_transaction_id:
            conditions.append(TransactionORM.recurring_transaction_id == recurring_transaction_id)
        if loan_contract_id:
            conditions.append(TransactionORM.loan_contract_id == loan_contract_id)
        if generated_only:
            conditions.append(or_(
                TransactionORM.recurring_transaction_id.isnot(None),
                TransactionORM.loan_payment_id.isnot(None),
            ))

        query = query.filter(and_(*conditions))

        if newest_first:
            query = query.order_by(TransactionORM.date.desc(), TransactionORM.created_at.desc())
        else:
            query = query.order_by(TransactionORM.date, TransactionORM.created_at)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_domain(t) for t in query.all()]

    def count(self, user_id: str, account_ids: Optional[list[str]] = None) -> int:
        query = self._db.query(func.count(TransactionORM.txn_id)).filter(TransactionORM.user_id == user_id)
        if account_ids:
            query = query.filter(TransactionORM.account_id.in_(account_ids))
        return query.scalar() or 0

    def list_recurring_dates(self, recurring_transaction_id: str) -> set:
        rows = self._db.query(TransactionORM.date).filter(
            TransactionORM.recurring_transaction_id == recurring_transaction_id
        ).all()
        return {row[0].date() for row in rows}

    def create_tag(self, tag: Tag) -> Tag:
        orm_tag = TagORM(
            tag_id=tag.tag_id,
            user_id=tag.user_id,
            name=tag.name,
            color=tag.color,
            created_at=tag.created_at,
        )
        self._db.add(orm_tag)
        self._db.commit()
        self._db.refresh(orm_tag)
        return self._tag_to_domain(orm_tag)

    def get_tag(self, tag_id: str) -> Optional[Tag]:
        orm_tag = self._db.query(TagORM).filter(TagORM.tag_id == tag_id).first()
        return self._tag_to_domain(orm_tag) if orm_tag else None

    def get_tag_by_name(self, user_id: str, name: str) -> Optional[Tag]:
        orm_tag = self._db.query(TagORM).filter(
            TagORM.user_id == user_id,
            TagORM.name == name,
        ).first()
        return self._tag_to_domain(orm_tag) if orm_tag else None

    def list_tags(self, user_id: str) -> list[Tag]:
        orm_tags = self._db.query(TagORM).filter(TagORM.user_id == user_id).order_by(TagORM.name).all()
        return [self._tag_to_domain(t) for t in orm_tags]

    def update_tag(self, tag: Tag) -> Tag:
        orm_tag = self._db.query(TagORM).filter(TagORM.tag_id == tag.tag_id).first()
        if not orm_tag:
            raise ValueError(f"Tag not found: {tag.tag_id}")
        orm_tag.name = tag.name
        orm_tag.color = tag.color
        self._db.commit()
        self._db.refresh(orm_tag)
        return self._tag_to_domain(orm_tag)

    def delete_tag(self, tag_id: str) -> None:
        orm_tag = self._db.query(TagORM).filter(TagORM.tag_id == tag_id).first()
        if orm_tag:
            # Detach from transactions before removing the tag
            for orm_txn in self._db.query(TransactionORM).filter(
                TransactionORM.tags.any(TagORM.tag_id == tag_id)
            ).all():
                orm_txn.tags = [t for t in orm_txn.tags if t.tag_id != tag_id]
            self._db.delete(orm_tag)
            self._db.commit()

    def _load_tags(self, tag_ids: list[str]) -> list[TagORM]:
        if not tag_ids:
            return []
        return self._db.query(TagORM).filter(TagORM.tag_id.in_(tag_ids)).all()

    def _to_orm(self, txn: Transaction) -> TransactionORM:
        """Convert domain model to ORM model."""
        return TransactionORM(
            txn_id=txn.txn_id,
            user_id=txn.user_id,
            account_id=txn.account_id,
            category_id=txn.category_id,
            currency_id=txn.currency_id,
            type=txn.type,
            amount=txn.amount,
            description=txn.description,
            notes=txn.notes,
            date=txn.date,
            recurring_transaction_id=txn.recurring_transaction_id,
            loan_contract_id=txn.loan_contract_id,
            loan_payment_id=txn.loan_payment_id,
            created_at=txn.created_at,
            updated_at=txn.updated_at,
        )

    @staticmethod
    def _to_domain(orm: TransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            txn_id=orm.txn_id,
            user_id=orm.user_id,
            account_id=orm.account_id,
            category_id=orm.category_id,
            currency_id=orm.currency_id,
            type=orm.type,
            amount=Decimal(str(orm.amount)),
            description=orm.description,
            notes=orm.notes,
            date=orm.date,
            tag_ids=sorted(t.tag_id for t in orm.tags),
            recurring_transaction_id=orm.recurring_transaction_id,
            loan_contract_id=orm.loan_contract_id,
            loan_payment_id=orm.loan_payment_id,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    @staticmethod
    def _tag_to_domain(orm: TagORM) -> Tag:
        return Tag(
            tag_id=orm.tag_id,
            user_id=orm.user_id,
            name=orm.name,
            color=orm.color,
            created_at=orm.created_at,
        )
