"""SQLAlchemy implementation of AccountRepository."""

from typing import Optional

from sqlalchemy.orm import Session

from flowbalance.domain.models import Account, Category
from flowbalance.repositories.sqlalchemy.orm_models import AccountORM, CategoryORM


class SqlAlchemyAccountRepository:
    """SQLAlchemy-backed account and category repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, account: Account) -> Account:
        """Persist a new account."""
        orm_account = AccountORM(
            account_id=account.account_id,
            user_id=account.user_id,
            category_id=account.category_id,
            currency_id=account.currency_id,
            name=account.name,
            description=account.description,
            color=account.color,
            created_at=account.created_at,
        )
        self._db.add(orm_account)
        self._db.commit()
        self._db.refresh(orm_account)
        return self._to_domain(orm_account)

    def get_by_id(self, account_id: str) -> Optional[Account]:
        """Retrieve account by ID."""
        orm_account = self._db.query(AccountORM).filter(
            AccountORM.account_id == account_id
        ).first()
        return self._to_domain(orm_account) if orm_account else None

    def list_by_user(self, user_id: str) -> list[Account]:
        orm_accounts = (
            self._db.query(AccountORM)
            .filter(AccountORM.user_id == user_id)
            .order_by(AccountORM.name)
            .all()
        )
        return [self._to_domain(a) for a in orm_accounts]

    def list_by_category(self, category_id: str) -> list[Account]:
        orm_accounts = self._db.query(AccountORM).filter(AccountORM.category_id == category_id).all()
        return [self._to_domain(a) for a in orm_accounts]

    def update(self, account: Account) -> Account:
        """Update an existing account."""
        orm_account = self._db.query(AccountORM).filter(
            AccountORM.account_id == account.account_id
        ).first()
        if orm_account:
            orm_account.name = account.name
            orm_account.category_id = account.category_id
            orm_account.description = account.description
            orm_account.color = account.color
            self._db.commit()
            self._db.refresh(orm_account)
            return self._to_domain(orm_account)
        raise ValueError(f"Account not found: {account.account_id}")

    def delete(self, account_id: str) -> None:
        """Delete an account."""
        self._db.query(AccountORM).filter(AccountORM.account_id == account_id).delete()
        self._db.commit()

    def create_category(self, category: Category) -> Category:
        orm_category = CategoryORM(
            category_id=category.category_id,
            user_id=category.user_id,
            name=category.name,
            type=category.type,
            parent_id=category.parent_id,
            order=category.order,
            created_at=category.created_at,
        )
        self._db.add(orm_category)
        self._db.commit()
        self._db.refresh(orm_category)
        return self._category_to_domain(orm_category)

    def get_category(self, category_id: str) -> Optional[Category]:
        orm_category = self._db.query(CategoryORM).filter(
            CategoryORM.category_id == category_id
        ).first()
        return self._category_to_domain(orm_category) if orm_category else None

    def list_categories(self, user_id: str) -> list[Category]:
        orm_categories = (
            self._db.query(CategoryORM)
            .filter(CategoryORM.user_id == user_id)
            .order_by(CategoryORM.order, CategoryORM.name)
            .all()
        )
        return [self._category_to_domain(c) for c in orm_categories]

    def update_category(self, category: Category) -> Category:
        orm_category = self._db.query(CategoryORM).filter(
            CategoryORM.category_id == category.category_id
        ).first()
        if not orm_category:
            raise ValueError(f"Category not found: {category.category_id}")
        orm_category.name = category.name
        orm_category.type = category.type
        orm_category.parent_id = category.parent_id
        orm_category.order = category.order
        self._db.commit()
        self._db.refresh(orm_category)
        return self._category_to_domain(orm_category)

    def delete_category(self, category_id: str) -> None:
        self._db.query(CategoryORM).filter(CategoryORM.category_id == category_id).delete()
        self._db.commit()

    @staticmethod
    def _to_domain(orm: AccountORM) -> Account:
        """Convert ORM model to domain model."""
        return Account(
            account_id=orm.account_id,
            user_id=orm.user_id,
            category_id=orm.category_id,
            currency_id=orm.currency_id,
            name=orm.name,
            description=orm.description,
            color=orm.color,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    @staticmethod
    def _category_to_domain(orm: CategoryORM) -> Category:
        return Category(
            category_id=orm.category_id,
            user_id=orm.user_id,
            name=orm.name,
            type=orm.type,
            parent_id=orm.parent_id,
            order=orm.order,
            created_at=orm.created_at,
        )
