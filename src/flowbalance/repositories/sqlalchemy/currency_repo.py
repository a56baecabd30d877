"""SQLAlchemy implementation of CurrencyRepository."""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from flowbalance.domain.models import Currency, UserCurrency
from flowbalance.repositories.sqlalchemy.orm_models import CurrencyORM, UserCurrencyORM


class SqlAlchemyCurrencyRepository:
    """SQLAlchemy-backed currency repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, currency: Currency) -> Currency:
        orm_currency = CurrencyORM(
            currency_id=currency.currency_id,
            code=currency.code,
            name=currency.name,
            symbol=currency.symbol,
            decimal_places=currency.decimal_places,
            is_custom=currency.is_custom,
            created_by=currency.created_by,
        )
        self._db.add(orm_currency)
        self._db.commit()
        self._db.refresh(orm_currency)
        return self._to_domain(orm_currency)

    def get_by_id(self, currency_id: str) -> Optional[Currency]:
        orm_currency = self._db.query(CurrencyORM).filter(
            CurrencyORM.currency_id == currency_id
        ).first()
        return self._to_domain(orm_currency) if orm_currency else None

    def get_by_code(self, code: str, user_id: Optional[str] = None) -> Optional[Currency]:
        """Find a currency by code; a user's custom currency wins over the global one."""
        code = code.upper()
        if user_id:
            custom = self._db.query(CurrencyORM).filter(
                CurrencyORM.code == code,
                CurrencyORM.created_by == user_id,
            ).first()
            if custom:
                return self._to_domain(custom)
        orm_currency = self._db.query(CurrencyORM).filter(
            CurrencyORM.code == code,
            CurrencyORM.created_by.is_(None),
        ).first()
        return self._to_domain(orm_currency) if orm_currency else None

    def list_available(self, user_id: Optional[str] = None) -> list[Currency]:
        query = self._db.query(CurrencyORM)
        if user_id:
            query = query.filter(or_(CurrencyORM.created_by.is_(None), CurrencyORM.created_by == user_id))
        else:
            query = query.filter(CurrencyORM.created_by.is_(None))
        return [self._to_domain(c) for c in query.order_by(CurrencyORM.code).all()]

    def delete(self, currency_id: str) -> None:
        self._db.query(CurrencyORM).filter(CurrencyORM.currency_id == currency_id).delete()
        self._db.commit()

    def add_user_currency(self, user_currency: UserCurrency) -> UserCurrency:
        orm_uc = UserCurrencyORM(
            user_currency_id=user_currency.user_currency_id,
            user_id=user_currency.user_id,
            currency_id=user_currency.currency_id,
            is_active=user_currency.is_active,
            order=user_currency.order,
        )
        self._db.add(orm_uc)
        self._db.commit()
        self._db.refresh(orm_uc)
        return self._user_currency_to_domain(orm_uc)

    def get_user_currency(self, user_id: str, currency_id: str) -> Optional[UserCurrency]:
        orm_uc = self._db.query(UserCurrencyORM).filter(
            UserCurrencyORM.user_id == user_id,
            UserCurrencyORM.currency_id == currency_id,
        ).first()
        return self._user_currency_to_domain(orm_uc) if orm_uc else None

    def list_user_currencies(self, user_id: str, active_only: bool = True) -> list[UserCurrency]:
        query = self._db.query(UserCurrencyORM).filter(UserCurrencyORM.user_id == user_id)
        if active_only:
            query = query.filter(UserCurrencyORM.is_active == True)  # noqa: E712
        query = query.order_by(UserCurrencyORM.order)
        return [self._user_currency_to_domain(uc) for uc in query.all()]

    def update_user_currency(self, user_currency: UserCurrency) -> UserCurrency:
        orm_uc = self._db.query(UserCurrencyORM).filter(
            UserCurrencyORM.user_id == user_currency.user_id,
            UserCurrencyORM.currency_id == user_currency.currency_id,
        ).first()
        if not orm_uc:
            raise ValueError(f"User currency not found: {user_currency.currency_id}")
        orm_uc.is_active = user_currency.is_active
        orm_uc.order = user_currency.order
        self._db.commit()
        self._db.refresh(orm_uc)
        return self._user_currency_to_domain(orm_uc)

    @staticmethod
    def _to_domain(orm: CurrencyORM) -> Currency:
        """Convert ORM model to domain model."""
        return Currency(
            currency_id=orm.currency_id,
            code=orm.code,
            name=orm.name,
            symbol=orm.symbol,
            decimal_places=orm.decimal_places,
            is_custom=orm.is_custom,
            created_by=orm.created_by,
        )

    @staticmethod
    def _user_currency_to_domain(orm: UserCurrencyORM) -> UserCurrency:
        return UserCurrency(
            user_currency_id=orm.user_currency_id,
            user_id=orm.user_id,
            currency_id=orm.currency_id,
            is_active=orm.is_active,
            order=orm.order,
        )
