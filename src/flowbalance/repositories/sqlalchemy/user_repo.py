"""SQLAlchemy implementation of UserRepository."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from flowbalance.domain.models import User, UserSettings
from flowbalance.repositories.sqlalchemy.orm_models import UserORM, UserSettingsORM

# Settings columns copied verbatim between domain and ORM objects
_SETTINGS_FIELDS = (
    "base_currency_id",
    "date_format",
    "language",
    "theme",
    "fire_enabled",
    "fire_swr",
    "future_data_days",
    "auto_update_exchange_rates",
    "last_exchange_rate_update",
    "last_recurring_sync",
    "recurring_processing_status",
)


class SqlAlchemyUserRepository:
    """SQLAlchemy-backed user repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, user: User) -> User:
        """Persist a new user."""
        orm_user = UserORM(
            user_id=user.user_id,
            email=user.email,
            password_hash=user.password_hash,
            name=user.name,
            created_at=user.created_at,
        )
        self._db.add(orm_user)
        self._db.commit()
        self._db.refresh(orm_user)
        return self._to_domain(orm_user)

    def get_by_id(self, user_id: str) -> Optional[User]:
        orm_user = self._db.query(UserORM).filter(UserORM.user_id == user_id).first()
        return self._to_domain(orm_user) if orm_user else None

    def get_by_email(self, email: str) -> Optional[User]:
        orm_user = self._db.query(UserORM).filter(
            func.lower(UserORM.email) == email.strip().lower()
        ).first()
        return self._to_domain(orm_user) if orm_user else None

    def list_all(self) -> list[User]:
        return [self._to_domain(u) for u in self._db.query(UserORM).order_by(UserORM.created_at).all()]

    def update(self, user: User) -> User:
        orm_user = self._db.query(UserORM).filter(UserORM.user_id == user.user_id).first()
        if not orm_user:
            raise ValueError(f"User not found: {user.user_id}")
        orm_user.email = user.email
        orm_user.name = user.name
        orm_user.password_hash = user.password_hash
        self._db.commit()
        self._db.refresh(orm_user)
        return self._to_domain(orm_user)

    def get_settings(self, user_id: str) -> Optional[UserSettings]:
        orm_settings = self._db.query(UserSettingsORM).filter(
            UserSettingsORM.user_id == user_id
        ).first()
        return self._settings_to_domain(orm_settings) if orm_settings else None

    def create_settings(self, settings: UserSettings) -> UserSettings:
        orm_settings = UserSettingsORM(settings_id=settings.settings_id, user_id=settings.user_id)
        for name in _SETTINGS_FIELDS:
            setattr(orm_settings, name, getattr(settings, name))
        self._db.add(orm_settings)
        self._db.commit()
        self._db.refresh(orm_settings)
        return self._settings_to_domain(orm_settings)

    def update_settings(self, settings: UserSettings) -> UserSettings:
        orm_settings = self._db.query(UserSettingsORM).filter(
            UserSettingsORM.user_id == settings.user_id
        ).first()
        if not orm_settings:
            raise ValueError(f"Settings not found for user: {settings.user_id}")
        for name in _SETTINGS_FIELDS:
            setattr(orm_settings, name, getattr(settings, name))
        self._db.commit()
        self._db.refresh(orm_settings)
        return self._settings_to_domain(orm_settings)

    def list_settings(self) -> list[UserSettings]:
        return [self._settings_to_domain(s) for s in self._db.query(UserSettingsORM).all()]

    @staticmethod
    def _to_domain(orm: UserORM) -> User:
        """Convert ORM model to domain model."""
        return User(
            user_id=orm.user_id,
            email=orm.email,
            password_hash=orm.password_hash,
            name=orm.name,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    @staticmethod
    def _settings_to_domain(orm: UserSettingsORM) -> UserSettings:
        return UserSettings(
            settings_id=orm.settings_id,
            user_id=orm.user_id,
            base_currency_id=orm.base_currency_id,
            date_format=orm.date_format,
            language=orm.language,
            theme=orm.theme,
            fire_enabled=bool(orm.fire_enabled),
            fire_swr=Decimal(str(orm.fire_swr)) if orm.fire_swr is not None else Decimal("4.0"),
            future_data_days=orm.future_data_days,
            auto_update_exchange_rates=orm.auto_update_exchange_rates,
            last_exchange_rate_update=orm.last_exchange_rate_update,
            last_recurring_sync=orm.last_recurring_sync,
            recurring_processing_status=orm.recurring_processing_status,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
