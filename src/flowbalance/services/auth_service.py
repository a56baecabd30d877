"""Authentication service: registration, login and token resolution."""

import logging
import uuid
from typing import Callable, Optional

from flowbalance.config.settings import get_settings
from flowbalance.core import security
from flowbalance.core.exceptions import AuthenticationError, ConflictError, ValidationError
from flowbalance.core.timezone import now_utc
from flowbalance.domain.models import User, UserSettings
from flowbalance.repositories.protocols import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: Optional[str]) -> str:
    """Emails are matched case-insensitively."""
    return (email or "").strip().lower()


class AuthService:
    """
    Service for user accounts and session tokens.

    Tokens are stateless JWTs; logging out only drops the cookie.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        clock: Callable = now_utc,
    ):
        self._user_repo = user_repo
        self._clock = clock

    def register(self, email: str, password: str, name: Optional[str] = None) -> User:
        """
        Create a user with default settings.

        Raises ValidationError for a malformed email or weak password and
        ConflictError when the email is already registered.
        """
        email = normalize_email(email)
        if not security.is_valid_email(email):
            raise ValidationError("Invalid email format")
        problems = security.password_problems(password)
        if problems:
            raise ValidationError(problems[0])
        if self._user_repo.get_by_email(email):
            raise ConflictError("Email is already registered")

        now = self._clock()
        user = self._user_repo.create(User(
            user_id=str(uuid.uuid4()),
            email=email,
            password_hash=security.hash_password(password),
            name=(name or email.split("@")[0]).strip(),
            created_at=now,
        ))
        self._user_repo.create_settings(UserSettings(
            settings_id=str(uuid.uuid4()),
            user_id=user.user_id,
            date_format="YYYY-MM-DD",
            future_data_days=get_settings().default_future_data_days,
        ))
        logger.info("Registered user %s", user.user_id)
        return user

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Verify credentials and return the user with a fresh token."""
        user = self._user_repo.get_by_email(normalize_email(email))
        # Same message for unknown email and wrong password
        if not user or not security.verify_password(password or "", user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)
        token = security.create_access_token(user.user_id, user.email)
        return user, token

    def issue_token(self, user: User) -> str:
        return security.create_access_token(user.user_id, user.email)

    def get_user_from_token(self, token: Optional[str]) -> Optional[User]:
        """Resolve a token to its user; None for missing, invalid or stale tokens."""
        if not token:
            return None
        payload = security.decode_access_token(token)
        if not payload:
            return None
        user_id = payload.get("userId")
        if not user_id:
            return None
        return self._user_repo.get_by_id(user_id)

    def get_user_settings(self, user_id: str) -> Optional[UserSettings]:
        return self._user_repo.get_settings(user_id)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self._user_repo.get_by_id(user_id)
        if not user or not security.verify_password(current_password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS)
        problems = security.password_problems(new_password)
        if problems:
            raise ValidationError(problems[0])
        user.password_hash = security.hash_password(new_password)
        self._user_repo.update(user)
