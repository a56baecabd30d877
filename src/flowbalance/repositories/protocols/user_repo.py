"""User repository protocol."""

from typing import Protocol, Optional

from flowbalance.domain.models import User, UserSettings


class UserRepository(Protocol):
    """Interface for user and user settings data access."""

    def create(self, user: User) -> User:
        """Persist a new user."""
        ...

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Retrieve user by ID."""
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        """Retrieve user by email (case-insensitive)."""
        ...

    def list_all(self) -> list[User]:
        ...

    def update(self, user: User) -> User:
        ...

    def get_settings(self, user_id: str) -> Optional[UserSettings]:
        """Retrieve settings for a user, if any."""
        ...

    def create_settings(self, settings: UserSettings) -> UserSettings:
        ...

    def update_settings(self, settings: UserSettings) -> UserSettings:
        ...

    def list_settings(self) -> list[UserSettings]:
        """List settings of every user."""
        ...
