"""Transaction template repository protocol."""

from typing import Protocol, Optional

from flowbalance.domain.models import TransactionTemplate, TransactionType


class TransactionTemplateRepository(Protocol):
    """Interface for saved transaction templates."""

    def create(self, template: TransactionTemplate) -> TransactionTemplate:
        ...

    def get_by_id(self, template_id: str) -> Optional[TransactionTemplate]:
        ...

    def get_by_name(self, user_id: str, name: str) -> Optional[TransactionTemplate]:
        ...

    def list_by_user(
        self,
        user_id: str,
        type: Optional[TransactionType] = None,
        account_id: Optional[str] = None,
    ) -> list[TransactionTemplate]:
        """List templates, most recently updated first."""
        ...

    def update(self, template: TransactionTemplate) -> TransactionTemplate:
        ...

    def delete(self, template_id: str) -> None:
        ...
