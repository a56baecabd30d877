"""Category and Account domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from flowbalance.domain.models.enums import CategoryType


@dataclass
class Category:
    """
    Node in the user's category tree.

    Every category carries its root's type; children inherit it.
    """

    category_id: str
    user_id: str
    name: str
    type: CategoryType
    parent_id: Optional[str] = None
    order: int = 0
    created_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = CategoryType(self.type)


@dataclass
class Account:
    """A ledger account; its kind comes from its category."""

    account_id: str
    user_id: str
    category_id: str
    currency_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)
