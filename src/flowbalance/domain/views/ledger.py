"""View models for the category tree and bulk ledger writes."""

from dataclasses import dataclass, field
from decimal import Decimal

from flowbalance.domain.models import Account, Category, Transaction


@dataclass
class CategoryNode:
    category: Category
    children: list["CategoryNode"] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)


@dataclass
class BatchItemError:
    index: int
    message: str


@dataclass
class BatchCreateResult:
    """Outcome of a best-effort batch create; valid items are kept."""

    total: int = 0
    created: list[Transaction] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)


@dataclass
class BalanceUpdateResult:
    """A balance snapshot written for one day, and how it changed the balance."""

    transaction: Transaction
    previous_balance: Decimal
    new_balance: Decimal
    balance_change: Decimal
    currency_code: str = ""
    is_update: bool = False
