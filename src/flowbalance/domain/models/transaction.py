"""Transaction and Tag domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.domain.models.enums import TransactionType


@dataclass
class Tag:
    tag_id: str
    user_id: str
    name: str
    color: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)


@dataclass
class Transaction:
    """
    Ledger entry.

    - INCOME / EXPENSE: flow amounts on income and expense accounts
    - BALANCE: absolute balance snapshot on an asset or liability account
    - Generated entries point back to their recurring template or loan payment
    """

    txn_id: str
    user_id: str
    account_id: str
    category_id: str
    currency_id: str
    type: TransactionType
    amount: Decimal
    description: str
    date: datetime
    notes: Optional[str] = None
    tag_ids: list[str] = field(default_factory=list)
    recurring_transaction_id: Optional[str] = None
    loan_contract_id: Optional[str] = None
    loan_payment_id: Optional[str] = None
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.type, str):
            self.type = TransactionType(self.type)

    @property
    def is_generated(self) -> bool:
        return bool(self.recurring_transaction_id or self.loan_payment_id)
