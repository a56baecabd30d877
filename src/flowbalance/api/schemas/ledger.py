"""Pydantic schemas for categories, accounts, transactions and tags."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from flowbalance.api.schemas.common import ApiModel, UtcDateTime
from flowbalance.domain.models import CategoryType, TransactionType


class CategoryCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: Optional[CategoryType] = None
    parent_id: Optional[str] = None
    order: int = 0


class CategoryUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    order: Optional[int] = None


class CategoryMoveRequest(ApiModel):
    parent_id: Optional[str] = None


class CategoryResponse(ApiModel):
    category_id: str
    name: str
    type: CategoryType
    parent_id: Optional[str] = None
    order: int = 0


class AccountCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    category_id: str
    currency_code: str = Field(..., min_length=2, max_length=10)
    description: Optional[str] = None
    color: Optional[str] = None


class AccountUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category_id: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class AccountResponse(ApiModel):
    account_id: str
    name: str
    category_id: str
    currency_id: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[datetime] = None


class CategoryTreeNode(ApiModel):
    category: CategoryResponse
    accounts: list[AccountResponse] = []
    children: list["CategoryTreeNode"] = []


class AccountBalanceResponse(ApiModel):
    account_id: str
    name: str
    category_id: str
    category_type: CategoryType
    currency_code: str
    balance: Decimal


class TransactionCreateRequest(ApiModel):
    account_id: str
    type: TransactionType
    amount: Decimal
    description: str = Field(..., min_length=1, max_length=500)
    date: Optional[UtcDateTime] = None
    currency_code: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: list[str] = []


class TransactionUpdateRequest(ApiModel):
    amount: Optional[Decimal] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    date: Optional[UtcDateTime] = None
    notes: Optional[str] = None
    tag_ids: Optional[list[str]] = None


class TransactionResponse(ApiModel):
    txn_id: str
    account_id: str
    category_id: str
    currency_id: str
    type: TransactionType
    amount: Decimal
    description: str
    date: datetime
    notes: Optional[str] = None
    tag_ids: list[str] = []
    recurring_transaction_id: Optional[str] = None
    loan_contract_id: Optional[str] = None
    loan_payment_id: Optional[str] = None
    created_at: Optional[datetime] = None


class TransactionListResponse(ApiModel):
    items: list[TransactionResponse]
    total: int
    page: int
    page_size: int


class TagCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = None


class TagUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = None


class TagResponse(ApiModel):
    tag_id: str
    name: str
    color: Optional[str] = None


class TransactionBatchRequest(ApiModel):
    transactions: list[TransactionCreateRequest] = Field(..., min_length=1, max_length=100)


class BatchItemErrorResponse(ApiModel):
    index: int
    message: str


class BatchSummaryResponse(ApiModel):
    total: int
    created: int
    failed: int


class TransactionBatchResponse(ApiModel):
    created: list[TransactionResponse]
    errors: list[BatchItemErrorResponse] = []
    summary: BatchSummaryResponse


class BalanceUpdateRequest(ApiModel):
    account_id: str
    new_balance: Optional[Decimal] = None
    balance_change: Optional[Decimal] = None
    update_date: Optional[UtcDateTime] = None
    currency_code: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)


class BalanceUpdateResponse(ApiModel):
    transaction: TransactionResponse
    previous_balance: Decimal
    new_balance: Decimal
    balance_change: Decimal
    is_update: bool = False
    formatted_balance: Optional[str] = None


class TemplateCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    account_id: str
    type: TransactionType
    description: str = Field(..., min_length=1, max_length=500)
    currency_code: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: list[str] = []


class TemplateUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_id: Optional[str] = None
    type: Optional[TransactionType] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    currency_code: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: Optional[list[str]] = None


class TemplateResponse(ApiModel):
    template_id: str
    name: str
    account_id: str
    currency_id: str
    type: TransactionType
    description: str
    notes: Optional[str] = None
    tag_ids: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
