"""Pydantic schemas for API request/response."""

from flowbalance.api.schemas.common import ApiModel, UtcDateTime
from flowbalance.api.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    UserResponse,
    SettingsResponse,
    MeResponse,
    SettingsUpdateRequest,
    ChangePasswordRequest,
)
from flowbalance.api.schemas.ledger import (
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CategoryMoveRequest,
    CategoryResponse,
    CategoryTreeNode,
    AccountCreateRequest,
    AccountUpdateRequest,
    AccountResponse,
    AccountBalanceResponse,
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransactionResponse,
    TransactionListResponse,
    TagCreateRequest,
    TagUpdateRequest,
    TagResponse,
    TransactionBatchRequest,
    BatchItemErrorResponse,
    BatchSummaryResponse,
    TransactionBatchResponse,
    BalanceUpdateRequest,
    BalanceUpdateResponse,
    TemplateCreateRequest,
    TemplateUpdateRequest,
    TemplateResponse,
)
from flowbalance.api.schemas.backup import DataImportRequest, DataImportResponse, ImportStatisticsResponse
from flowbalance.api.schemas.currency import (
    CurrencyResponse,
    CustomCurrencyRequest,
    UserCurrencyRequest,
    ExchangeRateCreateRequest,
    ExchangeRateUpdateRequest,
    ExchangeRateResponse,
    ConvertRequest,
    ConversionResponse,
    AutoUpdateRequest,
    ExchangeRateUpdateResponse,
    ExchangeRateUpdateStatusResponse,
)
from flowbalance.api.schemas.schedule import (
    RecurringCreateRequest,
    RecurringUpdateRequest,
    RecurringResponse,
    LoanContractCreateRequest,
    LoanContractUpdateRequest,
    LoanContractResponse,
    LoanPaymentResponse,
    LoanPreviewRequest,
    LoanResetRequest,
    LoanResetResponse,
    LoanScheduleItemResponse,
    LoanCalculationResponse,
)
from flowbalance.api.schemas.reports import BalanceSheetResponse, CashFlowResponse
from flowbalance.api.schemas.sync import (
    NeedsSyncResponse,
    SyncStatusResponse,
    FutureDataStatsResponse,
    ProcessingLogResponse,
    SyncSummaryResponse,
    SyncTriggerRequest,
    SyncTriggerResponse,
)

__all__ = [
    "DataImportRequest",
    "DataImportResponse",
    "ImportStatisticsResponse",
    "ApiModel",
    "UtcDateTime",
    "RegisterRequest",
    "LoginRequest",
    "UserResponse",
    "SettingsResponse",
    "MeResponse",
    "SettingsUpdateRequest",
    "ChangePasswordRequest",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "CategoryMoveRequest",
    "CategoryResponse",
    "CategoryTreeNode",
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "AccountResponse",
    "AccountBalanceResponse",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "TransactionResponse",
    "TransactionListResponse",
    "TagCreateRequest",
    "TagUpdateRequest",
    "TagResponse",
    "TransactionBatchRequest",
    "BatchItemErrorResponse",
    "BatchSummaryResponse",
    "TransactionBatchResponse",
    "BalanceUpdateRequest",
    "BalanceUpdateResponse",
    "TemplateCreateRequest",
    "TemplateUpdateRequest",
    "TemplateResponse",
    "CurrencyResponse",
    "CustomCurrencyRequest",
    "UserCurrencyRequest",
    "ExchangeRateCreateRequest",
    "ExchangeRateUpdateRequest",
    "ExchangeRateResponse",
    "ConvertRequest",
    "ConversionResponse",
    "AutoUpdateRequest",
    "ExchangeRateUpdateResponse",
    "ExchangeRateUpdateStatusResponse",
    "RecurringCreateRequest",
    "RecurringUpdateRequest",
    "RecurringResponse",
    "LoanContractCreateRequest",
    "LoanContractUpdateRequest",
    "LoanContractResponse",
    "LoanPaymentResponse",
    "LoanPreviewRequest",
    "LoanResetRequest",
    "LoanResetResponse",
    "LoanScheduleItemResponse",
    "LoanCalculationResponse",
    "BalanceSheetResponse",
    "CashFlowResponse",
    "NeedsSyncResponse",
    "SyncStatusResponse",
    "FutureDataStatsResponse",
    "ProcessingLogResponse",
    "SyncSummaryResponse",
    "SyncTriggerRequest",
    "SyncTriggerResponse",
]
