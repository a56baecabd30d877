"""View models for service outputs."""

from flowbalance.domain.views.sync import (
    SyncStatusView,
    FutureDataStats,
    SyncSummary,
    SyncTriggerResult,
    ProcessingResult,
    GenerationResult,
    SystemSyncStats,
    SystemSyncResult,
    MaintenanceResult,
)
from flowbalance.domain.views.exchange import (
    RateSnapshot,
    ConversionResult,
    AutoGenerationResult,
    ExchangeRateUpdateResult,
    ExchangeRateUpdateStatus,
)
from flowbalance.domain.views.loan import LoanScheduleItem, LoanCalculation, LoanResetResult
from flowbalance.domain.views.ledger import (
    CategoryNode,
    BatchItemError,
    BatchCreateResult,
    BalanceUpdateResult,
)
from flowbalance.domain.views.backup import ImportStatistics, ImportSummary
from flowbalance.domain.views.reports import AccountBalanceView, BalanceSheetView, CashFlowView

__all__ = [
    "SyncStatusView",
    "FutureDataStats",
    "SyncSummary",
    "SyncTriggerResult",
    "ProcessingResult",
    "GenerationResult",
    "SystemSyncStats",
    "SystemSyncResult",
    "MaintenanceResult",
    "RateSnapshot",
    "ConversionResult",
    "AutoGenerationResult",
    "ExchangeRateUpdateResult",
    "ExchangeRateUpdateStatus",
    "CategoryNode",
    "BatchItemError",
    "BatchCreateResult",
    "BalanceUpdateResult",
    "LoanScheduleItem",
    "LoanCalculation",
    "LoanResetResult",
    "ImportStatistics",
    "ImportSummary",
    "AccountBalanceView",
    "BalanceSheetView",
    "CashFlowView",
]
