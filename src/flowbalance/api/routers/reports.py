"""Report endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_report_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import BalanceSheetResponse, CashFlowResponse
from flowbalance.core.timezone import to_utc_naive
from flowbalance.domain.models import User
from flowbalance.services import ReportService

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/balance-sheet")
def balance_sheet(
    as_of: Optional[datetime] = Query(None, alias="asOf"),
    user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    """Assets, liabilities and net worth per currency, plus net worth in the base currency."""
    view = service.get_balance_sheet(user.user_id, to_utc_naive(as_of) if as_of else None)
    return success_response(BalanceSheetResponse.model_validate(view))


@router.get("/cash-flow")
def cash_flow(
    start_date: datetime = Query(..., alias="startDate"),
    end_date: datetime = Query(..., alias="endDate"),
    user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    view = service.get_cash_flow(user.user_id, to_utc_naive(start_date), to_utc_naive(end_date))
    return success_response(CashFlowResponse.model_validate(view))
