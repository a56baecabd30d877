"""Loan contract endpoints."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_loan_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import (
    LoanCalculationResponse,
    LoanContractCreateRequest,
    LoanContractResponse,
    LoanContractUpdateRequest,
    LoanPaymentResponse,
    LoanPreviewRequest,
    LoanResetRequest,
    LoanResetResponse,
)
from flowbalance.domain.models import User
from flowbalance.services import LoanContractCreate, LoanContractUpdate, LoanService

router = APIRouter(prefix="/api/loan-contracts", tags=["loans"])


@router.get("")
def list_contracts(
    active_only: bool = Query(False, alias="activeOnly"),
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    contracts = service.list_contracts(user.user_id, active_only)
    return success_response([LoanContractResponse.model_validate(c) for c in contracts])


@router.post("")
def create_contract(
    data: LoanContractCreateRequest,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    """Create a contract on a LIABILITY account and store its full schedule."""
    contract = service.create_contract(user.user_id, LoanContractCreate(**data.model_dump()))
    return success_response(LoanContractResponse.model_validate(contract), status_code=201)


@router.post("/preview")
def preview_contract(
    data: LoanPreviewRequest,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    calculation = service.preview(
        data.loan_amount,
        data.interest_rate,
        data.total_periods,
        data.repayment_type,
        start_date=data.start_date,
        payment_day=data.payment_day,
    )
    return success_response(LoanCalculationResponse.model_validate(calculation))


@router.get("/{contract_id}")
def get_contract(
    contract_id: str,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    return success_response(LoanContractResponse.model_validate(service.get_contract(user.user_id, contract_id)))


@router.get("/{contract_id}/schedule")
def get_schedule(
    contract_id: str,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    payments = service.get_schedule(user.user_id, contract_id)
    return success_response([LoanPaymentResponse.model_validate(p) for p in payments])


@router.put("/{contract_id}")
def update_contract(
    contract_id: str,
    data: LoanContractUpdateRequest,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    contract = service.update_contract(user.user_id, contract_id, LoanContractUpdate(**data.model_dump()))
    return success_response(LoanContractResponse.model_validate(contract))


@router.delete("/{contract_id}")
def delete_contract(
    contract_id: str,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    removed = service.delete_contract(user.user_id, contract_id)
    return success_response({"deletedTransactions": removed})


@router.post("/{contract_id}/reset-payments")
def reset_payments(
    contract_id: str,
    data: LoanResetRequest,
    user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> JSONResponse:
    """Revert completed payments to PENDING; all of them when paymentIds is omitted."""
    result = service.reset_payments(user.user_id, contract_id, data.payment_ids)
    return success_response(LoanResetResponse.model_validate(result))
