"""Account endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_account_service, get_current_user
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import (
    AccountBalanceResponse,
    AccountCreateRequest,
    AccountResponse,
    AccountUpdateRequest,
)
from flowbalance.core.timezone import to_utc_naive
from flowbalance.domain.models import CategoryType, User
from flowbalance.services import AccountCreate, AccountService, AccountUpdate

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc_naive(value) if value else None


@router.get("")
def list_accounts(
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    accounts = service.list_accounts(user.user_id)
    return success_response([AccountResponse.model_validate(a) for a in accounts])


@router.post("")
def create_account(
    data: AccountCreateRequest,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Create an account. The currency is fixed for the account's lifetime."""
    account = service.create_account(user.user_id, AccountCreate(**data.model_dump()))
    return success_response(AccountResponse.model_validate(account), status_code=201)


@router.get("/balances")
def list_account_balances(
    as_of: Optional[datetime] = Query(None, alias="asOf"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    type: Optional[list[CategoryType]] = Query(None),
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """
    Balances of all accounts, optionally filtered by category type.

    startDate only narrows flow accounts (period totals).
    """
    views = service.get_account_balances(
        user.user_id,
        as_of=_utc(as_of),
        start_date=_utc(start_date),
        category_types=type,
    )
    return success_response([AccountBalanceResponse.model_validate(v) for v in views])


@router.get("/{account_id}")
def get_account(
    account_id: str,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    return success_response(AccountResponse.model_validate(service.get_account(user.user_id, account_id)))


@router.put("/{account_id}")
def update_account(
    account_id: str,
    data: AccountUpdateRequest,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    account = service.update_account(user.user_id, account_id, AccountUpdate(**data.model_dump()))
    return success_response(AccountResponse.model_validate(account))


@router.delete("/{account_id}")
def delete_account(
    account_id: str,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Delete an account. Fails if account has transactions."""
    service.delete_account(user.user_id, account_id)
    return success_response({"message": "Account deleted"})


@router.get("/{account_id}/balance")
def get_account_balance(
    account_id: str,
    as_of: Optional[datetime] = Query(None, alias="asOf"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    view = service.get_account_balance(
        user.user_id, account_id, as_of=_utc(as_of), start_date=_utc(start_date)
    )
    return success_response(AccountBalanceResponse.model_validate(view))
