"""Balance update endpoints for ASSET and LIABILITY accounts."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_account_service, get_currency_formatting_service, get_current_user
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import BalanceUpdateRequest, BalanceUpdateResponse, TransactionResponse
from flowbalance.core.exceptions import ValidationError
from flowbalance.domain.models import User
from flowbalance.services import AccountService, BalanceUpdate, CurrencyFormattingService

router = APIRouter(prefix="/api/balance-update", tags=["balance-update"])


@router.post("")
def update_balance(
    data: BalanceUpdateRequest,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
    formatter: CurrencyFormattingService = Depends(get_currency_formatting_service),
) -> JSONResponse:
    """Set the balance for a day; a manual snapshot already on that day is replaced."""
    result = service.update_balance(user.user_id, BalanceUpdate(**data.model_dump()))
    response = BalanceUpdateResponse(
        transaction=TransactionResponse.model_validate(result.transaction),
        previous_balance=result.previous_balance,
        new_balance=result.new_balance,
        balance_change=result.balance_change,
        is_update=result.is_update,
        formatted_balance=formatter.format_amount(result.new_balance, result.currency_code, user.user_id),
    )
    return success_response(response, status_code=200 if result.is_update else 201)


@router.get("")
def balance_history(
    account_id: Optional[str] = Query(None, alias="accountId"),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    if not account_id:
        raise ValidationError("accountId is required")
    history = service.get_balance_history(user.user_id, account_id, limit=limit)
    return success_response([TransactionResponse.model_validate(t) for t in history])
