"""Currency catalog and per-user currency selection endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_currency_service, get_current_user
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import CurrencyResponse, CustomCurrencyRequest, UserCurrencyRequest
from flowbalance.domain.models import User
from flowbalance.services import CurrencyService

router = APIRouter(prefix="/api", tags=["currencies"])


@router.get("/currencies")
def list_currencies(
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
) -> JSONResponse:
    """Global currencies plus the caller's custom ones."""
    currencies = service.list_available_currencies(user.user_id)
    return success_response([CurrencyResponse.model_validate(c) for c in currencies])


@router.post("/currencies")
def create_custom_currency(
    data: CustomCurrencyRequest,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
) -> JSONResponse:
    currency = service.create_custom_currency(
        user.user_id, data.code, data.name, data.symbol, data.decimal_places
    )
    return success_response(CurrencyResponse.model_validate(currency), status_code=201)


@router.get("/user/currencies")
def list_user_currencies(
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
) -> JSONResponse:
    currencies = service.list_user_currencies(user.user_id)
    return success_response([CurrencyResponse.model_validate(c) for c in currencies])


@router.post("/user/currencies")
def add_user_currency(
    data: UserCurrencyRequest,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
) -> JSONResponse:
    """Activate a currency for the user and derive the rates it enables."""
    currency = service.add_user_currency(user.user_id, data.code)
    return success_response(CurrencyResponse.model_validate(currency), status_code=201)


@router.delete("/user/currencies/{code}")
def remove_user_currency(
    code: str,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
) -> JSONResponse:
    service.remove_user_currency(user.user_id, code)
    return success_response({"message": f"Currency {code.upper()} removed"})
