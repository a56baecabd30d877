"""Exchange rate endpoints: manual rates, conversion and automatic updates."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import (
    get_currency_formatting_service,
    get_currency_repo,
    get_currency_service,
    get_current_user,
    get_exchange_rate_update_service,
)
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import (
    AutoUpdateRequest,
    ConversionResponse,
    ConvertRequest,
    ExchangeRateCreateRequest,
    ExchangeRateResponse,
    ExchangeRateUpdateRequest,
    ExchangeRateUpdateResponse,
    ExchangeRateUpdateStatusResponse,
)
from flowbalance.domain.models import ExchangeRate, ExchangeRateType, User
from flowbalance.repositories.protocols import CurrencyRepository
from flowbalance.services import CurrencyFormattingService, CurrencyService, ExchangeRateUpdateService

router = APIRouter(prefix="/api/exchange-rates", tags=["exchange-rates"])


def _rate_response(rate: ExchangeRate, codes: dict[str, str]) -> ExchangeRateResponse:
    return ExchangeRateResponse(
        rate_id=rate.rate_id,
        from_currency=codes.get(rate.from_currency_id, rate.from_currency_id),
        to_currency=codes.get(rate.to_currency_id, rate.to_currency_id),
        rate=rate.rate,
        effective_date=rate.effective_date,
        type=rate.type,
        source_rate_id=rate.source_rate_id,
        notes=rate.notes,
    )


def _code_map(currency_repo: CurrencyRepository, user_id: str) -> dict[str, str]:
    return {c.currency_id: c.code for c in currency_repo.list_available(user_id)}


@router.get("")
def list_exchange_rates(
    type: Optional[ExchangeRateType] = Query(None),
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
    currency_repo: CurrencyRepository = Depends(get_currency_repo),
) -> JSONResponse:
    rates = service.list_exchange_rates(user.user_id, type)
    codes = _code_map(currency_repo, user.user_id)
    return success_response([_rate_response(r, codes) for r in rates])


@router.post("")
def create_exchange_rate(
    data: ExchangeRateCreateRequest,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
    currency_repo: CurrencyRepository = Depends(get_currency_repo),
) -> JSONResponse:
    """Record a manual rate; reverse and transitive rates are regenerated."""
    rate = service.create_exchange_rate(
        user.user_id,
        data.from_currency,
        data.to_currency,
        data.rate,
        effective_date=data.effective_date,
        notes=data.notes,
    )
    return success_response(
        _rate_response(rate, _code_map(currency_repo, user.user_id)), status_code=201
    )


@router.post("/convert")
def convert(
    data: ConvertRequest,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
    formatter: CurrencyFormattingService = Depends(get_currency_formatting_service),
) -> JSONResponse:
    result = service.convert_currency(
        user.user_id, data.amount, data.from_currency, data.to_currency, data.as_of
    )
    response = ConversionResponse.model_validate(result)
    response.formatted_amount = formatter.format_amount(
        result.converted_amount, result.target_currency, user.user_id
    )
    return success_response(response)


@router.post("/auto-update")
def auto_update(
    data: Optional[AutoUpdateRequest] = None,
    user: User = Depends(get_current_user),
    updater: ExchangeRateUpdateService = Depends(get_exchange_rate_update_service),
) -> JSONResponse:
    """Fetch latest rates from the provider. Failures are reported in the payload."""
    result = updater.update_exchange_rates(user.user_id, force=data.force if data else False)
    return success_response(ExchangeRateUpdateResponse.model_validate(result))


@router.get("/auto-update/status")
def auto_update_status(
    user: User = Depends(get_current_user),
    updater: ExchangeRateUpdateService = Depends(get_exchange_rate_update_service),
) -> JSONResponse:
    status = updater.get_update_status(user.user_id)
    return success_response(ExchangeRateUpdateStatusResponse.model_validate(status))


@router.put("/{rate_id}")
def update_exchange_rate(
    rate_id: str,
    data: ExchangeRateUpdateRequest,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
    currency_repo: CurrencyRepository = Depends(get_currency_repo),
) -> JSONResponse:
    rate = service.update_exchange_rate(
        user.user_id, rate_id, rate=data.rate, effective_date=data.effective_date, notes=data.notes
    )
    return success_response(_rate_response(rate, _code_map(currency_repo, user.user_id)))


@router.delete("/{rate_id}")
def delete_exchange_rate(
    rate_id: str,
    user: User = Depends(get_current_user),
    service: CurrencyService = Depends(get_currency_service),
) -> JSONResponse:
    """Delete a manual rate together with the rates derived from it."""
    service.delete_exchange_rate(user.user_id, rate_id)
    return success_response({"message": "Exchange rate deleted"})
