"""User settings endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_currency_repo, get_settings_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import SettingsResponse, SettingsUpdateRequest
from flowbalance.domain.models import User, UserSettings
from flowbalance.repositories.protocols import CurrencyRepository
from flowbalance.services import SettingsService, SettingsUpdate

router = APIRouter(prefix="/api/user/settings", tags=["settings"])


def settings_response(settings: UserSettings, currency_repo: CurrencyRepository) -> SettingsResponse:
    base = currency_repo.get_by_id(settings.base_currency_id) if settings.base_currency_id else None
    response = SettingsResponse.model_validate(settings)
    response.base_currency_code = base.code if base else None
    return response


@router.get("")
def get_user_settings(
    user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
    currency_repo: CurrencyRepository = Depends(get_currency_repo),
) -> JSONResponse:
    return success_response(settings_response(service.get_settings(user.user_id), currency_repo))


@router.put("")
def update_user_settings(
    data: SettingsUpdateRequest,
    user: User = Depends(get_current_user),
    service: SettingsService = Depends(get_settings_service),
    currency_repo: CurrencyRepository = Depends(get_currency_repo),
) -> JSONResponse:
    """Partial update; fields left out are unchanged."""
    settings = service.update_settings(user.user_id, SettingsUpdate(**data.model_dump()))
    return success_response(settings_response(settings, currency_repo))
