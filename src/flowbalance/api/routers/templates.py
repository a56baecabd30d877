"""Transaction template endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_template_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import TemplateCreateRequest, TemplateResponse, TemplateUpdateRequest
from flowbalance.domain.models import TransactionType, User
from flowbalance.services import TemplateCreate, TemplateService, TemplateUpdate

router = APIRouter(prefix="/api/transaction-templates", tags=["transaction-templates"])


@router.get("")
def list_templates(
    type: Optional[TransactionType] = Query(None),
    account_id: Optional[str] = Query(None, alias="accountId"),
    user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> JSONResponse:
    templates = service.list_templates(user.user_id, type=type, account_id=account_id)
    return success_response([TemplateResponse.model_validate(t) for t in templates])


@router.post("")
def create_template(
    data: TemplateCreateRequest,
    user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> JSONResponse:
    template = service.create_template(user.user_id, TemplateCreate(**data.model_dump()))
    return success_response(TemplateResponse.model_validate(template), status_code=201)


@router.get("/{template_id}")
def get_template(
    template_id: str,
    user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> JSONResponse:
    return success_response(TemplateResponse.model_validate(service.get_template(user.user_id, template_id)))


@router.put("/{template_id}")
def update_template(
    template_id: str,
    data: TemplateUpdateRequest,
    user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> JSONResponse:
    template = service.update_template(user.user_id, template_id, TemplateUpdate(**data.model_dump()))
    return success_response(TemplateResponse.model_validate(template))


@router.delete("/{template_id}")
def delete_template(
    template_id: str,
    user: User = Depends(get_current_user),
    service: TemplateService = Depends(get_template_service),
) -> JSONResponse:
    service.delete_template(user.user_id, template_id)
    return success_response({"message": "Transaction template deleted"})
