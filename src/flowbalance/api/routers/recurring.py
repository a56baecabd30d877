"""Recurring transaction template endpoints."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_recurring_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import (
    RecurringCreateRequest,
    RecurringResponse,
    RecurringUpdateRequest,
)
from flowbalance.domain.models import User
from flowbalance.services import RecurringCreate, RecurringService, RecurringUpdate

router = APIRouter(prefix="/api/recurring-transactions", tags=["recurring"])


@router.get("")
def list_recurring(
    active_only: bool = Query(False, alias="activeOnly"),
    user: User = Depends(get_current_user),
    service: RecurringService = Depends(get_recurring_service),
) -> JSONResponse:
    templates = service.list_recurring(user.user_id, active_only)
    return success_response([RecurringResponse.model_validate(r) for r in templates])


@router.post("")
def create_recurring(
    data: RecurringCreateRequest,
    user: User = Depends(get_current_user),
    service: RecurringService = Depends(get_recurring_service),
) -> JSONResponse:
    """
    Create a template. Transactions are generated by the next sync,
    not at creation time.
    """
    recurring = service.create_recurring(user.user_id, RecurringCreate(**data.model_dump()))
    return success_response(RecurringResponse.model_validate(recurring), status_code=201)


@router.get("/{recurring_id}")
def get_recurring(
    recurring_id: str,
    user: User = Depends(get_current_user),
    service: RecurringService = Depends(get_recurring_service),
) -> JSONResponse:
    return success_response(RecurringResponse.model_validate(service.get_recurring(user.user_id, recurring_id)))


@router.put("/{recurring_id}")
def update_recurring(
    recurring_id: str,
    data: RecurringUpdateRequest,
    user: User = Depends(get_current_user),
    service: RecurringService = Depends(get_recurring_service),
) -> JSONResponse:
    recurring = service.update_recurring(user.user_id, recurring_id, RecurringUpdate(**data.model_dump()))
    return success_response(RecurringResponse.model_validate(recurring))


@router.delete("/{recurring_id}")
def delete_recurring(
    recurring_id: str,
    delete_future: bool = Query(True, alias="deleteFuture"),
    user: User = Depends(get_current_user),
    service: RecurringService = Depends(get_recurring_service),
) -> JSONResponse:
    removed = service.delete_recurring(user.user_id, recurring_id, delete_future)
    return success_response({"deletedTransactions": removed})
