"""Tag endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_transaction_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import TagCreateRequest, TagResponse, TagUpdateRequest
from flowbalance.domain.models import User
from flowbalance.services import TransactionService

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("")
def list_tags(
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    return success_response([TagResponse.model_validate(t) for t in service.list_tags(user.user_id)])


@router.post("")
def create_tag(
    data: TagCreateRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    tag = service.create_tag(user.user_id, data.name, data.color)
    return success_response(TagResponse.model_validate(tag), status_code=201)


@router.put("/{tag_id}")
def update_tag(
    tag_id: str,
    data: TagUpdateRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    tag = service.update_tag(user.user_id, tag_id, name=data.name, color=data.color)
    return success_response(TagResponse.model_validate(tag))


@router.delete("/{tag_id}")
def delete_tag(
    tag_id: str,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    """Delete a tag; transactions keep their other tags."""
    service.delete_tag(user.user_id, tag_id)
    return success_response({"message": "Tag deleted"})
