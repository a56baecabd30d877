"""Category tree endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_account_service, get_current_user
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import (
    CategoryCreateRequest,
    CategoryMoveRequest,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdateRequest,
)
from flowbalance.domain.models import User
from flowbalance.services import AccountService

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
def list_categories(
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    categories = service.list_categories(user.user_id)
    return success_response([CategoryResponse.model_validate(c) for c in categories])


@router.get("/tree")
def get_category_tree(
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Root categories with nested children and their accounts."""
    nodes = service.get_category_tree(user.user_id)
    return success_response([CategoryTreeNode.model_validate(n) for n in nodes])


@router.post("")
def create_category(
    data: CategoryCreateRequest,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    category = service.create_category(
        user.user_id,
        name=data.name,
        type=data.type,
        parent_id=data.parent_id,
        order=data.order,
    )
    return success_response(CategoryResponse.model_validate(category), status_code=201)


@router.get("/{category_id}")
def get_category(
    category_id: str,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    return success_response(CategoryResponse.model_validate(service.get_category(user.user_id, category_id)))


@router.put("/{category_id}")
def update_category(
    category_id: str,
    data: CategoryUpdateRequest,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    category = service.update_category(user.user_id, category_id, name=data.name, order=data.order)
    return success_response(CategoryResponse.model_validate(category))


@router.put("/{category_id}/move")
def move_category(
    category_id: str,
    data: CategoryMoveRequest,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Re-parent a category; a null parentId makes it a root."""
    category = service.move_category(user.user_id, category_id, data.parent_id)
    return success_response(CategoryResponse.model_validate(category))


@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Delete an empty category. Fails if it has subcategories or accounts."""
    service.delete_category(user.user_id, category_id)
    return success_response({"message": "Category deleted"})
