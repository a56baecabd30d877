"""Transaction endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_current_user, get_transaction_service
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import (
    BatchItemErrorResponse,
    BatchSummaryResponse,
    TransactionBatchRequest,
    TransactionBatchResponse,
    TransactionCreateRequest,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdateRequest,
)
from flowbalance.core.timezone import to_utc_naive
from flowbalance.domain.models import TransactionType, User
from flowbalance.services import (
    TransactionCreate,
    TransactionQuery,
    TransactionService,
    TransactionUpdate,
)
from flowbalance.services.transaction_service import MAX_BATCH_SIZE

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("")
def list_transactions(
    account_id: Optional[str] = Query(None, alias="accountId"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    type: Optional[TransactionType] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    tag_id: Optional[str] = Query(None, alias="tagId"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200, alias="pageSize"),
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    """List transactions, newest first, with filters and pagination."""
    query = TransactionQuery(
        account_id=account_id,
        category_id=category_id,
        type=type,
        start_date=to_utc_naive(start_date) if start_date else None,
        end_date=to_utc_naive(end_date) if end_date else None,
        tag_id=tag_id,
        search=search,
        page=page,
        page_size=page_size,
    )
    items, total = service.list_transactions(user.user_id, query)
    return success_response(TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in items],
        total=total,
        page=page,
        page_size=page_size,
    ))


@router.post("")
def create_transaction(
    data: TransactionCreateRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    transaction = service.create_transaction(user.user_id, TransactionCreate(**data.model_dump()))
    return success_response(TransactionResponse.model_validate(transaction), status_code=201)


@router.get("/batch")
def batch_limits(user: User = Depends(get_current_user)) -> JSONResponse:
    """Limits a batch request is checked against."""
    return success_response({
        "maxBatchSize": MAX_BATCH_SIZE,
        "supportedTypes": [t.value for t in TransactionType],
    })


@router.post("/batch")
def create_batch(
    data: TransactionBatchRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    """Create up to MAX_BATCH_SIZE transactions; invalid items are reported, valid ones kept."""
    result = service.create_batch(
        user.user_id, [TransactionCreate(**item.model_dump()) for item in data.transactions]
    )
    status_code = 201 if result.created else 200
    return success_response(TransactionBatchResponse(
        created=[TransactionResponse.model_validate(t) for t in result.created],
        errors=[BatchItemErrorResponse.model_validate(e) for e in result.errors],
        summary=BatchSummaryResponse(
            total=result.total, created=len(result.created), failed=result.failed
        ),
    ), status_code=status_code)


@router.get("/{txn_id}")
def get_transaction(
    txn_id: str,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    return success_response(TransactionResponse.model_validate(service.get_transaction(user.user_id, txn_id)))


@router.put("/{txn_id}")
def update_transaction(
    txn_id: str,
    data: TransactionUpdateRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    transaction = service.update_transaction(user.user_id, txn_id, TransactionUpdate(**data.model_dump()))
    return success_response(TransactionResponse.model_validate(transaction))


@router.delete("/{txn_id}")
def delete_transaction(
    txn_id: str,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
) -> JSONResponse:
    service.delete_transaction(user.user_id, txn_id)
    return success_response({"message": "Transaction deleted"})
