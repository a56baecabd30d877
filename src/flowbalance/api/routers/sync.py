"""Sync endpoints: status queries and background sync triggers."""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from flowbalance.api.deps import (
    get_current_user,
    get_exchange_rate_provider,
    get_sync_session_factory,
    get_sync_status_service,
    get_unified_sync_service,
    run_background_sync,
)
from flowbalance.api.responses import internal_error_response, success_response
from flowbalance.api.schemas import (
    NeedsSyncResponse,
    SyncStatusResponse,
    SyncSummaryResponse,
    SyncTriggerRequest,
    SyncTriggerResponse,
)
from flowbalance.core.exceptions import AppError
from flowbalance.domain.models import User
from flowbalance.providers import ExchangeRateProvider
from flowbalance.services import SyncStatusService, UnifiedSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.get("/check")
def check_sync(
    user: User = Depends(get_current_user),
    sync_status: SyncStatusService = Depends(get_sync_status_service),
) -> JSONResponse:
    try:
        return success_response(NeedsSyncResponse(needs_sync=sync_status.needs_sync(user.user_id)))
    except AppError:
        raise
    except Exception:
        logger.exception("Sync check failed")
        return internal_error_response()


@router.get("/status")
def get_status(
    user: User = Depends(get_current_user),
    sync_status: SyncStatusService = Depends(get_sync_status_service),
) -> JSONResponse:
    try:
        status = sync_status.get_sync_status(user.user_id)
        return success_response(SyncStatusResponse.model_validate(status))
    except AppError:
        raise
    except Exception:
        logger.exception("Failed to load sync status")
        return internal_error_response()


@router.get("/summary")
def get_summary(
    user: User = Depends(get_current_user),
    sync: UnifiedSyncService = Depends(get_unified_sync_service),
) -> JSONResponse:
    try:
        return success_response(SyncSummaryResponse.model_validate(sync.get_sync_summary(user.user_id)))
    except AppError:
        raise
    except Exception:
        logger.exception("Failed to load sync summary")
        return internal_error_response()


@router.post("/trigger")
def trigger_sync(
    background_tasks: BackgroundTasks,
    data: Optional[SyncTriggerRequest] = None,
    user: User = Depends(get_current_user),
    sync: UnifiedSyncService = Depends(get_unified_sync_service),
    session_factory: sessionmaker = Depends(get_sync_session_factory),
    provider: ExchangeRateProvider = Depends(get_exchange_rate_provider),
) -> JSONResponse:
    """Start a sync after the response is sent, unless one is not needed or running."""
    try:
        force = data.force if data else False
        result = sync.trigger_user_sync(
            user.user_id,
            force=force,
            schedule=lambda user_id: background_tasks.add_task(
                run_background_sync, session_factory, provider, user_id
            ),
        )
        return success_response(SyncTriggerResponse.model_validate(result))
    except AppError:
        raise
    except Exception:
        logger.exception("Sync trigger failed")
        return internal_error_response()


@router.post("/retry")
def retry_sync(
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    sync: UnifiedSyncService = Depends(get_unified_sync_service),
    session_factory: sessionmaker = Depends(get_sync_session_factory),
    provider: ExchangeRateProvider = Depends(get_exchange_rate_provider),
) -> JSONResponse:
    try:
        result = sync.retry_failed_sync(
            user.user_id,
            schedule=lambda user_id: background_tasks.add_task(
                run_background_sync, session_factory, provider, user_id
            ),
        )
        return success_response(SyncTriggerResponse.model_validate(result))
    except AppError:
        raise
    except Exception:
        logger.exception("Sync retry failed")
        return internal_error_response()
