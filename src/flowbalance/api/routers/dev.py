"""Development-only diagnostics."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from flowbalance.api.responses import internal_error_response, success_response
from flowbalance.config.settings import get_settings
from flowbalance.core.cache import cache_report
from flowbalance.core.exceptions import ForbiddenError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dev", tags=["dev"])


@router.get("/cache-analysis")
def cache_analysis() -> JSONResponse:
    """Hit/miss statistics of the in-process caches."""
    settings = get_settings()
    if not settings.is_development:
        raise ForbiddenError("This endpoint is only available in development")
    try:
        report = cache_report()
        report["environment"] = settings.environment
        return success_response(report)
    except Exception:
        logger.exception("Cache analysis failed")
        return internal_error_response()
