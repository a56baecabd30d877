"""User data export and import endpoints."""

import json

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from flowbalance.api.deps import get_current_user, get_data_exporter, get_data_importer
from flowbalance.api.responses import success_response
from flowbalance.api.schemas import DataImportRequest, DataImportResponse
from flowbalance.backup import DataExporter, DataImporter
from flowbalance.domain.models import User

router = APIRouter(prefix="/api/user/data", tags=["data"])


@router.get("/export")
def export_data(
    user: User = Depends(get_current_user),
    exporter: DataExporter = Depends(get_data_exporter),
) -> Response:
    """Download everything the user owns as a JSON attachment."""
    document = exporter.export_data(user.user_id)
    filename = f"flow-balance-export-{document['exportInfo']['exportDate'][:10]}.json"
    return Response(
        content=json.dumps(document, ensure_ascii=False, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
def import_data(
    data: DataImportRequest,
    user: User = Depends(get_current_user),
    importer: DataImporter = Depends(get_data_importer),
) -> JSONResponse:
    """Best-effort import: valid records go in even when some fail."""
    summary = importer.import_data(user.user_id, data.data, skip_duplicates=data.skip_duplicates)
    return success_response(DataImportResponse(
        success=summary.success,
        message=summary.message,
        statistics=summary.statistics,
        errors=summary.errors,
        warnings=summary.warnings,
    ), status_code=201)
