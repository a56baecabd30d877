"""Pydantic schemas for data export and import."""

from typing import Any

from flowbalance.api.schemas.common import ApiModel


class DataImportRequest(ApiModel):
    data: dict[str, Any]
    skip_duplicates: bool = False


class ImportStatisticsResponse(ApiModel):
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0


class DataImportResponse(ApiModel):
    success: bool
    message: str
    statistics: ImportStatisticsResponse
    errors: list[str] = []
    warnings: list[str] = []
