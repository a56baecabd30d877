"""Response envelope helpers: {success, data?, error?, details?}."""

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

INTERNAL_ERROR = "Internal server error"


def success_response(data: Any = None, status_code: int = 200) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = jsonable_encoder(data, by_alias=True)
    return JSONResponse(status_code=status_code, content=content)


def error_response(message: str, status_code: int = 400, details: Optional[Any] = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": message}
    if details is not None:
        content["details"] = jsonable_encoder(details, by_alias=True)
    return JSONResponse(status_code=status_code, content=content)


def internal_error_response() -> JSONResponse:
    return error_response(INTERNAL_ERROR, 500)
