"""JSON envelope used by every endpoint."""

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def ok(data: Any = None, status_code: int = 200, message: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"success": True, "data": jsonable_encoder(data, by_alias=True)}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})
