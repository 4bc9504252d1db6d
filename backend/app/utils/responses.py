# responses.py - Envelope JSON uniforme {success, data|error, message?, meta?}

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    data: Any,
    message: Optional[str] = None,
    meta: Optional[dict] = None,
    status_code: int = 200,
) -> JSONResponse:
    content: dict[str, Any] = {"success": True, "data": jsonable_encoder(data)}
    if message is not None:
        content["message"] = message
    if meta is not None:
        content["meta"] = meta
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})
