# errors.py - Taxonomía de errores y manejadores de excepción
# Cada error lleva su code y status_code; el handler nunca inspecciona el mensaje.

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.utils.responses import error_response

logger = logging.getLogger(__name__)


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    """Entrada mal formada, incompleta o fuera de rango (incluye ids inválidos)."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class DuplicateError(AppError):
    """Email ya registrado, detectado por el pre-check o por la restricción UNIQUE."""

    code = "DUPLICATE_EMAIL"
    status_code = 409


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    status_code = 500


_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _endpoint(request: Request) -> str:
    return f"{request.method} {request.url.path}"


def _field_errors(exc: RequestValidationError) -> list[dict]:
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        if err.get("type") == "json_invalid":
            details.append({"field": "body", "message": "Request body must be valid JSON"})
            continue
        details.append({
            "field": ".".join(loc) or "body",
            "message": str(err.get("msg", "Invalid value")).removeprefix("Value error, "),
        })
    return details


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"❌ {_endpoint(request)} -> {exc.code}: {exc.message} ({exc.details})")
            # Nunca exponer el detalle interno al cliente
            return error_response(exc.status_code, exc.code, exc.message)

        logger.warning(f"⚠️ {_endpoint(request)} -> {exc.code}: {exc.message} ({exc.details})")
        return error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = _field_errors(exc)
        logger.warning(f"⚠️ {_endpoint(request)} -> VALIDATION_ERROR: {details}")
        return error_response(400, ValidationError.code, "Invalid input data", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        response = error_response(exc.status_code, code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"❌ Unhandled error on {_endpoint(request)}: {type(exc).__name__}")
        return error_response(500, InternalError.code, "Internal server error")
