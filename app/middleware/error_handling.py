"""
Error handling: domain exceptions, validation failures and unexpected errors
"""

import logging
import time
from typing import Any, Dict, Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.deps.exceptions import SessionServiceError

logger = logging.getLogger(__name__)

ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def get_correlation_id(request: Request) -> str:
    correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id or request.headers.get("X-Correlation-ID", "unknown")


def error_response(request: Request, status_code: int, message: Any, error_code: Optional[str] = None,
                   details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    """
    Build the JSON error body shared by every error path

    Args:
        request: Request being answered
        status_code: HTTP status code
        message: Human readable error
        error_code: Machine readable code; derived from the status when omitted
        details: Optional extra information

    Returns:
        JSON error response
    """
    content = {
        "error": message,
        "error_code": error_code or ERROR_CODES.get(status_code, "UNKNOWN_ERROR"),
        "status_code": status_code,
        "timestamp": int(time.time() * 1000),
        "path": request.url.path,
        "correlation_id": get_correlation_id(request),
    }
    if details:
        content["details"] = details
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def session_error_handler(request: Request, exc: SessionServiceError) -> JSONResponse:
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return error_response(request, exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(f"HTTP exception: {exc.status_code} - {exc.detail}")
    return error_response(request, exc.status_code, exc.detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.warning(f"Request validation failed on {request.url.path}: {len(errors)} error(s)")
    message = "Invalid request: " + "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in errors
    )
    return error_response(request, 422, message, details={"validation_errors": [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg")} for error in errors
    ]})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SessionServiceError, session_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catches anything the exception handlers did not, including store failures,
    and answers with a 500 error body
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except SessionServiceError as e:
            return await session_error_handler(request, e)
        except Exception as e:
            return self._handle_unexpected_exception(e, request)

    def _handle_unexpected_exception(self, exc: Exception, request: Request) -> JSONResponse:
        logger.error(f"Unexpected exception: {type(exc).__name__} - {str(exc)}", exc_info=True)

        details = None
        # Include error details in development mode
        if settings.debug:
            details = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc)
            }
        return error_response(request, 500, "Internal server error", "INTERNAL_ERROR", details)
