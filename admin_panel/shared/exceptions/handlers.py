"""
Exception handlers registered on the FastAPI application.

Every handler renders the standard error envelope and logs one line tagged
with the request id. Status codes:

- ValidationError (local input rules)       -> 422
- AdminPanelError subclasses (store)        -> their own status_code
- BaseAPIException / HTTPException          -> their status_code
- RequestValidationError (request parsing)  -> 422
- anything else                             -> 500
"""

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...core.config import settings
from ...core.request_context import current_request_id
from ..responses import ErrorDetail, HTTPStatusCodes, error_response, validation_error_response
from .custom_exceptions import BaseAPIException
from .store_exceptions import AdminPanelError, ValidationError

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}

# request bodies may carry profile PINs
_MASKED_FIELDS = ("pin", "password", "token", "secret")


def _render(
    request: Request,
    request_id: str,
    errors: List[Union[ErrorDetail, Dict[str, Any]]],
    message: str,
    status_code: int,
    error_type: Optional[str]
) -> JSONResponse:
    return error_response(
        errors=errors,
        message=message,
        status_code=status_code,
        request_id=request_id,
        error_type=error_type,
        path=request.url.path,
        method=request.method
    )


def _log_extra(request: Request, request_id: str, **fields) -> Dict[str, Any]:
    return {"request_id": request_id, "path": request.url.path, "method": request.method, **fields}


def _request_validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    errors = []
    for error in exc.errors():
        # first loc element is body/query/path
        field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        value = error.get("input")
        if value is not None:
            if any(name in field.lower() for name in _MASKED_FIELDS):
                value = "[REDACTED]"
            elif len(str(value)) > 100:
                value = str(value)[:100] + "..."
        errors.append({
            "code": "VALIDATION_ERROR",
            "message": error["msg"],
            "field": field,
            "context": {"type": error["type"], "value": value},
        })
    return errors


async def input_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Local input rule failed; nothing was sent to the store."""
    request_id = current_request_id(generate=True)
    logger.warning(
        f"입력 검증 실패 [{request_id}] {exc.field_name}: {exc.message}",
        extra=_log_extra(request, request_id, field=exc.field_name)
    )
    detail = ErrorDetail(
        code=exc.error_code,
        message=exc.message,
        field=exc.field_name,
        context={"validation_errors": exc.validation_errors} if exc.validation_errors else None
    )
    return _render(request, request_id, [detail], exc.message, HTTPStatusCodes.UNPROCESSABLE_ENTITY, exc.error_code)


async def store_exception_handler(request: Request, exc: AdminPanelError) -> JSONResponse:
    """Fetch/write/subscription failures reported by the store adapter."""
    request_id = current_request_id(generate=True)
    status_code = exc.status_code or HTTPStatusCodes.BAD_GATEWAY

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"저장소 오류 [{request_id}] {exc.error_code}: {exc.message}",
        extra=_log_extra(request, request_id, error_code=exc.error_code, details=exc.details)
    )
    detail = ErrorDetail(code=exc.error_code, message=exc.message, context=exc.details or None)
    return _render(request, request_id, [detail], exc.message, status_code, exc.error_code)


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    request_id = current_request_id(generate=True)
    logger.warning(
        f"API 예외 [{request_id}] {exc.error_code}: {exc.detail}",
        extra=_log_extra(request, request_id, status_code=exc.status_code)
    )
    errors = exc.errors or [exc.to_error_detail()]
    return _render(request, request_id, errors, exc.detail, exc.status_code, exc.error_code)


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException]
) -> JSONResponse:
    request_id = current_request_id(generate=True)
    code = _HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"

    logger.warning(
        f"HTTP 예외 [{request_id}] {exc.status_code}: {message}",
        extra=_log_extra(request, request_id, status_code=exc.status_code)
    )
    detail = ErrorDetail(code=code, message=message, context={"status_code": exc.status_code})
    return _render(request, request_id, [detail], message, exc.status_code, code)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/path/query did not match the schema."""
    request_id = current_request_id(generate=True)
    errors = _request_validation_errors(exc)
    logger.warning(
        f"요청 형식 오류 [{request_id}] {len(errors)}건",
        extra=_log_extra(request, request_id)
    )
    return validation_error_response(
        errors=errors,
        message=f"Validation failed for {len(errors)} field(s)",
        request_id=request_id,
        path=request.url.path,
        method=request.method
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = current_request_id(generate=True)
    logger.exception(
        f"처리되지 않은 예외 [{request_id}] {type(exc).__name__}: {exc}",
        extra=_log_extra(request, request_id, exception_type=type(exc).__name__)
    )

    context: Dict[str, Any] = {"exception_type": type(exc).__name__}
    message = "An unexpected error occurred"
    if settings.debug:
        message = f"{type(exc).__name__}: {exc}"
        context["debug_message"] = str(exc)[:200]

    detail = ErrorDetail(code="INTERNAL_SERVER_ERROR", message=message, context=context)
    return _render(
        request, request_id, [detail], "Internal server error",
        HTTPStatusCodes.INTERNAL_SERVER_ERROR, "INTERNAL_SERVER_ERROR"
    )


__all__ = [
    "input_validation_exception_handler",
    "store_exception_handler",
    "base_api_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "general_exception_handler",
]
