"""
Response envelopes shared by every router.

Success:  {"success": true,  "data": ..., "message": ..., "timestamp": ..., "status": "success"}
Failure:  {"success": false, "errors": [...], "message": ..., "request_id": ..., "status": "error"}
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

T = TypeVar("T")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class BaseResponse(BaseModel, Generic[T]):
    """성공 응답 형식"""
    success: bool = Field(..., description="요청 성공 여부")
    data: Optional[T] = Field(None, description="응답 데이터")
    message: Optional[str] = Field(None, description="처리 결과 메시지")
    timestamp: str = Field(default_factory=_utc_timestamp, description="응답 시각 (UTC)")
    status: ResponseStatus = Field(default=ResponseStatus.SUCCESS)
    metadata: Optional[Dict[str, Any]] = Field(None, description="부가 정보")


class ErrorDetail(BaseModel):
    code: str = Field(..., description="기계 판독용 오류 코드 (예: FETCH_ERROR)")
    message: str = Field(..., description="오류 설명")
    field: Optional[str] = Field(None, description="검증 실패 필드")
    context: Optional[Dict[str, Any]] = Field(None, description="추가 정보")


class ErrorResponse(BaseModel):
    """오류 응답 형식"""
    success: bool = Field(default=False)
    errors: List[ErrorDetail] = Field(..., description="오류 상세 목록")
    message: str = Field(..., description="오류 요약")
    timestamp: str = Field(default_factory=_utc_timestamp)
    status: ResponseStatus = Field(default=ResponseStatus.ERROR)
    request_id: Optional[str] = Field(None, description="요청 추적 ID")
    error_type: Optional[str] = Field(None, description="대표 오류 코드")
    path: Optional[str] = None
    method: Optional[str] = None


class HTTPStatusCodes:
    """Status codes used by the routers and exception handlers"""

    OK = status.HTTP_200_OK
    CREATED = status.HTTP_201_CREATED

    NOT_FOUND = status.HTTP_404_NOT_FOUND
    CONFLICT = status.HTTP_409_CONFLICT
    UNPROCESSABLE_ENTITY = 422

    INTERNAL_SERVER_ERROR = status.HTTP_500_INTERNAL_SERVER_ERROR
    BAD_GATEWAY = status.HTTP_502_BAD_GATEWAY
    SERVICE_UNAVAILABLE = status.HTTP_503_SERVICE_UNAVAILABLE


def success_response(
    data: Any = None,
    message: str = "Request processed successfully",
    status_code: int = HTTPStatusCodes.OK,
    **kwargs
) -> JSONResponse:
    """Wrap `data` (models, lists, dicts) in the success envelope."""
    body = BaseResponse(success=True, data=jsonable_encoder(data), message=message, **kwargs)
    return JSONResponse(content=body.model_dump(mode="json", exclude_none=True), status_code=status_code)


def error_response(
    errors: List[Union[ErrorDetail, Dict[str, Any]]],
    message: str = "Request failed",
    status_code: int = status.HTTP_400_BAD_REQUEST,
    **kwargs
) -> JSONResponse:
    """Wrap error details (ErrorDetail or plain dicts) in the error envelope."""
    details = [e if isinstance(e, ErrorDetail) else ErrorDetail(**e) for e in errors]
    body = ErrorResponse(errors=details, message=message, **kwargs)
    return JSONResponse(
        content=jsonable_encoder(body.model_dump(mode="json", exclude_none=True)),
        status_code=status_code
    )


def validation_error_response(
    errors: List[Dict[str, Any]],
    message: str = "Validation failed",
    **kwargs
) -> JSONResponse:
    return error_response(
        errors=errors,
        message=message,
        status_code=HTTPStatusCodes.UNPROCESSABLE_ENTITY,
        error_type="VALIDATION_ERROR",
        **kwargs
    )
