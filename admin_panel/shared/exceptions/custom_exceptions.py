"""
HTTP-facing exceptions.

Raised by services for conditions that are not store failures (for example
a profile lookup that finds nothing) and rendered in the standard error
envelope by `base_api_exception_handler`.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from ..responses import ErrorDetail, HTTPStatusCodes


class BaseAPIException(HTTPException):
    """HTTPException carrying an error code and structured context"""

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        errors: Optional[List[ErrorDetail]] = None,
        headers: Optional[Dict[str, str]] = None,
        **context: Any
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.error_code = error_code
        self.errors = errors or []
        self.context = context

    def to_error_detail(self) -> ErrorDetail:
        return ErrorDetail(code=self.error_code, message=self.detail, context=self.context or None)


class NotFoundException(BaseAPIException):
    """404 for a lookup by key (user_id, alert id, ...)"""

    def __init__(self, resource: str, resource_id: Any, message: Optional[str] = None):
        super().__init__(
            status_code=HTTPStatusCodes.NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
            message=message or f"{resource} with id '{resource_id}' not found",
            resource=resource,
            resource_id=str(resource_id),
        )
