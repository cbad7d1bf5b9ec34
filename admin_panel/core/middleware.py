"""
HTTP middleware for the admin panel.
"""

import time
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_context import bind_request_id, new_request_id, release_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """요청 ID 바인딩 및 요청 처리 시간 로깅"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 클라이언트가 보낸 ID가 있으면 그대로 사용 (프론트 로그와 연결)
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        token = bind_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed = time.perf_counter() - started
            release_request_id(token)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed * 1000:.1f}ms)",
            extra={"request_id": request_id}
        )
        return response
