"""
Per-request context shared by middleware, exception handlers and log records.
"""

from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4


_current_request_id: ContextVar[Optional[str]] = ContextVar("admin_panel_request_id", default=None)


def new_request_id() -> str:
    """req_<UTC timestamp>_<8 hex chars>"""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"req_{stamp}_{uuid4().hex[:8]}"


def bind_request_id(request_id: str) -> Token:
    return _current_request_id.set(request_id)


def release_request_id(token: Token) -> None:
    _current_request_id.reset(token)


def current_request_id(generate: bool = False) -> Optional[str]:
    """Request id bound to this context; a fresh one when `generate` and none is bound."""
    request_id = _current_request_id.get()
    if request_id is None and generate:
        return new_request_id()
    return request_id
