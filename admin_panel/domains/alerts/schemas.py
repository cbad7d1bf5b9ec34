from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .models import AlertType


class AlertCreateRequest(BaseModel):
    # type is checked by the service so that bad values surface as ValidationError
    message: str = Field(..., description="알림 메시지")
    type: str = Field(default=AlertType.SUCCESS.value, description="info | error | warning | success")
    active: bool = Field(default=True)


class AlertUpdateRequest(BaseModel):
    message: Optional[str] = None
    type: Optional[str] = None
    active: Optional[bool] = None


class AlertResponse(BaseModel):
    id: str
    message: str
    type: AlertType
    active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class FeedSnapshotMessage(BaseModel):
    """Pushed to viewer sockets whenever the visible list changes."""
    type: Literal["snapshot"] = "snapshot"
    alerts: List[AlertResponse]


class FeedErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    code: str
    message: str
    alert_id: Optional[str] = None


class FeedCommand(BaseModel):
    """Sent by viewer sockets."""
    action: Literal["dismiss", "refresh"]
    id: Optional[str] = None
