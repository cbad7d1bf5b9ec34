from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from ...shared.models.base import BaseDocument


class AlertType(str, Enum):
    INFO = "info"
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class Alert(BaseDocument):
    """Canonical alert record as stored and as shown to viewers."""
    message: str = Field(..., description="알림 메시지")
    type: AlertType = Field(default=AlertType.INFO, description="알림 유형")
    active: bool = Field(default=True, description="False면 소프트 삭제(닫힘) 상태")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def fallback_unknown_type(cls, v):
        # Records written by other clients may carry types we do not render
        if isinstance(v, AlertType):
            return v
        if isinstance(v, str) and v in AlertType.values():
            return v
        return AlertType.INFO

    @property
    def observed_at(self) -> datetime:
        """Timestamp used to date this record against local dismiss intents."""
        return self.updated_at or self.created_at


class ChangeKind(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"


class AlertChangeEvent(BaseModel):
    kind: ChangeKind
    record: Alert
