from datetime import datetime, timezone
from typing import Any, Optional, Union

from bson import ObjectId
from pydantic import AliasChoices, BaseModel, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so that every comparison is aware."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def coerce_object_id(value: Any) -> Union[ObjectId, Any]:
    """Convert a hex string id to ObjectId for queries; leave other ids untouched."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


class BaseDocument(BaseModel):
    """
    Common shape of stored documents.

    Reads `_id` from MongoDB documents and exposes it as a string `id`.
    """
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"), description="문서 ID")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        if isinstance(v, ObjectId):
            return str(v)
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v):
        return ensure_utc(v)
