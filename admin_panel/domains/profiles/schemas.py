from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfileCreateRequest(BaseModel):
    user_id: str = Field(..., description="인증 사용자 ID")
    name: Optional[str] = Field(default=None, description="표시 이름")
    email: Optional[str] = Field(default=None, description="인증 계정 이메일")


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    pin: Optional[str] = None
    description: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    name: str
    email: Optional[str] = None
    pin: Optional[str] = None
    description: Optional[str] = None
    role: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
