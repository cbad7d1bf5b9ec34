from typing import Optional

from pydantic import Field

from ...shared.models.base import BaseDocument


class Profile(BaseDocument):
    """User profile, keyed by the auth provider's user id"""
    user_id: str = Field(..., description="인증 사용자 ID")
    name: str = Field(..., description="표시 이름")
    email: Optional[str] = None
    pin: Optional[str] = None
    description: Optional[str] = None
    role: Optional[str] = None
    avatar_url: Optional[str] = None
