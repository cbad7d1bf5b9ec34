from __future__ import annotations

import logging
from typing import List

from ...shared.exceptions import NotFoundException, ValidationError
from .models import Profile
from .repository import ProfilesRepository
from .schemas import ProfileCreateRequest, ProfileUpdateRequest

logger = logging.getLogger(__name__)

REQUIRED_ON_UPDATE = ("name", "email", "role")


def _blank(value) -> bool:
    return value is None or not str(value).strip()


class ProfilesService:
    def __init__(self, repository: ProfilesRepository):
        self.repository = repository

    async def list_profiles(self) -> List[Profile]:
        return await self.repository.list_profiles()

    async def get_profile(self, user_id: str) -> Profile:
        profile = await self.repository.find_by_user_id(user_id)
        if profile is None:
            raise NotFoundException("Profile", user_id)
        return profile

    async def create_profile(self, request: ProfileCreateRequest) -> Profile:
        """First-login onboarding: only the display name is asked for."""
        if _blank(request.name):
            raise ValidationError("Please enter a user name", field_name="name")
        profile = await self.repository.insert_profile({
            "user_id": request.user_id,
            "name": request.name,
            "email": request.email,
        })
        logger.info(f"프로필 생성: {profile.user_id}")
        return profile

    async def update_profile(self, user_id: str, request: ProfileUpdateRequest) -> List[Profile]:
        data = request.model_dump()
        for field_name in REQUIRED_ON_UPDATE:
            if _blank(data.get(field_name)):
                raise ValidationError(f"{field_name} must not be empty", field_name=field_name)

        await self.repository.update_profile(user_id, {
            "name": data["name"],
            "email": data["email"],
            "role": data["role"],
            "pin": data.get("pin"),
            "description": data.get("description"),
        })
        logger.info(f"프로필 수정: {user_id}")
        return await self.list_profiles()
