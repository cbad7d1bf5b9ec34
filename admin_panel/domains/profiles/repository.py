from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from ...shared.exceptions import FetchError, RecordNotFoundError, WriteError
from ...shared.models.base import utc_now
from .models import Profile

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "pin", "description", "role")


class ProfilesRepository:
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "profiles"):
        self.db = db
        self.collection_name = collection_name
        self.profiles = db[collection_name]

    async def ensure_indexes(self) -> None:
        await self.profiles.create_index("user_id", unique=True)
        await self.profiles.create_index([("created_at", ASCENDING)])

    async def list_profiles(self) -> List[Profile]:
        try:
            cursor = self.profiles.find({}).sort("created_at", ASCENDING)
            return [Profile.model_validate(doc) async for doc in cursor]
        except PyMongoError as e:
            logger.error(f"프로필 목록 조회 실패: {e}")
            raise FetchError(f"Failed to read profiles: {e}", collection=self.collection_name) from e

    async def find_by_user_id(self, user_id: str) -> Optional[Profile]:
        try:
            doc = await self.profiles.find_one({"user_id": user_id})
        except PyMongoError as e:
            raise FetchError(f"Failed to read profile: {e}", collection=self.collection_name) from e
        return Profile.model_validate(doc) if doc else None

    async def insert_profile(self, fields: Dict[str, Any]) -> Profile:
        now = utc_now()
        doc = {**fields, "created_at": now, "updated_at": now}
        try:
            res = await self.profiles.insert_one(doc)
        except DuplicateKeyError as e:
            raise WriteError(f"Profile for user '{fields.get('user_id')}' already exists",
                             record_id=fields.get("user_id"), status_code=409) from e
        except PyMongoError as e:
            logger.error(f"프로필 생성 실패: {e}")
            raise WriteError(f"Failed to insert profile: {e}") from e
        doc["_id"] = res.inserted_id
        return Profile.model_validate(doc)

    async def update_profile(self, user_id: str, fields: Dict[str, Any]) -> None:
        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        updates["updated_at"] = utc_now()
        try:
            res = await self.profiles.update_one({"user_id": user_id}, {"$set": updates})
        except PyMongoError as e:
            logger.error(f"프로필 수정 실패 ({user_id}): {e}")
            raise WriteError(f"Failed to update profile: {e}", record_id=user_id) from e
        if res.matched_count == 0:
            raise RecordNotFoundError("profile", user_id)
