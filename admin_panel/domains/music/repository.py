from __future__ import annotations

import logging
from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from ...shared.exceptions import FetchError, RecordNotFoundError, WriteError
from ...shared.models.base import coerce_object_id, utc_now
from .models import MusicTrack

logger = logging.getLogger(__name__)


class MusicRepository:
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "musicas"):
        self.db = db
        self.collection_name = collection_name
        self.tracks = db[collection_name]

    async def list_tracks(self) -> List[MusicTrack]:
        # ObjectId order is insertion order
        try:
            cursor = self.tracks.find({}).sort("_id", ASCENDING)
            return [MusicTrack.model_validate(doc) async for doc in cursor]
        except PyMongoError as e:
            logger.error(f"음악 목록 조회 실패: {e}")
            raise FetchError(f"Failed to read music: {e}", collection=self.collection_name) from e

    async def insert_track(self, fields: Dict[str, Any]) -> MusicTrack:
        doc = dict(fields)
        doc["created_at"] = utc_now()
        try:
            res = await self.tracks.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"음악 등록 실패: {e}")
            raise WriteError(f"Failed to insert music: {e}") from e
        doc["_id"] = res.inserted_id
        return MusicTrack.model_validate(doc)

    async def delete_track(self, track_id: str) -> None:
        try:
            res = await self.tracks.delete_one({"_id": coerce_object_id(track_id)})
        except PyMongoError as e:
            logger.error(f"음악 삭제 실패 ({track_id}): {e}")
            raise WriteError(f"Failed to delete music: {e}", record_id=track_id) from e
        if res.deleted_count == 0:
            raise RecordNotFoundError("music", track_id)
