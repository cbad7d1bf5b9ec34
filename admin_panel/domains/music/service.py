from __future__ import annotations

import logging
import re
from typing import List

from ...core.config import settings
from ...shared.exceptions import ValidationError
from .models import MusicTrack
from .repository import MusicRepository
from .schemas import MusicCreateRequest

logger = logging.getLogger(__name__)

# letters, digits, underscore and hyphen only, ending in .mp3
FILENAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+\.mp3$", re.IGNORECASE)

REQUIRED_FIELDS = ("categoria", "titulo", "autor", "musica_filename")


def is_valid_filename(filename: str) -> bool:
    return bool(FILENAME_PATTERN.match(filename or ""))


class MusicService:
    """Music catalog management; every mutation returns the reloaded list."""

    def __init__(self, repository: MusicRepository, base_url: str = None):
        self.repository = repository
        self.base_url = base_url if base_url is not None else settings.music_base_url

    async def list_tracks(self) -> List[MusicTrack]:
        return await self.repository.list_tracks()

    async def create_track(self, request: MusicCreateRequest) -> List[MusicTrack]:
        data = request.model_dump()
        missing = [name for name in REQUIRED_FIELDS if not (data.get(name) or "").strip()]
        if missing:
            raise ValidationError(
                "Please fill in all required fields",
                field_name=missing[0],
                validation_errors=[f"{name} is required" for name in missing]
            )

        filename = data["musica_filename"].strip()
        if not is_valid_filename(filename):
            raise ValidationError(
                'File name must end in ".mp3" and contain no spaces or special characters',
                field_name="musica_filename"
            )

        track = await self.repository.insert_track({
            "categoria": data["categoria"],
            "titulo": data["titulo"],
            "autor": data["autor"],
            "musica_url": self.base_url + filename,
            "portada_url": data.get("portada_url") or None,
        })
        logger.info(f"음악 등록: {track.titulo} ({track.id})")
        return await self.list_tracks()

    async def delete_track(self, track_id: str) -> List[MusicTrack]:
        await self.repository.delete_track(track_id)
        logger.info(f"음악 삭제: {track_id}")
        return await self.list_tracks()
