from __future__ import annotations

from typing import Optional

from pydantic import Field

from ...shared.models.base import BaseDocument


class MusicTrack(BaseDocument):
    """Track stored in the music catalog"""
    categoria: str = Field(..., description="Category")
    titulo: str = Field(..., description="Title")
    autor: str = Field(..., description="Author")
    musica_url: str = Field(..., description="Public URL of the mp3 file")
    portada_url: Optional[str] = Field(default=None, description="Cover image URL")
