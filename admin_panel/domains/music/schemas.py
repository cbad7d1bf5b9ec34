from typing import Optional

from pydantic import BaseModel, Field


class MusicCreateRequest(BaseModel):
    # required-ness is checked by the service so empty strings surface as ValidationError
    categoria: Optional[str] = Field(default=None, description="카테고리")
    titulo: Optional[str] = Field(default=None, description="곡 제목")
    autor: Optional[str] = Field(default=None, description="아티스트")
    musica_filename: Optional[str] = Field(default=None, description="mp3 파일명 (예: track_01.mp3)")
    portada_url: Optional[str] = Field(default=None, description="커버 이미지 URL")


class MusicResponse(BaseModel):
    id: str
    categoria: str
    titulo: str
    autor: str
    musica_url: str
    portada_url: Optional[str] = None
