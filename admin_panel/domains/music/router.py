from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ...core.dependencies import get_music_service
from ...shared.responses import HTTPStatusCodes, success_response
from .models import MusicTrack
from .schemas import MusicCreateRequest, MusicResponse
from .service import MusicService

router = APIRouter(
    prefix="/music",
    tags=["음악 관리"],
    responses={
        422: {"description": "요청 데이터 검증 실패"},
        503: {"description": "저장소 조회 실패"}
    }
)


def _serialize(tracks: List[MusicTrack]) -> List[Dict[str, Any]]:
    return [MusicResponse.model_validate(t.model_dump()).model_dump(mode="json") for t in tracks]


@router.get("", summary="음악 목록", description="등록 순서대로 모든 곡을 조회합니다.")
async def list_music(svc: MusicService = Depends(get_music_service)):
    tracks = await svc.list_tracks()
    return success_response(data=_serialize(tracks), message="Music retrieved")


@router.post("", summary="음악 등록", description="파일명을 검증하고 공개 URL을 만들어 등록합니다.")
async def create_music(payload: MusicCreateRequest, svc: MusicService = Depends(get_music_service)):
    tracks = await svc.create_track(payload)
    return success_response(data=_serialize(tracks), message="Music created", status_code=HTTPStatusCodes.CREATED)


@router.delete("/{track_id}", summary="음악 삭제")
async def delete_music(track_id: str, svc: MusicService = Depends(get_music_service)):
    tracks = await svc.delete_track(track_id)
    return success_response(data=_serialize(tracks), message="Music deleted")
