from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from ...core.dependencies import get_profiles_service
from ...shared.responses import HTTPStatusCodes, success_response
from .models import Profile
from .schemas import ProfileCreateRequest, ProfileResponse, ProfileUpdateRequest
from .service import ProfilesService

router = APIRouter(
    prefix="/profiles",
    tags=["사용자 관리"],
    responses={
        404: {"description": "프로필을 찾을 수 없음"},
        422: {"description": "요청 데이터 검증 실패"}
    }
)


def _serialize(profile: Profile) -> Dict[str, Any]:
    return ProfileResponse.model_validate(profile.model_dump()).model_dump(mode="json")


def _serialize_all(profiles: List[Profile]) -> List[Dict[str, Any]]:
    return [_serialize(p) for p in profiles]


@router.get("", summary="사용자 목록", description="가입 순서(created_at 오름차순)로 모든 프로필을 조회합니다.")
async def list_profiles(svc: ProfilesService = Depends(get_profiles_service)):
    profiles = await svc.list_profiles()
    return success_response(data=_serialize_all(profiles), message="Profiles retrieved")


@router.post("", summary="프로필 생성", description="첫 로그인 시 표시 이름으로 프로필을 생성합니다.")
async def create_profile(payload: ProfileCreateRequest, svc: ProfilesService = Depends(get_profiles_service)):
    profile = await svc.create_profile(payload)
    return success_response(data=_serialize(profile), message="Profile created", status_code=HTTPStatusCodes.CREATED)


@router.get("/{user_id}", summary="프로필 조회")
async def get_profile(user_id: str, svc: ProfilesService = Depends(get_profiles_service)):
    profile = await svc.get_profile(user_id)
    return success_response(data=_serialize(profile), message="Profile retrieved")


@router.put("/{user_id}", summary="프로필 수정", description="이름/이메일/역할은 비어 있을 수 없습니다. 수정 후 전체 목록을 반환합니다.")
async def update_profile(user_id: str, payload: ProfileUpdateRequest, svc: ProfilesService = Depends(get_profiles_service)):
    profiles = await svc.update_profile(user_id, payload)
    return success_response(data=_serialize_all(profiles), message="Profile updated")
