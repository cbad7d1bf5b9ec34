from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from ...core.dependencies import get_admin_alert_store, get_alert_store, get_alerts_service
from ...shared.exceptions import DismissError, FetchError, SubscriptionError
from ...shared.responses import HTTPStatusCodes, success_response
from .feed import AlertFeed
from .models import Alert
from .schemas import (
    AlertCreateRequest, AlertUpdateRequest, AlertResponse,
    FeedCommand, FeedErrorMessage, FeedSnapshotMessage
)
from .service import AlertsService
from .store import AlertStore

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/alerts",
    tags=["알림 관리"],
    responses={
        422: {"description": "요청 데이터 검증 실패"},
        502: {"description": "저장소 쓰기 실패"},
        503: {"description": "저장소 조회 실패"}
    }
)


def _serialize(alerts: List[Alert]) -> List[Dict[str, Any]]:
    return [AlertResponse.model_validate(alert.model_dump()).model_dump(mode="json") for alert in alerts]


@router.get("", summary="전체 알림 목록", description="활성/비활성을 포함한 모든 알림을 최신순으로 조회합니다.")
async def list_alerts(svc: AlertsService = Depends(get_alerts_service)):
    alerts = await svc.list_alerts()
    return success_response(data=_serialize(alerts), message="Alerts retrieved")


@router.post("", summary="알림 생성", description="알림을 생성한 뒤 전체 목록을 다시 읽어 반환합니다.")
async def create_alert(payload: AlertCreateRequest, svc: AlertsService = Depends(get_alerts_service)):
    alerts = await svc.create_alert(payload)
    return success_response(data=_serialize(alerts), message="Alert created", status_code=HTTPStatusCodes.CREATED)


@router.get("/active", summary="활성 알림 조회", description="뷰어에 표시될 활성 알림을 한 번 조회합니다.")
async def list_active_alerts(svc: AlertsService = Depends(get_alerts_service)):
    alerts = await svc.list_active_alerts()
    return success_response(data=_serialize(alerts), message="Active alerts retrieved")


@router.get("/board", summary="스태프 공지 조회", description="스태프 대시보드에 표시되는 활성 공지를 조회합니다.")
async def list_board_alerts(store: AlertStore = Depends(get_admin_alert_store)):
    alerts = await store.fetch_active_alerts()
    return success_response(data=_serialize(alerts), message="Board alerts retrieved")


@router.get("/{alert_id}", summary="알림 단건 조회")
async def get_alert(alert_id: str, svc: AlertsService = Depends(get_alerts_service)):
    alert = await svc.get_alert(alert_id)
    return success_response(data=_serialize([alert])[0], message="Alert retrieved")


@router.patch("/{alert_id}", summary="알림 수정", description="메시지/유형/활성 상태를 부분 수정한 뒤 전체 목록을 반환합니다.")
async def update_alert(alert_id: str, payload: AlertUpdateRequest, svc: AlertsService = Depends(get_alerts_service)):
    alerts = await svc.update_alert(alert_id, payload)
    return success_response(data=_serialize(alerts), message="Alert updated")


@router.post("/{alert_id}/toggle", summary="활성 상태 전환")
async def toggle_alert(alert_id: str, svc: AlertsService = Depends(get_alerts_service)):
    alerts = await svc.toggle_active(alert_id)
    return success_response(data=_serialize(alerts), message="Alert toggled")


@router.post("/{alert_id}/dismiss", summary="알림 닫기", description="알림을 비활성(소프트 삭제) 상태로 변경합니다.")
async def dismiss_alert(alert_id: str, svc: AlertsService = Depends(get_alerts_service)):
    await svc.dismiss_alert(alert_id)
    return success_response(data={"id": alert_id, "active": False}, message="Alert dismissed")


# Viewer feed over WebSocket

def _snapshot_message(alerts: List[Alert]) -> Dict[str, Any]:
    return FeedSnapshotMessage(
        alerts=[AlertResponse.model_validate(alert.model_dump()) for alert in alerts]
    ).model_dump(mode="json")


def _error_message(code: str, message: str, alert_id: str = None) -> Dict[str, Any]:
    return FeedErrorMessage(code=code, message=message, alert_id=alert_id).model_dump(mode="json")


async def _drain_outbox(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    try:
        while True:
            message = await outbox.get()
            await websocket.send_json(message)
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug(f"뷰어 소켓 전송 중단: {e}")


async def _stop(task: asyncio.Task) -> None:
    if task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def _handle_command(feed: AlertFeed, payload: Any, outbox: asyncio.Queue) -> None:
    try:
        command = FeedCommand.model_validate(payload)
    except ValueError:
        outbox.put_nowait(_error_message("BAD_COMMAND", "Expected {'action': 'dismiss'|'refresh', 'id': ...}"))
        return

    if command.action == "dismiss":
        if not command.id:
            outbox.put_nowait(_error_message("BAD_COMMAND", "dismiss requires an alert id"))
            return
        try:
            await feed.dismiss(command.id)
        except DismissError as e:
            outbox.put_nowait(_error_message(e.error_code, e.message, alert_id=command.id))
        return

    try:
        await feed.initialize()
    except FetchError as e:
        outbox.put_nowait(_error_message(e.error_code, e.message))
        return
    outbox.put_nowait(_snapshot_message(feed.alerts))


@router.websocket("/feed")
async def alert_feed_socket(websocket: WebSocket, store: AlertStore = Depends(get_alert_store)):
    """Live viewer session: one AlertFeed per connection."""
    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()
    sender = asyncio.create_task(_drain_outbox(websocket, outbox))
    feed = AlertFeed(store)

    try:
        async with feed:
            feed.add_listener(lambda alerts: outbox.put_nowait(_snapshot_message(alerts)))
            outbox.put_nowait(_snapshot_message(feed.alerts))
            logger.info(f"뷰어 피드 세션 시작: {len(feed.alerts)}건")
            while True:
                try:
                    payload = await websocket.receive_json()
                except ValueError:
                    outbox.put_nowait(_error_message("BAD_COMMAND", "Message must be JSON"))
                    continue
                await _handle_command(feed, payload, outbox)
    except WebSocketDisconnect:
        logger.info("뷰어 피드 세션 종료 (연결 해제)")
    except (FetchError, SubscriptionError) as e:
        await _stop(sender)
        await websocket.send_json(_error_message(e.error_code, e.message))
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        await _stop(sender)
