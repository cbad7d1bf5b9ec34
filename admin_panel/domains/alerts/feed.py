"""
Alert feed: the viewer-side reconciliation engine.

One `AlertFeed` instance belongs to one viewer session. It merges the bulk
read of active alerts with the change stream of the alerts collection and
with local dismiss actions, and exposes the resulting visible list.

Usage:

    async with AlertFeed(store) as feed:
        feed.add_listener(on_change)
        await feed.dismiss(alert_id)

Entering the context opens the change stream before the bulk read. Events
delivered while a read is in flight are applied at once and replayed on top
of the read result, so the older read cannot undo them. Leaving the context
always releases the stream.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from ...core.config import settings
from ...shared.exceptions import DismissError, FetchError, SubscriptionError, WriteError
from ...shared.models.base import utc_now
from .models import Alert, AlertChangeEvent
from .reconciliation import (
    FeedState,
    apply_event,
    apply_snapshot,
    begin_dismiss,
    confirm_dismiss,
    rollback_dismiss,
)
from .store import AlertStore, AlertSubscription

logger = logging.getLogger(__name__)

FeedListener = Callable[[List[Alert]], Any]


class FeedClosedError(RuntimeError):
    """Operation attempted on a feed that has been torn down."""


class AlertFeed:
    def __init__(
        self,
        store: AlertStore,
        *,
        reconnect: Optional[bool] = None,
        max_reconnect_attempts: Optional[int] = None,
        reconnect_base_delay: Optional[float] = None,
        reconnect_max_delay: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._state = FeedState()
        self._subscription: Optional[AlertSubscription] = None
        self._pump_task: Optional[asyncio.Task] = None
        self._listeners: List[FeedListener] = []
        # one buffer per bulk read in flight
        self._read_buffers: List[List[AlertChangeEvent]] = []
        self._closed = False
        self._clock = clock

        self._reconnect = settings.alerts_feed_reconnect_enabled if reconnect is None else reconnect
        self._max_reconnect_attempts = (
            settings.alerts_feed_reconnect_max_attempts if max_reconnect_attempts is None else max_reconnect_attempts
        )
        self._reconnect_base_delay = (
            settings.alerts_feed_reconnect_base_delay if reconnect_base_delay is None else reconnect_base_delay
        )
        self._reconnect_max_delay = (
            settings.alerts_feed_reconnect_max_delay if reconnect_max_delay is None else reconnect_max_delay
        )

    # ------------------------------------------------------------------ state

    @property
    def alerts(self) -> List[Alert]:
        """Current visible list, newest first."""
        return list(self._state.alerts)

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    def add_listener(self, listener: FeedListener) -> None:
        """Call `listener` with the visible list after every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: FeedListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _replace(self, new_state: FeedState) -> None:
        changed = new_state.alerts != self._state.alerts
        self._state = new_state
        if changed:
            self._notify()

    def _notify(self) -> None:
        snapshot = self.alerts
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("알림 피드 리스너 실행 중 오류")

    # ------------------------------------------------------------- operations

    async def initialize(self) -> List[Alert]:
        """Resynchronize the visible list from a bulk read of active alerts.

        Raises FetchError and keeps the previous state when the read fails.
        """
        if self._closed:
            raise FeedClosedError("alert feed has been torn down")
        buffer: List[AlertChangeEvent] = []
        self._read_buffers.append(buffer)
        try:
            records = await self._store.fetch_active_alerts()
        except FetchError as e:
            logger.warning(f"활성 알림 조회 실패, 기존 상태 유지: {e}")
            raise
        finally:
            self._read_buffers = [b for b in self._read_buffers if b is not buffer]
        if self._closed:
            return []
        if buffer:
            logger.debug(f"조회 중 수신된 변경 {len(buffer)}건 재적용")
        self._replace(apply_snapshot(self._state, records, replay=buffer))
        logger.debug(f"알림 피드 동기화 완료: {len(self._state.alerts)}건")
        return self.alerts

    async def open_subscription(self) -> None:
        """Open the change stream and start applying its events.

        A second call while the stream is open does nothing.
        """
        if self._closed:
            raise FeedClosedError("alert feed has been torn down")
        if self._pump_task is not None and not self._pump_task.done():
            logger.debug("알림 변경 스트림이 이미 열려 있습니다")
            return
        await self._release_subscription()
        subscription = await self._store.subscribe_to_alert_changes()
        if self._closed:
            await subscription.aclose()
            raise FeedClosedError("alert feed has been torn down")
        self._subscription = subscription
        self._pump_task = asyncio.create_task(self._pump(), name="alert-feed-pump")
        logger.info("알림 변경 스트림 구독 시작")

    def on_event(self, event: AlertChangeEvent) -> None:
        """Apply one change event. Events arriving after teardown are dropped."""
        if self._closed:
            return
        for buffer in self._read_buffers:
            buffer.append(event)
        self._replace(apply_event(self._state, event))

    async def dismiss(self, alert_id: str) -> None:
        """Hide an alert immediately and soft-delete it in the store.

        On write failure the alert is restored and DismissError is raised.
        """
        if self._closed:
            raise FeedClosedError("alert feed has been torn down")

        # Removal happens before the first await
        self._replace(begin_dismiss(self._state, alert_id, self._clock()))
        try:
            await self._store.update_alert(alert_id, {"active": False})
        except WriteError as e:
            if not self._closed:
                self._replace(rollback_dismiss(self._state, alert_id))
            logger.warning(f"알림 닫기 실패, 복원: {e}", extra={"alert_id": alert_id})
            raise DismissError(alert_id, e.message) from e

        if not self._closed:
            self._replace(confirm_dismiss(self._state, alert_id))
        logger.info("알림 닫기 완료", extra={"alert_id": alert_id})

    async def teardown(self) -> None:
        """Stop the stream, release it and clear local state. Idempotent."""
        if self._closed:
            return
        self._closed = True

        task, self._pump_task = self._pump_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("알림 피드 펌프 종료 중 오류")

        await self._release_subscription()
        self._state = FeedState()
        self._listeners.clear()
        logger.info("알림 피드 종료")

    async def __aenter__(self) -> "AlertFeed":
        await self.open_subscription()
        try:
            await self.initialize()
        except BaseException:
            await self.teardown()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.teardown()

    # ----------------------------------------------------------------- stream

    async def _release_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await subscription.aclose()
        except SubscriptionError as e:
            logger.warning(f"알림 변경 스트림 해제 실패: {e}")

    def _backoff(self, failures: int) -> float:
        return min(self._reconnect_base_delay * (2 ** failures), self._reconnect_max_delay)

    async def _pump(self) -> None:
        failures = 0
        while not self._closed:
            if self._subscription is None:
                if not self._reconnect or failures >= self._max_reconnect_attempts:
                    logger.error(f"알림 변경 스트림 재연결 포기 (시도 {failures}회)")
                    return
                await asyncio.sleep(self._backoff(failures))
                failures += 1
                try:
                    subscription = await self._store.subscribe_to_alert_changes()
                except SubscriptionError as e:
                    logger.warning(f"알림 변경 스트림 재연결 실패 ({failures}회): {e}")
                    continue
                if self._closed:
                    await subscription.aclose()
                    return
                self._subscription = subscription
                logger.info(f"알림 변경 스트림 재연결 ({failures}회)")
                await self._resync()
                continue

            try:
                async for event in self._subscription:
                    if self._closed:
                        return
                    failures = 0
                    self.on_event(event)
            except SubscriptionError as e:
                logger.warning(f"알림 변경 스트림 오류: {e}")
            else:
                if self._closed:
                    return
                logger.warning("알림 변경 스트림이 예기치 않게 종료되었습니다")
            await self._release_subscription()

    async def _resync(self) -> None:
        try:
            await self.initialize()
        except FetchError:
            # logged by initialize(); the previous list stays visible
            pass
        except FeedClosedError:
            pass
