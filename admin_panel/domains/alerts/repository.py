from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as ModelValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from ...shared.exceptions import FetchError, RecordNotFoundError, SubscriptionError, WriteError
from ...shared.models.base import coerce_object_id, utc_now
from .models import Alert, AlertChangeEvent, ChangeKind
from .store import AlertStore, AlertSubscription

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("message", "type", "active")

_OPERATION_KINDS = {
    "insert": ChangeKind.INSERTED,
    "update": ChangeKind.UPDATED,
    "replace": ChangeKind.UPDATED,
}


def change_to_event(change: Dict[str, Any]) -> Optional[AlertChangeEvent]:
    """Map a MongoDB change stream document to an AlertChangeEvent.

    Returns None for operations the feed does not consume and for documents
    that no longer exist or cannot be parsed.
    """
    kind = _OPERATION_KINDS.get(change.get("operationType"))
    if kind is None:
        return None
    document = change.get("fullDocument")
    if document is None:
        return None
    try:
        return AlertChangeEvent(kind=kind, record=Alert.model_validate(document))
    except ModelValidationError as e:
        logger.warning(f"알림 변경 문서 파싱 실패, 건너뜀: {e.error_count()}개 오류",
                       extra={"alert_id": str(document.get("_id"))})
        return None


def _parse_stored(doc: Dict[str, Any], collection_name: str) -> Optional[Alert]:
    try:
        return Alert.model_validate(doc)
    except ModelValidationError as e:
        logger.warning(f"알림 문서 파싱 실패, 건너뜀 ({collection_name}):{e.error_count()}개 오류",
                       extra={"alert_id": str(doc.get("_id"))})
        return None


class MongoAlertSubscription(AlertSubscription):
    """Change stream on the alerts collection.

    `first_change` is a change already read while the stream was being
    opened; it is yielded before anything else.
    """

    def __init__(self, stream, first_change: Optional[Dict[str, Any]] = None):
        self._stream = stream
        self._first_change = first_change
        self._closed = False

    async def __anext__(self) -> AlertChangeEvent:
        while True:
            if self._closed:
                raise StopAsyncIteration
            if self._first_change is not None:
                change, self._first_change = self._first_change, None
            else:
                try:
                    change = await self._stream.next()
                except StopAsyncIteration:
                    raise
                except PyMongoError as e:
                    raise SubscriptionError(f"Change stream failed: {e}") from e
            event = change_to_event(change)
            if event is not None:
                return event

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stream.close()
        except PyMongoError as e:
            raise SubscriptionError(f"Failed to close change stream: {e}") from e


class AlertsRepository(AlertStore):
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "alerts"):
        self.db = db
        self.collection_name = collection_name
        self.alerts = db[collection_name]

    async def ensure_indexes(self) -> None:
        await self.alerts.create_index([("active", ASCENDING), ("created_at", DESCENDING)])

    async def _find(self, query: Dict[str, Any]) -> List[Alert]:
        try:
            cursor = self.alerts.find(query).sort("created_at", DESCENDING)
            docs = [doc async for doc in cursor]
        except PyMongoError as e:
            logger.error(f"알림 조회 실패 ({self.collection_name}): {e}")
            raise FetchError(f"Failed to read alerts: {e}", collection=self.collection_name) from e
        # records another client wrote without a usable message are left out
        parsed = (_parse_stored(doc, self.collection_name) for doc in docs)
        return [alert for alert in parsed if alert is not None]

    async def fetch_active_alerts(self) -> List[Alert]:
        return await self._find({"active": True})

    async def fetch_alerts(self) -> List[Alert]:
        return await self._find({})

    async def get_alert(self, alert_id: str) -> Alert:
        try:
            doc = await self.alerts.find_one({"_id": coerce_object_id(alert_id)})
        except PyMongoError as e:
            raise FetchError(f"Failed to read alert: {e}", collection=self.collection_name) from e
        alert = _parse_stored(doc, self.collection_name) if doc is not None else None
        if alert is None:
            raise RecordNotFoundError("alert", alert_id)
        return alert

    async def insert_alert(self, fields: Dict[str, Any]) -> Alert:
        now = utc_now()
        doc = {
            "message": fields["message"],
            "type": fields.get("type", "info"),
            "active": fields.get("active", True),
            "created_at": now,
            "updated_at": now,
        }
        try:
            res = await self.alerts.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"알림 생성 실패: {e}")
            raise WriteError(f"Failed to insert alert: {e}") from e
        doc["_id"] = res.inserted_id
        return Alert.model_validate(doc)

    async def update_alert(self, alert_id: str, fields: Dict[str, Any]) -> None:
        updates = {k: v for k, v in fields.items() if k in MUTABLE_FIELDS and v is not None}
        updates["updated_at"] = utc_now()
        try:
            res = await self.alerts.update_one(
                {"_id": coerce_object_id(alert_id)},
                {"$set": updates}
            )
        except PyMongoError as e:
            logger.error(f"알림 수정 실패: {e}", extra={"alert_id": alert_id})
            raise WriteError(f"Failed to update alert: {e}", record_id=alert_id) from e
        if res.matched_count == 0:
            raise RecordNotFoundError("alert", alert_id)

    async def subscribe_to_alert_changes(self) -> AlertSubscription:
        """Open a change stream on the alerts collection.

        `watch()` alone does not contact the server, so one `try_next()` is
        awaited here: the server-side stream exists before this returns, and
        a standalone server (no change streams) fails here with
        SubscriptionError instead of later inside the feed pump.
        """
        pipeline = [{"$match": {"operationType": {"$in": list(_OPERATION_KINDS)}}}]
        try:
            stream = self.alerts.watch(pipeline, full_document="updateLookup")
            first_change = await stream.try_next()
        except PyMongoError as e:
            logger.error(f"알림 변경 스트림 열기 실패 ({self.collection_name}): {e}")
            raise SubscriptionError(f"Failed to open change stream: {e}") from e
        return MongoAlertSubscription(stream, first_change)
