from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import OperationFailure, PyMongoError

from admin_panel.domains.alerts.models import ChangeKind
from admin_panel.domains.alerts.repository import (
    AlertsRepository,
    MongoAlertSubscription,
    change_to_event,
)
from admin_panel.shared.exceptions import FetchError, RecordNotFoundError, SubscriptionError, WriteError
from support import AsyncCursor, at


def alert_doc(**overrides):
    doc = {
        "_id": ObjectId(),
        "message": "Servidor en mantenimiento",
        "type": "info",
        "active": True,
        "created_at": at(1),
        "updated_at": at(1),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def repository(mock_db):
    return AlertsRepository(mock_db, "alerts")


class TestChangeToEvent:
    def test_insert_maps_to_inserted(self):
        doc = alert_doc()
        event = change_to_event({"operationType": "insert", "fullDocument": doc})
        assert event.kind is ChangeKind.INSERTED
        assert event.record.id == str(doc["_id"])

    @pytest.mark.parametrize("operation", ["update", "replace"])
    def test_update_and_replace_map_to_updated(self, operation):
        event = change_to_event({"operationType": operation, "fullDocument": alert_doc(active=False)})
        assert event.kind is ChangeKind.UPDATED
        assert event.record.active is False

    def test_delete_is_skipped(self):
        assert change_to_event({"operationType": "delete", "documentKey": {"_id": ObjectId()}}) is None

    def test_missing_full_document_is_skipped(self):
        assert change_to_event({"operationType": "update", "fullDocument": None}) is None

    def test_unparseable_document_is_skipped(self):
        assert change_to_event({"operationType": "insert", "fullDocument": {"_id": ObjectId()}}) is None


class TestAlertsRepository:
    @pytest.mark.asyncio
    async def test_fetch_active_alerts_queries_active_sorted(self, repository, mock_db):
        cursor = AsyncCursor([alert_doc(), alert_doc()])
        mock_db.collection.find.return_value = cursor

        alerts = await repository.fetch_active_alerts()

        assert len(alerts) == 2
        mock_db.collection.find.assert_called_once_with({"active": True})
        assert cursor.sort_args == ("created_at", DESCENDING)

    @pytest.mark.asyncio
    async def test_fetch_alerts_reads_everything(self, repository, mock_db):
        mock_db.collection.find.return_value = AsyncCursor([alert_doc(active=False)])
        alerts = await repository.fetch_alerts()
        mock_db.collection.find.assert_called_once_with({})
        assert alerts[0].active is False

    @pytest.mark.asyncio
    async def test_fetch_skips_records_with_blank_message(self, repository, mock_db):
        mock_db.collection.find.return_value = AsyncCursor([alert_doc(message="   "), alert_doc(message="visible")])
        alerts = await repository.fetch_active_alerts()
        assert [a.message for a in alerts] == ["visible"]

    @pytest.mark.asyncio
    async def test_get_alert_with_blank_message_is_not_found(self, repository, mock_db):
        mock_db.collection.find_one = AsyncMock(return_value=alert_doc(message=""))
        with pytest.raises(RecordNotFoundError):
            await repository.get_alert(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_fetch_failure_raises_fetch_error(self, repository, mock_db):
        mock_db.collection.find.return_value = AsyncCursor([], error=PyMongoError("timeout"))
        with pytest.raises(FetchError) as exc_info:
            await repository.fetch_active_alerts()
        assert exc_info.value.collection == "alerts"

    @pytest.mark.asyncio
    async def test_get_alert_not_found(self, repository, mock_db):
        mock_db.collection.find_one = AsyncMock(return_value=None)
        with pytest.raises(RecordNotFoundError):
            await repository.get_alert(str(ObjectId()))

    @pytest.mark.asyncio
    async def test_insert_alert_sets_timestamps(self, repository, mock_db):
        oid = ObjectId()
        mock_db.collection.insert_one = AsyncMock(return_value=Mock(inserted_id=oid))

        alert = await repository.insert_alert({"message": "Nuevo evento", "type": "success", "active": True})

        doc = mock_db.collection.insert_one.call_args.args[0]
        assert doc["created_at"] == doc["updated_at"]
        assert alert.id == str(oid)
        assert alert.type.value == "success"

    @pytest.mark.asyncio
    async def test_insert_failure_raises_write_error(self, repository, mock_db):
        mock_db.collection.insert_one = AsyncMock(side_effect=PyMongoError("not primary"))
        with pytest.raises(WriteError):
            await repository.insert_alert({"message": "x"})

    @pytest.mark.asyncio
    async def test_update_alert_sets_only_mutable_fields(self, repository, mock_db):
        oid = ObjectId()
        mock_db.collection.update_one = AsyncMock(return_value=Mock(matched_count=1))

        await repository.update_alert(str(oid), {"active": False, "created_at": at(9)})

        query, update = mock_db.collection.update_one.call_args.args
        assert query == {"_id": oid}
        assert update["$set"]["active"] is False
        assert "updated_at" in update["$set"]
        assert "created_at" not in update["$set"]

    @pytest.mark.asyncio
    async def test_update_unknown_id_raises_not_found(self, repository, mock_db):
        mock_db.collection.update_one = AsyncMock(return_value=Mock(matched_count=0))
        with pytest.raises(RecordNotFoundError):
            await repository.update_alert(str(ObjectId()), {"active": False})

    @pytest.mark.asyncio
    async def test_update_failure_raises_write_error(self, repository, mock_db):
        mock_db.collection.update_one = AsyncMock(side_effect=PyMongoError("timeout"))
        with pytest.raises(WriteError) as exc_info:
            await repository.update_alert("abc", {"active": False})
        assert exc_info.value.record_id == "abc"

    @pytest.mark.asyncio
    async def test_subscribe_opens_change_stream_with_full_document(self, repository, mock_db):
        stream = AsyncMock()
        stream.try_next = AsyncMock(return_value=None)
        mock_db.collection.watch.return_value = stream
        subscription = await repository.subscribe_to_alert_changes()
        assert isinstance(subscription, MongoAlertSubscription)
        assert mock_db.collection.watch.call_args.kwargs == {"full_document": "updateLookup"}
        # the server-side stream is established before returning
        stream.try_next.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_subscribe_on_standalone_server_fails_immediately(self, repository, mock_db):
        stream = AsyncMock()
        stream.try_next = AsyncMock(
            side_effect=OperationFailure("The $changeStream stage is only supported on replica sets")
        )
        mock_db.collection.watch.return_value = stream
        with pytest.raises(SubscriptionError):
            await repository.subscribe_to_alert_changes()

    @pytest.mark.asyncio
    async def test_change_read_while_opening_is_yielded_first(self, repository, mock_db):
        stream = AsyncMock()
        stream.try_next = AsyncMock(return_value={"operationType": "insert", "fullDocument": alert_doc(message="primero")})
        stream.next = AsyncMock(side_effect=[
            {"operationType": "update", "fullDocument": alert_doc(message="segundo")},
        ])
        mock_db.collection.watch.return_value = stream

        subscription = await repository.subscribe_to_alert_changes()
        events = [event async for event in subscription]

        assert [e.record.message for e in events] == ["primero", "segundo"]
        assert [e.kind for e in events] == [ChangeKind.INSERTED, ChangeKind.UPDATED]

    @pytest.mark.asyncio
    async def test_subscribe_failure_raises_subscription_error(self, repository, mock_db):
        mock_db.collection.watch.side_effect = OperationFailure("change streams need a replica set")
        with pytest.raises(SubscriptionError):
            await repository.subscribe_to_alert_changes()


class TestMongoAlertSubscription:
    @pytest.mark.asyncio
    async def test_yields_events_and_skips_others(self):
        stream = AsyncMock()
        stream.next = AsyncMock(side_effect=[
            {"operationType": "delete", "documentKey": {"_id": ObjectId()}},
            {"operationType": "insert", "fullDocument": alert_doc(message="uno")},
        ])
        subscription = MongoAlertSubscription(stream)

        events = [event async for event in subscription]

        assert [e.record.message for e in events] == ["uno"]

    @pytest.mark.asyncio
    async def test_stream_error_raises_subscription_error(self):
        stream = AsyncMock()
        stream.next = AsyncMock(side_effect=PyMongoError("cursor killed"))
        with pytest.raises(SubscriptionError):
            await MongoAlertSubscription(stream).__anext__()

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent_and_ends_iteration(self):
        stream = AsyncMock()
        subscription = MongoAlertSubscription(stream)
        await subscription.aclose()
        await subscription.aclose()
        stream.close.assert_awaited_once()
        with pytest.raises(StopAsyncIteration):
            await subscription.__anext__()
