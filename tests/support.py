"""
Test support: in-memory alert store with a queue-backed change stream,
alert factories and a motor cursor stand-in.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId

from admin_panel.domains.alerts.models import Alert, AlertChangeEvent, ChangeKind
from admin_panel.domains.alerts.store import AlertStore, AlertSubscription
from admin_panel.shared.exceptions import RecordNotFoundError, SubscriptionError
from admin_panel.shared.models.base import utc_now


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    """BASE_TIME + seconds"""
    return BASE_TIME + timedelta(seconds=seconds)


def make_alert(
    alert_id: str,
    created: int,
    active: bool = True,
    message: Optional[str] = None,
    updated: Optional[int] = None,
    alert_type: str = "info"
) -> Alert:
    return Alert(
        id=alert_id,
        message=message or f"alert {alert_id}",
        type=alert_type,
        active=active,
        created_at=at(created),
        updated_at=at(updated) if updated is not None else None,
    )


def inserted(record: Alert) -> AlertChangeEvent:
    return AlertChangeEvent(kind=ChangeKind.INSERTED, record=record)


def updated(record: Alert) -> AlertChangeEvent:
    return AlertChangeEvent(kind=ChangeKind.UPDATED, record=record)


_END = object()


class FakeSubscription(AlertSubscription):
    """Change stream fed by `push`; `fail` breaks it with SubscriptionError."""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def push(self, event: AlertChangeEvent) -> None:
        self.queue.put_nowait(event)

    def fail(self, message: str = "stream broken") -> None:
        self.queue.put_nowait(SubscriptionError(message))

    def end(self) -> None:
        self.queue.put_nowait(_END)

    async def __anext__(self) -> AlertChangeEvent:
        if self.closed:
            raise StopAsyncIteration
        item = await self.queue.get()
        if item is _END or self.closed:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.queue.put_nowait(_END)


class FakeAlertStore(AlertStore):
    """
    In-memory AlertStore.

    Writes are echoed to every open subscription unless `echo` is False.
    Set `fetch_error` / `write_error` / `subscribe_errors` to make calls fail,
    or clear `write_gate` to hold `update_alert` until it is set again.
    Clearing `fetch_gate` holds `fetch_active_alerts` after it has taken its
    result, like a bulk read that is still in flight.
    """

    def __init__(self, alerts: Optional[List[Alert]] = None, echo: bool = True):
        self.records: Dict[str, Alert] = {alert.id: alert for alert in (alerts or [])}
        self.echo = echo
        self.subscriptions: List[FakeSubscription] = []
        self.updates: List[tuple] = []
        self.fetch_calls = 0
        self.fetch_error: Optional[Exception] = None
        self.write_error: Optional[Exception] = None
        self.subscribe_errors: List[Exception] = []
        self.write_gate = asyncio.Event()
        self.write_gate.set()
        self.fetch_gate = asyncio.Event()
        self.fetch_gate.set()

    @property
    def subscription(self) -> FakeSubscription:
        return self.subscriptions[-1]

    def _sorted(self, records) -> List[Alert]:
        return sorted(records, key=lambda alert: alert.created_at, reverse=True)

    def _broadcast(self, event: AlertChangeEvent) -> None:
        if not self.echo:
            return
        for subscription in self.subscriptions:
            if not subscription.closed:
                subscription.push(event)

    async def fetch_active_alerts(self) -> List[Alert]:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        result = self._sorted(a for a in self.records.values() if a.active)
        await self.fetch_gate.wait()
        return result

    async def fetch_alerts(self) -> List[Alert]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return self._sorted(self.records.values())

    async def get_alert(self, alert_id: str) -> Alert:
        if alert_id not in self.records:
            raise RecordNotFoundError("alert", alert_id)
        return self.records[alert_id]

    async def insert_alert(self, fields: Dict[str, Any]) -> Alert:
        if self.write_error is not None:
            raise self.write_error
        now = utc_now()
        alert = Alert(id=str(ObjectId()), created_at=now, updated_at=now, **fields)
        self.records[alert.id] = alert
        self._broadcast(inserted(alert))
        return alert

    async def update_alert(self, alert_id: str, fields: Dict[str, Any]) -> None:
        self.updates.append((alert_id, dict(fields)))
        await self.write_gate.wait()
        if self.write_error is not None:
            raise self.write_error
        if alert_id not in self.records:
            raise RecordNotFoundError("alert", alert_id)
        record = self.records[alert_id].model_copy(update={**fields, "updated_at": utc_now()})
        self.records[alert_id] = record
        self._broadcast(updated(record))

    async def subscribe_to_alert_changes(self) -> AlertSubscription:
        if self.subscribe_errors:
            raise self.subscribe_errors.pop(0)
        subscription = FakeSubscription()
        self.subscriptions.append(subscription)
        return subscription


async def settle(rounds: int = 5) -> None:
    """Let background tasks (the feed pump) run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class AsyncCursor:
    """Minimal stand-in for a motor cursor: sort() chains, async-iterates docs"""

    def __init__(self, docs: List[Dict[str, Any]], error: Optional[Exception] = None):
        self.docs = list(docs)
        self.error = error
        self.sort_args = None

    def sort(self, *args, **kwargs):
        self.sort_args = args
        return self

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        if self.error is not None:
            raise self.error
        for doc in self.docs:
            yield doc
