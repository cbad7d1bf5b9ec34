"""
Pure merge functions for the viewer's alert feed.

Every function takes the current `FeedState` and returns a new one; nothing
here performs I/O, so the ordering, deduplication and dismiss rules can be
tested without a store or an event loop.

Visible list rules:
- only `active` alerts, each id at most once
- ordered by `created_at` descending; among equal timestamps the most
  recently observed entry comes first
- a record dated (`updated_at`, else `created_at`) at or before a local
  dismiss of the same id is ignored, whether the dismiss is still pending
  or already confirmed by the store
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .models import Alert, AlertChangeEvent, ChangeKind


@dataclass(frozen=True)
class DismissIntent:
    """A dismiss issued locally and not yet acknowledged by the store."""
    dismissed_at: datetime
    removed: Optional[Alert] = None
    # set once a record newer than the dismiss has been applied for the same id
    superseded: bool = False


@dataclass(frozen=True)
class FeedState:
    alerts: Tuple[Alert, ...] = ()
    pending: Mapping[str, DismissIntent] = field(default_factory=dict)
    dismissed: Mapping[str, datetime] = field(default_factory=dict)

    @property
    def visible_ids(self) -> Tuple[str, ...]:
        return tuple(alert.id for alert in self.alerts)


def _index_of(alerts: Tuple[Alert, ...], alert_id: str) -> Optional[int]:
    for index, alert in enumerate(alerts):
        if alert.id == alert_id:
            return index
    return None


def _without(alerts: Tuple[Alert, ...], alert_id: str) -> Tuple[Alert, ...]:
    return tuple(alert for alert in alerts if alert.id != alert_id)


def insert_sorted(alerts: Tuple[Alert, ...], record: Alert) -> Tuple[Alert, ...]:
    """Insert ahead of the first entry that is not newer than `record`."""
    for index, existing in enumerate(alerts):
        if existing.created_at <= record.created_at:
            return alerts[:index] + (record,) + alerts[index:]
    return alerts + (record,)


def dismiss_watermark(state: FeedState, alert_id: str) -> Optional[datetime]:
    marks = []
    intent = state.pending.get(alert_id)
    if intent is not None:
        marks.append(intent.dismissed_at)
    confirmed = state.dismissed.get(alert_id)
    if confirmed is not None:
        marks.append(confirmed)
    return max(marks) if marks else None


def is_stale(state: FeedState, record: Alert) -> bool:
    watermark = dismiss_watermark(state, record.id)
    return watermark is not None and record.observed_at <= watermark


def _supersede(state: FeedState, alert_id: str) -> FeedState:
    intent = state.pending.get(alert_id)
    if intent is None or intent.superseded:
        return state
    pending: Dict[str, DismissIntent] = dict(state.pending)
    pending[alert_id] = replace(intent, superseded=True)
    return replace(state, pending=pending)


def apply_snapshot(
    state: FeedState,
    records: Iterable[Alert],
    replay: Iterable[AlertChangeEvent] = ()
) -> FeedState:
    """Replace the visible list with a bulk read result.

    `replay` holds the change events delivered while the read was in flight,
    in delivery order. They are applied on top of the read result unless the
    read already returned a newer version of the same record.
    """
    visible = []
    seen = set()
    # sorted() is stable, so store order decides ties
    for record in sorted(records, key=lambda alert: alert.created_at, reverse=True):
        if not record.active or record.id in seen:
            continue
        if is_stale(state, record):
            continue
        seen.add(record.id)
        visible.append(record)
        state = _supersede(state, record.id)
    state = replace(state, alerts=tuple(visible))

    for event in replay:
        index = _index_of(state.alerts, event.record.id)
        if index is not None and state.alerts[index].observed_at > event.record.observed_at:
            continue
        state = apply_event(state, event)
    return state


def apply_event(state: FeedState, event: AlertChangeEvent) -> FeedState:
    """Apply one change notification to the visible list."""
    record = event.record
    if is_stale(state, record):
        return state

    state = _supersede(state, record.id)
    index = _index_of(state.alerts, record.id)

    if event.kind is ChangeKind.INSERTED:
        # Duplicate deliveries and inactive inserts leave the list alone
        if not record.active or index is not None:
            return state
        return replace(state, alerts=insert_sorted(state.alerts, record))

    if not record.active:
        if index is None:
            return state
        return replace(state, alerts=_without(state.alerts, record.id))

    if index is None:
        return replace(state, alerts=insert_sorted(state.alerts, record))

    if state.alerts[index].created_at == record.created_at:
        alerts = list(state.alerts)
        alerts[index] = record
        return replace(state, alerts=tuple(alerts))

    return replace(state, alerts=insert_sorted(_without(state.alerts, record.id), record))


def begin_dismiss(state: FeedState, alert_id: str, dismissed_at: datetime) -> FeedState:
    """Record a pending dismiss and drop the alert from the visible list."""
    index = _index_of(state.alerts, alert_id)
    previous = state.pending.get(alert_id)
    if index is not None:
        removed = state.alerts[index]
    else:
        removed = previous.removed if previous else None

    pending: Dict[str, DismissIntent] = dict(state.pending)
    pending[alert_id] = DismissIntent(dismissed_at=dismissed_at, removed=removed)
    alerts = _without(state.alerts, alert_id) if index is not None else state.alerts
    return replace(state, alerts=alerts, pending=pending)


def confirm_dismiss(state: FeedState, alert_id: str) -> FeedState:
    """Store acknowledged the dismiss: keep only its watermark."""
    intent = state.pending.get(alert_id)
    if intent is None:
        return state
    pending = {key: value for key, value in state.pending.items() if key != alert_id}
    dismissed: Dict[str, datetime] = dict(state.dismissed)
    previous = dismissed.get(alert_id)
    dismissed[alert_id] = max(intent.dismissed_at, previous) if previous else intent.dismissed_at
    return replace(state, pending=pending, dismissed=dismissed)


def rollback_dismiss(state: FeedState, alert_id: str) -> FeedState:
    """Store rejected the dismiss: restore the alert unless newer state arrived meanwhile."""
    intent = state.pending.get(alert_id)
    if intent is None:
        return state
    pending = {key: value for key, value in state.pending.items() if key != alert_id}
    alerts = state.alerts
    if intent.removed is not None and not intent.superseded and _index_of(alerts, alert_id) is None:
        alerts = insert_sorted(alerts, intent.removed)
    return replace(state, alerts=alerts, pending=pending)
