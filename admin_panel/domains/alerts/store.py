"""
Remote store contract for alerts.

The feed engine and the management service depend only on these abstract
classes; the MongoDB implementation lives in `repository.py`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .models import Alert, AlertChangeEvent


class AlertSubscription(ABC):
    """Live stream of alert change events.

    Iterating yields `AlertChangeEvent` objects until the stream ends or
    `aclose()` is called. Broken streams raise `SubscriptionError`.
    """

    def __aiter__(self) -> "AlertSubscription":
        return self

    @abstractmethod
    async def __anext__(self) -> AlertChangeEvent:
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release the underlying stream. Safe to call more than once."""


class AlertStore(ABC):
    """Operations the alert core needs from the remote store."""

    @abstractmethod
    async def fetch_active_alerts(self) -> List[Alert]:
        """Active alerts ordered by created_at descending. Raises FetchError."""

    @abstractmethod
    async def fetch_alerts(self) -> List[Alert]:
        """All alerts, active or not, ordered by created_at descending. Raises FetchError."""

    @abstractmethod
    async def get_alert(self, alert_id: str) -> Alert:
        """Raises RecordNotFoundError or FetchError."""

    @abstractmethod
    async def insert_alert(self, fields: Dict[str, Any]) -> Alert:
        """Raises WriteError."""

    @abstractmethod
    async def update_alert(self, alert_id: str, fields: Dict[str, Any]) -> None:
        """Partial update of message/type/active. Raises WriteError."""

    @abstractmethod
    async def subscribe_to_alert_changes(self) -> AlertSubscription:
        """Raises SubscriptionError."""
