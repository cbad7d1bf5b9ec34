from __future__ import annotations

import logging
from typing import Any, Dict, List

from ...shared.exceptions import ValidationError
from .models import Alert, AlertType
from .schemas import AlertCreateRequest, AlertUpdateRequest
from .store import AlertStore

logger = logging.getLogger(__name__)


def validate_alert_fields(fields: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Check message/type before anything is sent to the store.

    Returns the cleaned fields; raises ValidationError on the first violation.
    """
    cleaned: Dict[str, Any] = {}

    if "message" in fields or not partial:
        message = fields.get("message")
        if message is None or not str(message).strip():
            raise ValidationError("Alert message must not be empty", field_name="message")
        cleaned["message"] = message

    if fields.get("type") is not None or not partial:
        alert_type = fields.get("type")
        if alert_type not in AlertType.values():
            raise ValidationError(
                f"Alert type must be one of {', '.join(AlertType.values())}",
                field_name="type",
                validation_errors=[f"unknown type: {alert_type}"]
            )
        cleaned["type"] = alert_type

    if fields.get("active") is not None:
        cleaned["active"] = bool(fields["active"])

    return cleaned


class AlertsService:
    """Administrator CRUD over every alert.

    Each mutation is followed by a full reload; the reloaded list is returned.
    """

    def __init__(self, store: AlertStore):
        self.store = store

    async def list_alerts(self) -> List[Alert]:
        return await self.store.fetch_alerts()

    async def list_active_alerts(self) -> List[Alert]:
        return await self.store.fetch_active_alerts()

    async def get_alert(self, alert_id: str) -> Alert:
        return await self.store.get_alert(alert_id)

    async def create_alert(self, request: AlertCreateRequest) -> List[Alert]:
        fields = validate_alert_fields(request.model_dump())
        alert = await self.store.insert_alert(fields)
        logger.info(f"알림 생성: {alert.id}", extra={"alert_id": alert.id})
        return await self.list_alerts()

    async def update_alert(self, alert_id: str, request: AlertUpdateRequest) -> List[Alert]:
        fields = validate_alert_fields(request.model_dump(exclude_unset=True), partial=True)
        if fields:
            await self.store.update_alert(alert_id, fields)
            logger.info(f"알림 수정: {sorted(fields)}", extra={"alert_id": alert_id})
        return await self.list_alerts()

    async def set_active(self, alert_id: str, active: bool) -> List[Alert]:
        await self.store.update_alert(alert_id, {"active": active})
        logger.info(f"알림 활성 상태 변경: {active}", extra={"alert_id": alert_id})
        return await self.list_alerts()

    async def toggle_active(self, alert_id: str) -> List[Alert]:
        current = await self.store.get_alert(alert_id)
        return await self.set_active(alert_id, not current.active)

    async def dismiss_alert(self, alert_id: str) -> None:
        """Soft-delete without a viewer session."""
        await self.store.update_alert(alert_id, {"active": False})
        logger.info("알림 닫기", extra={"alert_id": alert_id})
