"""
Store-related exception classes.

Every failure of the remote store adapter and of local input validation is
raised as one of these typed outcomes so callers can decide on messaging.
"""

from typing import Optional, Dict, Any, List


class AdminPanelError(Exception):
    """Base exception for all admin panel errors"""

    error_code = "ADMIN_PANEL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def __str__(self):
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class FetchError(AdminPanelError):
    """Bulk read from the store failed"""

    error_code = "FETCH_ERROR"

    def __init__(self, message: str = "Failed to read records", collection: Optional[str] = None):
        super().__init__(message, status_code=503, details={"collection": collection} if collection else None)
        self.collection = collection


class WriteError(AdminPanelError):
    """Insert, update or delete against the store failed"""

    error_code = "WRITE_ERROR"

    def __init__(self, message: str = "Failed to write record", record_id: Optional[str] = None, status_code: int = 502):
        super().__init__(message, status_code=status_code, details={"record_id": record_id} if record_id else None)
        self.record_id = record_id


class RecordNotFoundError(WriteError):
    """Target record does not exist"""

    error_code = "RECORD_NOT_FOUND"

    def __init__(self, resource: str, record_id: str):
        super().__init__(f"{resource} with id '{record_id}' not found", record_id=record_id, status_code=404)
        self.resource = resource


class DismissError(WriteError):
    """Soft-delete of an alert failed; the optimistic removal was rolled back"""

    error_code = "DISMISS_ERROR"

    def __init__(self, alert_id: str, reason: Optional[str] = None):
        message = f"Failed to dismiss alert '{alert_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, record_id=alert_id)
        self.alert_id = alert_id


class SubscriptionError(AdminPanelError):
    """Change stream could not be opened or broke while reading"""

    error_code = "SUBSCRIPTION_ERROR"

    def __init__(self, message: str = "Change stream unavailable"):
        super().__init__(message, status_code=503)


class ValidationError(AdminPanelError):
    """Local input failed a rule before any store call"""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation failed",
        field_name: Optional[str] = None,
        validation_errors: Optional[List[str]] = None
    ):
        super().__init__(message, status_code=422)
        self.field_name = field_name
        self.validation_errors = validation_errors or []
