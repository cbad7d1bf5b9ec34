from .base import BaseDocument, utc_now, ensure_utc, coerce_object_id

__all__ = ["BaseDocument", "utc_now", "ensure_utc", "coerce_object_id"]
