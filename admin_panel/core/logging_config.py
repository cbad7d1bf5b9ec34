"""
Logging setup for the admin panel.

Console output is plain text in debug mode and JSON lines otherwise. When
`log_dir` is configured, rotating `app.log` / `error.log` files are written
as JSON as well. Every JSON line carries the current request id so REST
calls and feed sessions can be followed across modules.
"""

import json
import logging
import logging.handlers
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import settings
from .request_context import current_request_id


# LogRecord attributes that are never copied into the "extra" object
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

# extras lifted to the top level of the JSON line
_PROMOTED = ("request_id", "alert_id", "component", "operation")

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}

        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _PROMOTED:
            value = extra.pop(key, None)
            if key == "request_id" and value is None:
                value = current_request_id()
            if value is not None:
                payload[key] = value

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }
        if extra:
            payload["extra"] = extra

        return json.dumps(payload, ensure_ascii=False, default=str)


class LoggingManager:
    """Installs and removes the root handlers; setup is applied once"""

    def __init__(self):
        self.configured = False
        self.handlers: List[logging.Handler] = []

    def _rotating(self, path: Path, level: int, max_bytes: int, backups: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(StructuredFormatter())
        return handler

    def setup_logging(self,
                      log_level: str = "INFO",
                      log_dir: Optional[str] = None,
                      max_file_size: int = 10 * 1024 * 1024,
                      backup_count: int = 5,
                      enable_json: bool = True) -> None:
        if self.configured:
            return

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(StructuredFormatter() if enable_json else logging.Formatter(PLAIN_FORMAT))
        self.handlers.append(console)

        if log_dir:
            directory = Path(log_dir)
            directory.mkdir(parents=True, exist_ok=True)
            self.handlers.append(self._rotating(directory / "app.log", logging.NOTSET, max_file_size, backup_count))
            self.handlers.append(self._rotating(directory / "error.log", logging.ERROR, max_file_size, backup_count))

        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(log_level.upper())
        for handler in self.handlers:
            root.addHandler(handler)

        # motor/pymongo heartbeat chatter
        logging.getLogger("pymongo").setLevel(logging.WARNING)

        self.configured = True
        logging.getLogger(__name__).info(f"로깅 설정 완료 (level={log_level}, dir={log_dir or '-'})")

    def close(self) -> None:
        root = logging.getLogger()
        for handler in self.handlers:
            root.removeHandler(handler)
            handler.close()
        self.handlers.clear()
        self.configured = False


logging_manager = LoggingManager()


def setup_logging() -> None:
    """Configure logging from application settings"""
    logging_manager.setup_logging(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        enable_json=not settings.debug
    )
