"""In-process rolling activity log exposed to admins."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any

from liam_relay.config import settings

ROOT_LOGGER = "liam_relay"


class ActivityLogHandler(logging.Handler):
    """Keep the most recent *capacity* log records in memory."""

    def __init__(self, capacity: int = 200, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.records: deque[dict[str, Any]] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.records.append(
                {
                    "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": record.getMessage(),
                }
            )
        except Exception:
            self.handleError(record)

    def snapshot(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Return up to *limit* of the newest entries, oldest first."""
        self.acquire()
        try:
            entries = list(self.records)
        finally:
            self.release()
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    def clear(self) -> None:
        self.acquire()
        try:
            self.records.clear()
        finally:
            self.release()


ACTIVITY_LOG = ActivityLogHandler(settings.activity_log_size)


def install_activity_log(handler: ActivityLogHandler = ACTIVITY_LOG) -> ActivityLogHandler:
    """Attach *handler* to the package logger once; safe to call repeatedly."""
    logger = logging.getLogger(ROOT_LOGGER)
    if handler not in logger.handlers:
        logger.addHandler(handler)
    if logger.level == logging.NOTSET:
        logger.setLevel(settings.log_level.upper())
    return handler
