"""Unit tests for the rolling activity log."""

from __future__ import annotations

import logging

from liam_relay.serving.activity import ActivityLogHandler


def _logger(handler: ActivityLogHandler, name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    return logger


def test_keeps_only_newest_records() -> None:
    handler = ActivityLogHandler(capacity=3)
    logger = _logger(handler, "liam_relay.tests.capacity")
    for i in range(5):
        logger.info("event %d", i)
    assert [e["message"] for e in handler.snapshot()] == ["event 2", "event 3", "event 4"]


def test_snapshot_limit_and_fields() -> None:
    handler = ActivityLogHandler(capacity=10)
    logger = _logger(handler, "liam_relay.tests.fields")
    logger.info("first")
    logger.warning("second")

    (entry,) = handler.snapshot(limit=1)
    assert entry["message"] == "second"
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "liam_relay.tests.fields"
    assert handler.snapshot(limit=0) == []


def test_clear() -> None:
    handler = ActivityLogHandler()
    _logger(handler, "liam_relay.tests.clear").info("x")
    handler.clear()
    assert handler.snapshot() == []
