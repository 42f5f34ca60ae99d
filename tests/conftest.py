"""Pytest hooks and fixtures."""

import pytest
from loguru import logger

from dialogbridge.promise import ManualScheduler, use_scheduler


class LogCapture(list):
    """Loguru records captured during a test."""

    def messages(self, level: str | None = None) -> list[str]:
        return [r["message"] for r in self if level is None or r["level"].name == level]


@pytest.fixture
def log_records():
    """Capture loguru records (DEBUG and above) for the duration of a test."""
    records = LogCapture()
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG", format="{message}")
    yield records
    logger.remove(sink_id)


@pytest.fixture
def scheduler():
    """A manual scheduler made current for promises created by the test."""
    manual = ManualScheduler()
    with use_scheduler(manual):
        yield manual
