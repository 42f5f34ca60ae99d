"""Loguru helpers for consistent console and file logging."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = "<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <8}</level> | <level>{message}</level>"

_SINK_IDS: dict[str, int] = {}


def configure_logging(level: str = "INFO", log_file: str | Path | None = None) -> Path | None:
    """Replace the default stderr sink and optionally add a rotating file sink."""
    if "console" in _SINK_IDS:
        logger.remove(_SINK_IDS.pop("console"))
    else:
        logger.remove()
    _SINK_IDS["console"] = logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)
    logger.enable("dialogbridge")
    if log_file is None:
        return None
    return ensure_rotating_log_file(Path(log_file).expanduser(), level=level)


def ensure_rotating_log_file(log_path: Path, level: str = "INFO") -> Path:
    """Ensure a rotating log sink for the given path."""
    key = str(log_path)
    if key in _SINK_IDS:
        return log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        key,
        level=level,
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[key] = sink_id
    return log_path
