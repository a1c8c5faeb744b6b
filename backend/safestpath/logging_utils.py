from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from tempfile import gettempdir
from typing import Any, Literal

from pythonjsonlogger import jsonlogger

from .settings import settings

LOGGER_NAME = "safestpath"
LOG_FILE_NAME = "planner.log.jsonl"

# Where in a planning request an event was emitted.
Stage = Literal["graph", "costs", "routes", "plan", "http"]


class PlannerJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with the level and timestamp always present, next to the event fields."""

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("ts", self.formatTime(record))
        log_record["level"] = record.levelname.lower()


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _resolve_log_dir(configured_out_dir: str) -> Path | None:
    """First writable directory among ``<out_dir>/logs``, ``./out/logs`` and a temp fallback."""
    for log_dir in (
        Path(configured_out_dir) / "logs",
        Path.cwd() / "out" / "logs",
        Path(gettempdir()) / LOGGER_NAME / "logs",
    ):
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            marker = log_dir / ".writetest"
            marker.touch(exist_ok=True)
            marker.unlink(missing_ok=True)
        except OSError:
            continue
        return log_dir
    return None


@lru_cache(maxsize=1)
def get_logger() -> logging.Logger:
    """The package logger, configured on first use only (reloaders import twice)."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_parse_level(settings.log_level))
    logger.propagate = False

    formatter = PlannerJsonFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_dir = _resolve_log_dir(settings.out_dir)
    if log_dir is not None:
        try:
            handlers.append(logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"))
        except OSError:
            pass
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def log_event(event: str, *, stage: Stage | None = None, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one structured record: ``event`` is both the message and a top-level key."""
    extra: dict[str, Any] = {"event": event, **fields}
    if stage is not None:
        extra["stage"] = stage
    get_logger().log(level, event, extra=extra)
