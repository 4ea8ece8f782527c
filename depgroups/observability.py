"""Structured logging helpers for depgroups."""

from __future__ import annotations

import json
import logging
from typing import Any

LOGGER_NAME = "depgroups"

logger = logging.getLogger(LOGGER_NAME)


def log_event(*, event: str, level: int = logging.INFO, **extra: Any) -> None:
    """Emit a JSON log line describing a depgroups operation."""

    if not logger.isEnabledFor(level):
        return
    payload: dict[str, Any] = {"event": event}
    for key, value in extra.items():
        if value is not None:
            payload[key] = value
    logger.log(level, json.dumps(payload, sort_keys=True, default=str))
