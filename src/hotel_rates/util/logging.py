from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

SHORT_ID_LENGTH = 6


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    payload: Dict[str, Any] = {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    payload.update(fields)
    logger.log(level, json.dumps(payload, default=str))


def short_id(value: str | None) -> str:
    """Trailing characters of an identifier, for log lines and previews."""
    if not value:
        return ""
    return value[-SHORT_ID_LENGTH:]
