"""
Structured JSON logging for the Slack Lambda receiver.

Every entry is one JSON object on stdout (CloudWatch Logs Insights friendly):

    {"level": "WARN", "event_type": "signature_verification_failed",
     "service": "slack-lambda-receiver", "timestamp": 1700000000.0,
     "request_id": "...", ...}

``request_id`` is the Lambda aws_request_id of the invocation being handled.
It is held in a context variable so concurrent invocations on one loop
never see each other's id.
"""

import contextvars
import itertools
import json
import logging
import sys
import time
from typing import Any, Optional

LOGGER_NAME = "slack-lambda-receiver"

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)
_instance_ids = itertools.count(1)


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever sys.stdout is at emit time, so pytest capsys sees it."""

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stdout
        super().emit(record)


def _configure_root_logger() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return
    logger.setLevel(logging.INFO)
    logger.propagate = False
    handler = _StdoutHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)


_configure_root_logger()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the receiver logger, or a child of it when name is given."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def new_instance_logger(prefix: str, level: str) -> logging.Logger:
    """Child logger owned by one object, so its level does not leak to others."""
    logger = get_logger(f"{prefix}.{next(_instance_ids)}")
    set_log_level(logger, level)
    return logger


def set_log_level(logger: logging.Logger, level: str) -> None:
    """Apply a level name (DEBUG, INFO, WARN, ERROR); unknown names mean INFO."""
    name = level.upper() if level else "INFO"
    if name == "WARN":
        name = "WARNING"
    logger.setLevel(getattr(logging, name, logging.INFO))


def set_request_id(request_id: Optional[str]) -> contextvars.Token:
    """Tag subsequent log entries in this context with request_id."""
    return _request_id.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id.reset(token)


def log(
    logger: logging.Logger,
    level: str,
    event_type: str,
    data: dict,
    *,
    service: str = LOGGER_NAME,
) -> None:
    """Emit one structured entry; WARN maps to logger.warning."""
    entry: dict[str, Any] = {
        "level": level,
        "event_type": event_type,
        "service": service,
        "timestamp": time.time(),
    }
    request_id = _request_id.get()
    if request_id:
        entry["request_id"] = request_id
    entry.update(data)

    level_name = "warning" if level.upper() == "WARN" else level.lower()
    emit = getattr(logger, level_name, logger.info)
    emit(json.dumps(entry, default=str, ensure_ascii=False))
