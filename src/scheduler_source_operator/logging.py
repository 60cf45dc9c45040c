"""Structured logging configuration for the Scheduler Source Operator."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .utils.errors import sanitize_dict

# Libraries whose own output is only useful when something goes wrong
QUIET_LOGGERS = ("kubernetes", "urllib3")


class JsonFormatter(logging.Formatter):
    """Render every record as a single JSON object.

    Messages that already are JSON objects (see log_resource_event) are
    merged into the record instead of being nested as a string.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }

        message = record.getMessage()
        try:
            payload = json.loads(message)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            entry.update(payload)
        else:
            entry["message"] = message

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_structured_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger.

    Args:
        level: Name of the root log level, e.g. "DEBUG"
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        handlers=[handler],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured event about one resource."""
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def sanitize_secrets(fields: dict[str, Any]) -> dict[str, Any]:
    """Redact credential-like fields, including nested ones."""
    return sanitize_dict(fields)
