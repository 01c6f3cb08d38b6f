"""
Structured Logging Configuration Module

Ledger components log under the ``ledger`` logger tree. Audit-relevant events
go through log_action(), which attaches action, resource, correlation id and
extra fields that JSONFormatter renders as top-level JSON keys.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional

# Record attributes promoted to top-level keys of a JSON log line
STRUCTURED_FIELDS = ("correlation_id", "action", "resource", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line"""

    def format(self, record):
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", log_format: str = "json",
                  logger_name: str = "ledger") -> logging.Logger:
    """
    Attach a single stream handler to the application logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" for structured output, anything else for plain text
        logger_name: Root of the logger tree to configure

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False
    return logger


def get_logger(name: str = "ledger") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               action: Optional[str] = None, resource: Optional[str] = None,
               correlation_id: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a message carrying structured audit fields.

    Args:
        logger: Logger to emit on
        level: Level name (info, warning, error, ...)
        message: Human-readable message
        action: Operation being performed, e.g. register_movement
        resource: Affected resource, e.g. account:12
        correlation_id: Request id linking all lines of one API call
        extra: Additional structured data
    """
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    fields = {"action": action, "resource": resource,
              "correlation_id": correlation_id, "extra": extra}
    record = logger.makeRecord(logger.name, levelno, __name__, 0, message, (), None)
    for name, value in fields.items():
        if value:
            setattr(record, name, value)

    logger.handle(record)
