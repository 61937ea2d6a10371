from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from threshold_bot.common import sanitize_text, sanitize_value

LOGGER_NAME = "threshold_bot"

STANDARD_LOG_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage()),
        }

        for key, value in record.__dict__.items():
            if key in STANDARD_LOG_FIELDS or key.startswith("_"):
                continue
            if key in {"message", "asctime"}:
                continue
            payload[key] = sanitize_value(value)

        if record.exc_info:
            payload["exception"] = sanitize_text(self.formatException(record.exc_info))

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(
    *,
    log_file: str = "bot.log",
    level: str = "INFO",
    name: str = LOGGER_NAME,
) -> logging.Logger:
    logger = logging.getLogger(name)
    resolved_level = logging.getLevelName((level or "INFO").upper())
    logger.setLevel(resolved_level if isinstance(resolved_level, int) else logging.INFO)

    formatter = JsonFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    file_error: OSError | None = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as error:
            file_error = error

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False

    if file_error is not None:
        logger.warning(
            "Log file is unavailable; logging to console only",
            extra={"event": "log_file_unavailable", "log_file": log_file, "error": str(file_error)},
        )

    return logger
