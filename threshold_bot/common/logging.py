from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit

# RPC and price endpoints may carry credentials in the query string.
URL_TOKEN_RE = re.compile(r"https?://[^\s\"'<>]+", re.IGNORECASE)
# Wallet secrets arrive as Solana CLI key files: a JSON array of 64 byte values.
SECRET_KEY_ARRAY_RE = re.compile(r"\[\s*(?:\d{1,3}\s*,\s*){31,}\d{1,3}\s*\]")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _strip_url_query(token: str) -> str:
    trailing = ""
    while token and token[-1] in ".,);]}":
        trailing = token[-1] + trailing
        token = token[:-1]

    parsed = urlsplit(token)
    if parsed.netloc:
        token = urlunsplit((parsed.scheme, parsed.netloc, parsed.path, "", ""))
    return f"{token}{trailing}"


def sanitize_text(value: str) -> str:
    masked = SECRET_KEY_ARRAY_RE.sub("[***]", value)
    return URL_TOKEN_RE.sub(lambda match: _strip_url_query(match.group(0)), masked)


def sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_text(value)
    if isinstance(value, dict):
        return {key: sanitize_value(child) for key, child in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_value(item) for item in value)
    return value


def log_event(
    logger: logging.Logger,
    *,
    level: str,
    event: str,
    message: str,
    **fields: Any,
) -> None:
    """Log ``message`` with ``event`` and ``fields`` attached as record attributes.

    ``level="exception"`` logs at error level with the active traceback.
    """
    extra = {key: sanitize_value(value) for key, value in fields.items()}
    extra["event"] = event

    if level == "exception":
        logger.exception(sanitize_text(message), extra=extra)
        return
    logger.log(_LEVELS.get(level, logging.INFO), sanitize_text(message), extra=extra)
