"""JSON console logging for the collector process."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_text

LOGGER_NAME = "darksky_influx"


class JsonConsoleFormatter(logging.Formatter):
    """One JSON object per line, with configured secrets redacted.

    With `include_source` every event also names the module and line that
    emitted it, which is what COLLECTOR_DEBUG runs want next to the payload dump.
    """

    def __init__(self, secrets: Iterable[str | None] = (), include_source: bool = False) -> None:
        super().__init__()
        self.secrets = tuple(secret for secret in secrets if secret)
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_text(record.getMessage(), self.secrets),
        }
        if self.include_source:
            event["source"] = f"{record.module}:{record.lineno}"
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info), self.secrets)
        return json.dumps(event, default=str)


def setup_logger(
    name: str = LOGGER_NAME,
    *,
    debug: bool = False,
    secrets: Iterable[str | None] = (),
) -> logging.Logger:
    """Configure the collector logger from the loaded settings.

    `debug` mirrors COLLECTOR_DEBUG. `secrets` are literal values (API key,
    database password) scrubbed from every message and traceback. Repeated
    calls reconfigure the existing handler instead of adding another one.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    formatter = JsonConsoleFormatter(secrets=secrets, include_source=debug)
    handler = next(
        (h for h in logger.handlers if isinstance(h.formatter, JsonConsoleFormatter)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler()
        logger.addHandler(handler)
    handler.setFormatter(formatter)
    return logger
