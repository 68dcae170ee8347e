"""
Logging setup for the ``apstrakit`` logger tree.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
attached here, and only when an application (the CLI) asks for it.
"""

from __future__ import annotations

import json
import logging

from apstrakit.core.config import LoggingConfig

ROOT_LOGGER = "apstrakit"

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(cfg: LoggingConfig, handler: logging.Handler | None = None) -> logging.Logger:
    """Attach a single handler to the ``apstrakit`` logger according to ``cfg``."""
    logger = logging.getLogger(ROOT_LOGGER)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    if cfg.format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(cfg.level)
    logger.propagate = False
    return logger
