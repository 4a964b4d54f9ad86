"""Logging setup for the ``diffreview`` logger hierarchy.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, on the package logger, and never on the root logger.
"""

from __future__ import annotations

import logging
from pathlib import Path

PACKAGE_LOGGER = "diffreview"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_HANDLER_ATTR = "_diffreview_handler"


def parse_level(value: str | int) -> int:
    """Accept level names (any case) or numbers; unknown names mean WARNING."""
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else logging.WARNING


def configure_logging(level: str | int = logging.WARNING, log_file: Path | None = None) -> logging.Logger:
    """Attach one stderr or file handler to the package logger.

    Calling again replaces the handler installed by the previous call.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            logger.removeHandler(handler)
            handler.close()

    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    setattr(handler, _HANDLER_ATTR, True)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(parse_level(level))
    logger.propagate = False
    return logger
