"""Logging setup for the receipt OCR pipeline.

Every module logs through the ``moneyquest_ocr`` namespace:

    from moneyquest_ocr.runtime import get_logger
    logger = get_logger(__name__)
    logger.debug("Reconstructed %d lines", count)

Receipt contents (merchant names, amounts, raw text) are only ever logged at
DEBUG; INFO and above carry sizes, counts and lifecycle events.

Environment variables:
    MONEYQUEST_LOG_LEVEL: DEBUG, INFO, WARNING (or WARN) or ERROR. Default: INFO
"""

import logging
import os
import sys
from typing import TextIO

DEFAULT_LOG_LEVEL = logging.INFO

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

ROOT_LOGGER_NAME = "moneyquest_ocr"
LOG_LEVEL_ENV = "MONEYQUEST_LOG_LEVEL"

_LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_handler: logging.Handler | None = None


def _level_from_env() -> int:
    return _LEVEL_NAMES.get(os.environ.get(LOG_LEVEL_ENV, "").strip().upper(), DEFAULT_LOG_LEVEL)


def _formatter_for(level: int) -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT_DEBUG if level <= logging.DEBUG else LOG_FORMAT)


def configure_logging(level: int | None = None, stream: TextIO | None = None) -> None:
    """Attach a single stderr handler to the package logger. Later calls are no-ops.

    Args:
        level: Log level; if None, taken from MONEYQUEST_LOG_LEVEL (default INFO).
        stream: Output stream, stderr by default.
    """
    global _handler

    if _handler is not None:
        return

    if level is None:
        level = _level_from_env()

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(_formatter_for(level))

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    package_logger.addHandler(_handler)
    package_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, nested under the package namespace."""
    configure_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: int) -> None:
    """Change the package log level at runtime (switches to the line-numbered format for DEBUG)."""
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    for handler in package_logger.handlers:
        handler.setFormatter(_formatter_for(level))
