from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Console logging for the importer.

Every console line is ``LABEL message`` with LABEL one of
INFO|WARN|ERROR|SUMMARY (DEBUG with --debug), so operators can grep a run's
output and the final SUMMARY line is easy to pick out.

Only the package logger (``inventory_import``) gets a handler. Module loggers
created with logging.getLogger(__name__) inside the package propagate into it;
nothing reaches the root logger.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "setup_logging",
]

APP_LOGGER_NAME = "inventory_import"

# between INFO (20) and WARNING (30): shown at the default level, never an alert
SUMMARY_LEVEL = 25

LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_handler: logging.Handler | None = None


class LabeledFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return f"{LABELS.get(record.levelno, record.levelname)} {record.getMessage()}"


def setup_logging(stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled console handler to the package logger.

    Idempotent: once a handler is attached, later calls return the logger as
    is. stream defaults to the sys.stdout current at the first call.
    """
    global _handler

    logger = logging.getLogger(APP_LOGGER_NAME)
    if _handler is not None:
        return logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    _handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    _handler.setFormatter(LabeledFormatter())
    logger.addHandler(_handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def get_logger() -> logging.Logger:
    return setup_logging()


def log_summary(message: str) -> None:
    """Log ``message`` at SUMMARY level (the label is added by the formatter)."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the console handler so the next setup_logging() binds anew.

    Tests call this between runs because each test captures stdout with a
    fresh stream.
    """
    global _handler

    logger = logging.getLogger(APP_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
