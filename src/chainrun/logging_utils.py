from __future__ import annotations

import logging
import os
import sys


LOGGER_NAME = "chainrun"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_handler: logging.StreamHandler | None = None


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("CHAINRUN_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def configure_logging(level: int | str | None = None) -> logging.Logger:
    """
    Attach one stderr handler to the `chainrun` logger.

    Called by the CLI; importing chainrun as a library leaves logging alone.
    Level comes from `level`, else CHAINRUN_LOG_LEVEL, else WARNING.
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)
    _handler.stream = sys.stderr
    set_level(level)
    return logger


def set_level(level: int | str | None) -> None:
    logging.getLogger(LOGGER_NAME).setLevel(_level(level))
