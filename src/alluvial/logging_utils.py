# src/alluvial/logging_utils.py
"""
Logging utilities for alluvial.

The package exposes `get_logger()` as part of the public API. Layout
functions never log on their own: a logger is passed in explicitly, and
`log_info()` is a no-op when none was given.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union


def get_logger(
    name: str = "alluvial",
    level: Union[int, str] = logging.INFO,
    stream: Optional[TextIO] = None,
    fmt: str = "%(message)s",
    datefmt: Optional[str] = None,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure and return a logger for layout pipelines.

    - Attaches at most one StreamHandler per stream across repeated calls.
    - Uses a minimal default format (message only).
    - Defaults to stdout, which suits notebooks.

    Parameters
    ----------
    name:
        Logger name. Defaults to "alluvial".
    level:
        Logging level (e.g., logging.INFO or "INFO"). Unknown names fall
        back to INFO.
    stream:
        Stream to log to. Defaults to sys.stdout.
    fmt, datefmt:
        Formatter settings.
    propagate:
        Whether records also reach ancestor loggers.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)
    stream = sys.stdout if stream is None else stream

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)
    logger.propagate = propagate
    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is stream:
            h.setLevel(level)
            h.setFormatter(formatter)
            return logger

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def log_info(logger, msg: str) -> None:
    """Send `msg` to `logger.info` if a logger was supplied."""
    if logger is not None:
        logger.info(msg)
