"""Logging setup shared by routers and services."""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with a single stream handler attached.

    Repeated calls for the same name reuse the existing handler.
    """

    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger
