"""
Package logger for ghcl.

Everything goes to stderr; stdout is left to the caller.
"""

import logging
import sys


LOGGER_NAME = "ghcl"
LOG_FORMAT = "%(message)s"


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the package logger, attaching the stderr handler once."""

    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.setLevel(logging.INFO)
        log.propagate = False
    return log


logger = get_logger()
