"""
Utility helpers for the command-line tools: logging config and stdio-aware
file opening.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import BinaryIO, Generator, Optional, TextIO

LOGGER_NAME = "dogstatsd_utils"
_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def init_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Logger:
    """Configure a stderr logger + optional rotating file handler."""
    log_level = getattr(logging, level.upper(), logging.WARNING)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False  # avoid duplicate logs if root has handlers

    # drop handlers from an earlier call in the same process
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # Console
    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(log_level)
    ch.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(ch)

    # File (rotating)
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=5)
        fh.setLevel(log_level)
        fh.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(fh)

    return logger


@contextmanager
def open_input(path: Optional[str]) -> Generator[BinaryIO, None, None]:
    """Binary input: the named file, or stdin for None / '-'."""
    if path is None or path == "-":
        yield sys.stdin.buffer
        return
    f = open(path, "rb")
    try:
        yield f
    finally:
        f.close()


@contextmanager
def open_output(path: Optional[str]) -> Generator[TextIO, None, None]:
    """Text output: the named file, or stdout for None / '-'."""
    if path is None or path == "-":
        yield sys.stdout
        sys.stdout.flush()
        return
    f = open(path, "w", encoding="utf-8", newline="\n")
    try:
        yield f
    finally:
        f.close()
