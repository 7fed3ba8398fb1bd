"""
Process-level settings for the command-line tools.

Override via environment variables. Only logging is configurable this way;
everything that changes decoding or analysis is an explicit CLI flag.
"""

from __future__ import annotations
import os


class Settings:
    """Base settings (safe defaults)."""

    # Logging
    LOG_LEVEL = os.getenv("DSD_LOG_LEVEL", "WARNING")
    LOG_FILE = os.getenv("DSD_LOG_FILE", "")
