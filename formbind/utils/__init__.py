"""
formbind Utils Package
======================

Environment access and logging.
"""

from __future__ import annotations

from formbind.utils.env import Env
from formbind.utils.logger import (
    LogEvent,
    Logger,
    LogLevel,
    configure_logging,
    get_logger,
)

__all__ = [
    "Env",
    "LogEvent",
    "Logger",
    "LogLevel",
    "get_logger",
    "configure_logging",
]
