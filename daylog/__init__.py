"""Leveled console logging mirrored to a rotating daily log file."""

from .console import Logger, Tag  # noqa: F401
from .core.config import Settings, get_settings  # noqa: F401
from .core.log import (  # noqa: F401
    ArchiveManager,
    DailyLogHandler,
    RotationManager,
    get_logger,
    init_logging,
    set_level,
    shutdown_logging,
)

__all__ = [
    "ArchiveManager",
    "DailyLogHandler",
    "Logger",
    "RotationManager",
    "Settings",
    "Tag",
    "get_logger",
    "get_settings",
    "init_logging",
    "set_level",
    "shutdown_logging",
]
