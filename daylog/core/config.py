"""Configuration for the logging facility, read from the environment."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_flag(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {value!r}.")


def _parse_level(name: str, value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"{name} must be a logging level name, got {value!r}.")
    return level


@dataclass(frozen=True, slots=True)
class Settings:
    """Where logs go and how loud the terminal is."""

    log_dir: Path = Path("logs")
    active_file: str = "latest.log"
    debug: bool = False
    fsync: bool = True
    level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load configuration values from environment variables."""

        defaults = cls()
        active_file = os.getenv("LOG_ACTIVE_FILE", defaults.active_file).strip()
        if not active_file or os.sep in active_file or "/" in active_file:
            raise ValueError("LOG_ACTIVE_FILE must be a bare file name.")
        return cls(
            log_dir=Path(os.getenv("LOG_DIR", str(defaults.log_dir))),
            active_file=active_file,
            debug=_parse_flag("DEBUG", os.getenv("DEBUG", "0")),
            fsync=_parse_flag("LOG_FSYNC", os.getenv("LOG_FSYNC", "1")),
            level=_parse_level("LOG_LEVEL", os.getenv("LOG_LEVEL", defaults.level)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance."""

    load_dotenv(find_dotenv(usecwd=True))
    return Settings.from_env()
