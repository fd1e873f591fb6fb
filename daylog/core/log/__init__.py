"""Standard library logging wired to a rich console and the rotating log file."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .archive import ArchiveManager, archive_name, format_date, parse_date
from .rotation import RotationManager, format_line, strip_ansi

__all__ = [
    "ArchiveManager",
    "DailyLogHandler",
    "LoggingConfig",
    "RotationManager",
    "archive_name",
    "format_date",
    "format_line",
    "get_logger",
    "init_logging",
    "parse_date",
    "set_level",
    "shutdown_logging",
    "strip_ansi",
]

INTERNAL_LOGGER = "daylog"


@dataclass
class LoggingConfig:
    """Runtime configuration for the logging subsystem."""

    app_name: str = "app"
    level: str | int = "INFO"
    log_dir: Optional[Path] = Path("logs")
    active_file: str = "latest.log"
    fsync: bool = True
    console: bool = True
    rich_tracebacks: bool = True


_config_lock = RLock()
_config: LoggingConfig | None = None
_internal_handler: logging.Handler | None = None
_handlers: list[logging.Handler] = []


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warn"
    if levelno >= logging.INFO:
        return "info"
    return "debug"


class DailyLogHandler(logging.Handler):
    """Logging handler that appends records through a :class:`RotationManager`."""

    def __init__(self, rotation: RotationManager, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.rotation = rotation

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        # Storage failures are fatal, so they are not routed to handleError.
        self.rotation.write(_level_name(record.levelno), f"[{record.name}]", message)

    def close(self) -> None:
        # The manager stays registered; other loggers may still hold it.
        self.rotation.close()
        super().close()


def _build_handlers(cfg: LoggingConfig, level: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if cfg.rich_tracebacks:
        install_rich_traceback(show_locals=False)

    if cfg.console:
        rich_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=cfg.rich_tracebacks,
            show_level=True,
            show_path=False,
            markup=False,
            log_time_format="%H:%M:%S",
        )
        rich_handler.setLevel(level)
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(rich_handler)

    if cfg.log_dir:
        rotation = RotationManager.for_directory(
            Path(cfg.log_dir), active_name=cfg.active_file, fsync=cfg.fsync
        )
        rotation.initialize()
        file_handler = DailyLogHandler(rotation, level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        handlers.append(file_handler)

    return handlers


def _configure_internal_logger(cfg: LoggingConfig, level: int) -> None:
    """Route rollover and archive notices to the console only.

    They are emitted while the file handler holds the rotation lock, so they
    must never propagate back into it.
    """

    global _internal_handler
    internal = logging.getLogger(INTERNAL_LOGGER)
    internal.propagate = False
    internal.setLevel(level)
    if cfg.console:
        _internal_handler = RichHandler(
            console=Console(stderr=True), show_path=False, log_time_format="%H:%M:%S"
        )
        internal.addHandler(_internal_handler)


def init_logging(**kwargs: object) -> None:
    """Initialise the shared logging configuration.

    The function is idempotent; repeated calls reuse the existing configuration
    unless explicit keyword arguments request a different log level or other
    options.
    """

    with _config_lock:
        global _config

        cfg = LoggingConfig()
        for key, value in kwargs.items():
            if hasattr(cfg, key):
                setattr(cfg, key, value)  # type: ignore[arg-type]

        if _config is not None:
            if _config == cfg:
                return
            _teardown_locked()
        level = _parse_level(cfg.level)

        root = logging.getLogger()
        root.setLevel(logging.NOTSET)
        for handler in list(root.handlers):
            root.removeHandler(handler)

        _handlers.extend(_build_handlers(cfg, level))
        for handler in _handlers:
            root.addHandler(handler)
        _configure_internal_logger(cfg, level)

        _config = cfg


def _teardown_locked() -> None:
    global _config, _internal_handler
    _config = None
    root = logging.getLogger()
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers.clear()
    internal = logging.getLogger(INTERNAL_LOGGER)
    if _internal_handler is not None:
        internal.removeHandler(_internal_handler)
        _internal_handler = None
    internal.propagate = True
    internal.setLevel(logging.NOTSET)


def shutdown_logging() -> None:
    """Tear down handlers and release log files, intended for tests."""

    with _config_lock:
        _teardown_locked()


def get_logger(name: str | None = None) -> logging.Logger:
    with _config_lock:
        if _config is None:
            init_logging()
    cfg = _config or LoggingConfig()
    return logging.getLogger(name or cfg.app_name)


def set_level(level: str | int) -> None:
    new_level = _parse_level(level)
    root = logging.getLogger()
    for handler in root.handlers:
        handler.setLevel(new_level)
    logging.getLogger(INTERNAL_LOGGER).setLevel(new_level)
    logging.getLogger().setLevel(logging.NOTSET)
