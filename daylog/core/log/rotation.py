"""Ownership of the active log file: daily rollover and durable appends."""
from __future__ import annotations

import logging
import os
from datetime import date, datetime
from pathlib import Path
from threading import Lock, RLock
from typing import Callable, ClassVar, Optional, TextIO

from rich.text import Text

from .archive import ArchiveManager, format_date, parse_date

__all__ = ["RotationManager", "format_line", "strip_ansi"]

logger = logging.getLogger("daylog.rotation")

DEFAULT_ACTIVE_NAME = "latest.log"


def strip_ansi(value: str) -> str:
    """Drop terminal escape sequences so the persisted copy is plain text."""

    return Text.from_ansi(value).plain


def format_line(level: str, tag: str, message: str, moment: datetime) -> str:
    parts = [f"[{level.upper()}]", f"[{moment.strftime('%H:%M:%S')}]"]
    tag = strip_ansi(tag).strip() if tag else ""
    if tag:
        parts.append(tag)
    parts.append(strip_ansi(message))
    return " ".join(parts) + "\n"


class RotationManager:
    """Owns ``latest.log`` and the calendar date stamped in its first line.

    Every :meth:`write` compares the clock against the recorded date. When the
    day changed, the active file is renamed to ``<MM-DD-YYYY>.log``, a fresh
    active file is stamped with the new date, and completed months are handed
    to the :class:`ArchiveManager`.
    """

    _instances: ClassVar[dict[Path, "RotationManager"]] = {}
    _instances_lock: ClassVar[Lock] = Lock()

    def __init__(
        self,
        log_dir: Path | str,
        *,
        active_name: str = DEFAULT_ACTIVE_NAME,
        clock: Callable[[], datetime] = datetime.now,
        fsync: bool = True,
        archive: Optional[ArchiveManager] = None,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.active_name = active_name
        self._clock = clock
        self._fsync = fsync
        self._archive = archive or ArchiveManager()
        self._lock = RLock()
        self._stream: Optional[TextIO] = None
        self._recorded_date: Optional[date] = None

    @classmethod
    def for_directory(cls, log_dir: Path | str, **options: object) -> "RotationManager":
        """Return the shared manager for ``log_dir``, creating it on first use."""

        key = Path(log_dir).resolve()
        with cls._instances_lock:
            instance = cls._instances.get(key)
            if instance is None:
                instance = cls(key, **options)  # type: ignore[arg-type]
                cls._instances[key] = instance
            elif options:
                instance._check_options(options)
            return instance

    def _check_options(self, options: dict[str, object]) -> None:
        current = {
            "active_name": self.active_name,
            "clock": self._clock,
            "fsync": self._fsync,
            "archive": self._archive,
        }
        conflicts = sorted(
            key for key, value in options.items() if key not in current or current[key] != value
        )
        if conflicts:
            raise ValueError(
                f"{self.log_dir} already has a rotation manager with different options: "
                + ", ".join(conflicts)
            )

    @classmethod
    def close_all(cls) -> None:
        with cls._instances_lock:
            for instance in cls._instances.values():
                instance.close()
            cls._instances.clear()

    @property
    def active_path(self) -> Path:
        return self.log_dir / self.active_name

    @property
    def recorded_date(self) -> Optional[date]:
        return self._recorded_date

    @property
    def initialized(self) -> bool:
        return self._stream is not None

    def initialize(self) -> None:
        """Open the active file, creating the directory and header if needed.

        An existing active file from an earlier day is rolled over right away,
        before any new line is accepted. Calling this twice is a no-op.
        """

        with self._lock:
            if self._stream is not None:
                return
            self.log_dir.mkdir(parents=True, exist_ok=True)
            today = self._clock().date()
            if not self.active_path.exists():
                self._start_active(today)
                return
            self._recorded_date = self._read_recorded_date(today)
            if self._stream is None:
                self._stream = self.active_path.open(
                    "a", encoding="utf-8", errors="backslashreplace"
                )
            self._rollover_if_needed(today)

    def write(
        self, level: str, tag: str, message: str, *, moment: Optional[datetime] = None
    ) -> None:
        """Append one line, rolling the active file over first if the day changed.

        ``moment`` lets a caller that already printed the line reuse its timestamp.
        """

        with self._lock:
            if self._stream is None:
                self.initialize()
            now = moment or self._clock()
            self._rollover_if_needed(now.date())
            assert self._stream is not None
            self._stream.write(format_line(level, tag, message, now))
            self._sync(self._stream)

    def close(self) -> None:
        with self._lock:
            self._close_stream()
            self._recorded_date = None

    def __enter__(self) -> "RotationManager":
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _read_recorded_date(self, today: date) -> date:
        with self.active_path.open("r", encoding="utf-8") as handle:
            header = handle.readline()
        if not header:
            # Created but never stamped.
            self._start_active(today)
            return today
        recorded = parse_date(header)
        if recorded is None:
            recorded = datetime.fromtimestamp(self.active_path.stat().st_mtime).date()
            logger.warning(
                "%s has no date header, treating it as %s",
                self.active_path,
                format_date(recorded),
            )
        return recorded

    def _rollover_if_needed(self, today: date) -> bool:
        previous = self._recorded_date
        if previous is None or previous == today:
            return False

        self._finalize(previous)
        self._start_active(today)
        logger.info("Rolled %s over to %s.log", self.active_name, format_date(previous))

        if (previous.year, previous.month) != (today.year, today.month):
            self._archive.archive_completed_month(self.log_dir, previous)
        return True

    def _finalize(self, day: date) -> Path:
        self._close_stream()
        target = self.log_dir / f"{format_date(day)}.log"
        if target.exists():
            logger.warning("%s already exists, appending %s to it", target.name, self.active_name)
            content = self.active_path.read_text(encoding="utf-8", errors="backslashreplace")
            with target.open("a", encoding="utf-8", errors="backslashreplace") as handle:
                handle.write(content)
                self._sync(handle)
            self.active_path.unlink()
        else:
            os.replace(self.active_path, target)
        return target

    def _start_active(self, day: date) -> None:
        self._close_stream()
        stream = self.active_path.open("w", encoding="utf-8", errors="backslashreplace")
        stream.write(f"{format_date(day)}\n\n")
        self._sync(stream)
        self._stream = stream
        self._recorded_date = day

    def _sync(self, handle: TextIO) -> None:
        handle.flush()
        if self._fsync:
            os.fsync(handle.fileno())

    def _close_stream(self) -> None:
        if self._stream:
            try:
                self._stream.flush()
            finally:
                self._stream.close()
        self._stream = None
