"""Colorized terminal logger that mirrors every call into the daily log file."""
from __future__ import annotations

import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from rich.console import Console
from rich.text import Text

from .core.config import Settings, get_settings
from .core.log.rotation import RotationManager

LEVEL_STYLES: dict[str, str] = {
    "log": "",
    "info": "blue",
    "error": "red",
    "warn": "yellow",
    "success": "green",
    "debug": "grey50",
    "trace": "magenta",
}
_STDERR_LEVELS = frozenset({"warn", "error", "trace"})


@dataclass(frozen=True)
class Tag:
    """Label printed in brackets before every message of a tagged logger."""

    label: str
    style: str = "bold"

    def __str__(self) -> str:
        return f"[{self.label}]"

    def render(self) -> Text:
        return Text(str(self), style=self.style)


class Logger:
    """Print leveled lines to the terminal and persist them through ``rotation``.

    Loggers are cheap; tagged variants made with :meth:`with_tag` share the
    same :class:`RotationManager`, so one log directory has one writer.
    """

    def __init__(
        self,
        rotation: RotationManager,
        *,
        tag: Optional[Tag] = None,
        debug: Optional[bool] = None,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.rotation = rotation
        self.tag = tag
        self.debug_enabled = get_settings().debug if debug is None else debug
        self._console = console or Console()
        self._err_console = err_console or Console(stderr=True)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: object) -> "Logger":
        settings = settings or get_settings()
        rotation = RotationManager.for_directory(
            settings.log_dir, active_name=settings.active_file, fsync=settings.fsync
        )
        kwargs.setdefault("debug", settings.debug)
        return cls(rotation, **kwargs)  # type: ignore[arg-type]

    def with_tag(self, label: str, style: str = "bold") -> "Logger":
        return Logger(
            self.rotation,
            tag=Tag(label, style),
            debug=self.debug_enabled,
            console=self._console,
            err_console=self._err_console,
            clock=self._clock,
        )

    def log(self, *data: object) -> None:
        self._emit("log", data)

    def info(self, *data: object) -> None:
        self._emit("info", data)

    def warn(self, *data: object) -> None:
        self._emit("warn", data)

    def error(self, *data: object) -> None:
        self._emit("error", data)

    def success(self, *data: object) -> None:
        self._emit("success", data)

    def debug(self, *data: object) -> None:
        """Persist always; print only when the debug gate is on."""

        self._emit("debug", data)

    def trace(self, *data: object) -> None:
        stack = "".join(traceback.format_stack()[:-1]).rstrip()
        self._emit("trace", data, stack=stack)

    def _emit(self, level: str, data: tuple[object, ...], *, stack: str = "") -> None:
        message = " ".join(str(item) for item in data)
        if stack:
            message = f"{message}\n{stack}" if message else stack

        moment = self._clock()
        if level != "debug" or self.debug_enabled:
            console = self._err_console if level in _STDERR_LEVELS else self._console
            console.print(self._render(level, message, moment))

        self.rotation.write(level, str(self.tag) if self.tag else "", message, moment=moment)

    def _render(self, level: str, message: str, moment: datetime) -> Text:
        line = Text.assemble(
            "[",
            (moment.strftime("%H:%M:%S"), "grey50"),
            "] ",
        )
        if self.tag:
            line.append_text(self.tag.render())
            line.append(" ")
        line.append_text(Text.from_ansi(message, style=LEVEL_STYLES.get(level, "")))
        return line
