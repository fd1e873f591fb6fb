"""Monthly archival of finalized daily log files."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path

logger = logging.getLogger("daylog.archive")

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

DATE_FORMAT = "%m-%d-%Y"
_DATE_PATTERN = re.compile(r"(\d{2})-(\d{2})-(\d{4})")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> date | None:
    """Parse a ``MM-DD-YYYY`` string, returning ``None`` when it is not one."""

    match = _DATE_PATTERN.fullmatch(value.strip())
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def archive_name(value: date) -> str:
    return f"{MONTH_NAMES[value.month - 1]} {value.year}"


@dataclass(frozen=True)
class DailyLogFile:
    """A finalized log file named after the day it covers."""

    path: Path
    day: date

    @property
    def month(self) -> tuple[int, int]:
        return (self.day.year, self.day.month)


def list_daily_files(log_dir: Path) -> list[DailyLogFile]:
    """Return daily files found directly in ``log_dir``, oldest first."""

    daily: list[DailyLogFile] = []
    for entry in Path(log_dir).iterdir():
        if not entry.is_file():
            continue
        day = parse_date(entry.stem) if entry.suffix == ".log" else None
        if day is None:
            continue
        daily.append(DailyLogFile(path=entry, day=day))
    return sorted(daily, key=lambda item: item.day)


class ArchiveManager:
    """Group daily files of completed months into ``"<Month> <Year>"`` folders."""

    def archive_completed_month(self, log_dir: Path, finalized_date: date) -> list[Path]:
        """Move every daily file dated up to the month of ``finalized_date``.

        Each file goes to the directory named after its own month, and a
        directory that already exists still receives stragglers, so repeated
        calls converge and never move a file twice.
        """

        log_dir = Path(log_dir)
        cutoff = (finalized_date.year, finalized_date.month)
        eligible = [item for item in list_daily_files(log_dir) if item.month <= cutoff]
        if not eligible:
            return []

        touched: list[Path] = []
        for item in eligible:
            target_dir = log_dir / archive_name(item.day)
            destination = target_dir / item.path.name
            if destination.exists():
                logger.warning(
                    "Not archiving %s: %s already exists", item.path.name, destination
                )
                continue
            try:
                target_dir.mkdir(exist_ok=True)
                os.replace(item.path, destination)
            except OSError:
                logger.exception("Archiving %s into %s failed", item.path.name, target_dir)
                raise
            if target_dir not in touched:
                touched.append(target_dir)

        for target_dir in touched:
            logger.info("Archived daily logs into %s", target_dir.name)
        return touched
