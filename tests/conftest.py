"""Shared fixtures for the logging tests."""
from __future__ import annotations

from datetime import datetime

import pytest

from daylog.core.log import RotationManager, shutdown_logging


class FakeClock:
    """Callable clock whose current moment is set by the test."""

    def __init__(self, moment: datetime) -> None:
        self.now = moment

    def __call__(self) -> datetime:
        return self.now

    def set(self, *args: int) -> None:
        self.now = datetime(*args)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 14, 12, 34, 56))


@pytest.fixture(autouse=True)
def _release_log_files():
    yield
    shutdown_logging()
    RotationManager.close_all()
