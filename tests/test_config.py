from pathlib import Path

import pytest

from daylog.core.config import Settings, get_settings

_ENV_VARS = ("LOG_DIR", "LOG_ACTIVE_FILE", "DEBUG", "LOG_FSYNC", "LOG_LEVEL")


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env) -> None:
    settings = Settings.from_env()

    assert settings.log_dir == Path("logs")
    assert settings.active_file == "latest.log"
    assert settings.debug is False
    assert settings.fsync is True
    assert settings.level == "INFO"


def test_settings_read_environment(clean_env) -> None:
    clean_env.setenv("LOG_DIR", "/var/log/bot")
    clean_env.setenv("LOG_ACTIVE_FILE", "current.log")
    clean_env.setenv("DEBUG", "true")
    clean_env.setenv("LOG_FSYNC", "off")
    clean_env.setenv("LOG_LEVEL", "warning")

    settings = Settings.from_env()

    assert settings.log_dir == Path("/var/log/bot")
    assert settings.active_file == "current.log"
    assert settings.debug is True
    assert settings.fsync is False
    assert settings.level == "WARNING"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DEBUG", "maybe"),
        ("LOG_FSYNC", "2"),
        ("LOG_LEVEL", "verbose"),
        ("LOG_ACTIVE_FILE", "nested/latest.log"),
        ("LOG_ACTIVE_FILE", "  "),
    ],
)
def test_settings_reject_invalid_values(clean_env, name: str, value: str) -> None:
    clean_env.setenv(name, value)

    with pytest.raises(ValueError):
        Settings.from_env()


def test_get_settings_is_cached(clean_env, tmp_path: Path) -> None:
    clean_env.chdir(tmp_path)
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
