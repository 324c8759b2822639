"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pydantic
import pytest

from mobide.config import Settings, _load_config_file, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "MOBIDE_CONFIG_FILE",
        "MOBIDE_TERMINAL__IMAGE",
        "MOBIDE_TERMINAL__PULL",
        "MOBIDE_IDLE__TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings()

    assert settings.server.port == 3000
    assert settings.workspace.root_path == "/workspaces"
    assert settings.workspace.mount_path == "/workspace"
    assert settings.terminal.image == "mobide-cli"
    assert settings.terminal.pull is False
    assert settings.terminal.user == "mobide"
    assert settings.idle.timeout_seconds == 1800
    assert settings.idle.reap_interval_seconds == 60


def test_environment_overrides_nested_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MOBIDE_TERMINAL__IMAGE", "custom-cli")
    monkeypatch.setenv("MOBIDE_TERMINAL__PULL", "true")
    monkeypatch.setenv("MOBIDE_IDLE__TIMEOUT_SECONDS", "5")

    settings = Settings()

    assert settings.terminal.image == "custom-cli"
    assert settings.terminal.pull is True
    assert settings.idle.timeout_seconds == 5


def test_environment_wins_over_file_values(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MOBIDE_TERMINAL__IMAGE", "from-env")

    settings = Settings(terminal={"image": "from-file", "user": "dev"})

    assert settings.terminal.image == "from-env"
    assert settings.terminal.user == "dev"


def test_invalid_device_code_pattern_is_rejected():
    with pytest.raises(pydantic.ValidationError):
        Settings(auth_detection={"device_code_pattern": "([unclosed"})


def test_idle_timeout_must_be_positive():
    with pytest.raises(pydantic.ValidationError):
        Settings(idle={"timeout_seconds": 0})


def test_config_file_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    config_file = tmp_path / "mobide.yaml"
    config_file.write_text(
        "workspace:\n"
        "  root_path: /srv/workspaces\n"
        "terminal:\n"
        "  image: team-cli\n"
    )
    monkeypatch.setenv("MOBIDE_CONFIG_FILE", str(config_file))

    assert _load_config_file()["terminal"] == {"image": "team-cli"}

    settings = get_settings()
    assert settings.workspace.root_path == "/srv/workspaces"
    assert settings.terminal.image == "team-cli"
    assert get_settings() is settings
