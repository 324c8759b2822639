"""Mobide configuration management.

Configuration sources (in priority order):
1. Environment variables (MOBIDE_ prefix, ``__`` nested delimiter)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

DEFAULT_URL_PATTERN = r"https?://\S+"
DEFAULT_DEVICE_CODE_PATTERN = r"\b[A-Za-z0-9]{4,6}-[A-Za-z0-9]{4,6}\b"


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    # Directory with the browser UI; not mounted when unset
    static_dir: str | None = None


class DockerConfig(BaseModel):
    """Docker driver configuration."""

    socket: str = "unix:///var/run/docker.sock"


class WorkspaceConfig(BaseModel):
    """Workspace storage configuration."""

    # Host path holding one directory per session
    root_path: str = "/workspaces"
    # Mount path inside the container (fixed)
    mount_path: str = "/workspace"


class TerminalConfig(BaseModel):
    """Interactive terminal container configuration."""

    image: str = "mobide-cli"
    pull: bool = False
    user: str = "mobide"
    command: list[str] = Field(default_factory=lambda: ["/bin/bash"])
    working_dir: str = "/workspace"
    term: str = "xterm-256color"


class IdleConfig(BaseModel):
    """Idle reclamation configuration."""

    timeout_seconds: float = Field(default=1800, gt=0)  # 30 minutes
    reap_interval_seconds: float = Field(default=60, gt=0)


class AuthDetectionConfig(BaseModel):
    """Patterns scanned in terminal output for device-login prompts."""

    url_pattern: str = DEFAULT_URL_PATTERN
    device_code_pattern: str = DEFAULT_DEVICE_CODE_PATTERN

    @field_validator("url_pattern", "device_code_pattern")
    @classmethod
    def _must_compile(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression {value!r}: {e}") from e
        return value


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = False


class Settings(BaseSettings):
    """Mobide application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MOBIDE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    idle: IdleConfig = Field(default_factory=IdleConfig)
    auth_detection: AuthDetectionConfig = Field(default_factory=AuthDetectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def workspaces_root(self) -> Path:
        return Path(self.workspace.root_path).resolve()


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. MOBIDE_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/mobide/config.yaml
    """
    import os

    config_paths = [
        os.environ.get("MOBIDE_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/mobide/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings(**_load_config_file())
