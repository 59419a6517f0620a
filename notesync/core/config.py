"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
No hardcoded values in code: all configuration comes from these sources.

Secrets (.env):
    NOTESYNC_REMOTE_API_KEY

Settings (YAML):
    application.yaml   - App identity, timeouts
    database.yaml      - Local record store (SQLite) connection
    logging.yaml       - Logging configuration
    remote.yaml        - Remote store endpoint, tables, buckets, breaker
    sync.yaml          - Codec wire format, note sync, social options
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notesync.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    LoggingSchema,
    RemoteSchema,
    SyncSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords, tokens, and keys."""

    remote_api_key: str = ""

    model_config = SettingsConfigDict(
        env_prefix="NOTESYNC_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._database = _load_validated(DatabaseSchema, "database.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")
        self._remote = _load_validated(RemoteSchema, "remote.yaml")
        self._sync = _load_validated(SyncSchema, "sync.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def database(self) -> DatabaseSchema:
        """Local store settings."""
        return self._database

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging

    @property
    def remote(self) -> RemoteSchema:
        """Remote store settings."""
        return self._remote

    @property
    def sync(self) -> SyncSchema:
        """Sync, codec and social settings."""
        return self._sync


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    if not env_path.exists():
        return Settings()
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_database_url() -> str:
    """
    Resolve the local store URL.

    Relative SQLite paths in database.yaml are anchored at the project root
    so the store location does not depend on the working directory.
    """
    url = get_app_config().database.url
    prefix = "sqlite+aiosqlite:///"
    if url.startswith(prefix) and not url.endswith(":memory:"):
        path = Path(url[len(prefix):])
        if not path.is_absolute():
            path = find_project_root() / path
            path.parent.mkdir(parents=True, exist_ok=True)
            return f"{prefix}{path}"
    return url


def get_remote_endpoint() -> tuple[str, float]:
    """
    Get the remote store base URL and request timeout.

    Returns:
        Tuple of (base_url, timeout_seconds).
    """
    config = get_app_config()
    return config.remote.base_url.rstrip("/"), float(config.application.timeouts.remote_api)
