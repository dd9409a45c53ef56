"""
Configuration management

Centralized settings using Pydantic BaseSettings for type-safe configuration
with environment variable support.
"""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    taskdock settings with environment variable support

    Settings can be overridden via environment variables:
    - TASKDOCK_DOCKER_HOST=tcp://127.0.0.1:2375
    - TASKDOCK_DOCKER_API_VERSION=v1.41
    - TASKDOCK_LOG_LEVEL=DEBUG
    """

    # Daemon connection
    docker_host: str = "unix:///var/run/docker.sock"
    docker_api_version: str = "v1.37"
    docker_executable: str | None = None  # Discovered on PATH if not set

    # Timeouts (seconds)
    default_timeout_seconds: float = 5.0
    stop_timeout_seconds: float = 11.0  # Covers the daemon's 10s graceful-stop period

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TASKDOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get taskdock settings (singleton)

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        logger.debug(f"Loaded settings: docker_host={_settings.docker_host}, api={_settings.docker_api_version}")
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment"""
    global _settings
    _settings = None
