"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for the Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import toml
from dotenv import load_dotenv

from cinecache.config.models.settings import Settings
from cinecache.shared.constants import FileSystem
from cinecache.shared.errors import ErrorCode, ErrorContext, InfrastructureError, create_config_error

logger = logging.getLogger(__name__)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking to keep the fast path lock-free.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it if necessary."""
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self) -> Settings:
        """Reload the global settings instance from .env and TOML."""
        with self._lock:
            self._instance = load_settings()

        return self._instance

    def reset(self) -> None:
        """Drop the cached instance (used by tests)."""
        with self._lock:
            self._instance = None


def _load_env_file(env_file: Path = Path(FileSystem.ENV_FILE)) -> bool:
    """Load environment variables from a .env file.

    A missing file is not an error: no secrets are required by the
    cache layer.

    Returns:
        True if a file was loaded

    Raises:
        InfrastructureError: If the file exists but cannot be read
    """
    if not env_file.exists():
        logger.debug("No %s file found, using process environment only", env_file)
        return False

    try:
        return load_dotenv(env_file, override=False)
    except (OSError, ValueError) as e:
        raise InfrastructureError(
            code=ErrorCode.FILE_READ_ERROR,
            message=f"Failed to read .env file: {e}",
            context=ErrorContext(
                operation="load_env",
                additional_data={"file_name": env_file.name},
            ),
            original_error=e,
        ) from e


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from TOML configuration file or environment.

    Args:
        config_path: Optional path to a TOML file. If None, the default
            location is used when it exists.

    Returns:
        Settings instance
    """
    _load_env_file()

    if config_path:
        return _from_toml(Path(config_path))

    default_path = Path(FileSystem.CONFIG_FILE)
    if default_path.exists():
        return _from_toml(default_path)

    return Settings()


def _from_toml(path: Path) -> Settings:
    """Load a TOML file, reporting malformed files as configuration errors.

    Raises:
        FileNotFoundError: If the file does not exist
        ApplicationError: If the file is not valid TOML
    """
    try:
        return Settings.from_toml_file(path)
    except toml.TomlDecodeError as e:
        raise create_config_error(
            f"Invalid configuration file {path.name}: {e}",
            config_key=str(path),
            operation="load_settings",
            original_error=e,
        ) from e


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config() -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config()


def reset_config() -> None:
    """Forget the global settings instance."""
    _loader.reset()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
]
