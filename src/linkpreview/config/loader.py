"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from linkpreview.config.models.settings import Settings
from linkpreview.shared.errors import ApplicationError, ErrorCode, ErrorContext

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("config/linkpreview.toml"),
    Path("linkpreview.toml"),
    Path.home() / ".linkpreview" / "config.toml",
)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking pattern to ensure thread-safety
    while minimizing lock overhead.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance (thread-safe).

        Returns:
            The global Settings instance, loading it if necessary.
        """
        # First check (without lock for performance)
        if self._instance is None:
            # Second check (with lock for thread-safety)
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance from configuration files.

        Args:
            config_path: Optional explicit TOML file

        Returns:
            The reloaded Settings instance.
        """
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance

    def reset(self) -> None:
        """Drop the cached instance so the next access reloads it."""
        with self._lock:
            self._instance = None


def _load_env_file(env_file: Path = Path(".env")) -> None:
    """Load environment variables from a .env file if one exists.

    Variables already set in the environment win.
    """
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from TOML configuration file or environment.

    Args:
        config_path: Optional path to TOML configuration file. If None, tries
            the default locations and falls back to environment variables.

    Returns:
        Settings instance loaded from the specified source

    Raises:
        ApplicationError: If an explicit file is missing or any source holds
            invalid values
    """
    _load_env_file()

    try:
        if config_path:
            return Settings.from_toml_file(config_path)

        for default_path in DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                return Settings.from_toml_file(default_path)

        return Settings()
    except FileNotFoundError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIG_MISSING,
            message=str(e),
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path)},
            ),
            original_error=e,
        ) from e
    except ValidationError as e:
        raise ApplicationError(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=f"Invalid configuration: {e.error_count()} error(s)",
            context=ErrorContext(
                operation="load_settings",
                additional_data={"config_path": str(config_path) if config_path else "<env>"},
            ),
            original_error=e,
        ) from e


# Global loader instance
_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe).

    Returns:
        The global Settings instance, loading it if necessary.
    """
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance from configuration files.

    Returns:
        The reloaded Settings instance.
    """
    return _loader.reload_config(config_path)
