"""
Configuration management for the Flexo Orders engine.

This module handles:
- Database path and URL configuration
- Environment-specific configuration (development vs. production)
- Engine settings read from environment variables
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_CURRENCY,
    DEFAULT_DB_TIMEOUT,
)

logger = logging.getLogger(__name__)

ENV_ENVIRONMENT = "FLEXO_ORDERS_ENV"
ENV_DATA_DIR = "FLEXO_ORDERS_DATA_DIR"
ENV_DATABASE_URL = "FLEXO_ORDERS_DATABASE_URL"
ENV_DB_TIMEOUT = "FLEXO_ORDERS_DB_TIMEOUT"
ENV_CURRENCY = "FLEXO_ORDERS_CURRENCY"


class Config:
    """
    Application configuration manager.

    Handles database location, environment mode and the handful of
    engine settings that can be overridden from the environment.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        data_dir_override = os.environ.get(ENV_DATA_DIR)
        if data_dir_override:
            self._base_dir = Path(data_dir_override)
        elif environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_DATABASE_URL) or None

        self._db_timeout = self._read_int_env(ENV_DB_TIMEOUT, DEFAULT_DB_TIMEOUT)
        self._currency = os.environ.get(ENV_CURRENCY, DEFAULT_CURRENCY).strip().upper()

        # An explicit URL may point anywhere (or at memory); don't touch disk
        if self._database_url_override is None:
            self._ensure_directories()

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.flexo_orders
        """
        return Path.home() / ".flexo_orders"

    def _ensure_directories(self):
        """Create necessary directories if they don't exist."""
        self._database_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _read_int_env(name: str, default: int) -> int:
        raw = os.environ.get(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            logger.warning(f"Invalid {name} value '{raw}', using default {default}")
            return default
        if value <= 0:
            logger.warning(f"Invalid {name} value '{raw}', using default {default}")
            return default
        return value

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            The FLEXO_ORDERS_DATABASE_URL override if set, otherwise a
            SQLite URL pointing at the database file.
        """
        if self._database_url_override:
            return self._database_url_override
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def db_timeout(self) -> int:
        """SQLite busy timeout in seconds."""
        return self._db_timeout

    @property
    def currency(self) -> str:
        """Currency code stamped on new orders."""
        return self._currency

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument - this prevents accidental database
    switching mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    FLEXO_ORDERS_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """
    Get the database URL.

    Returns:
        SQLAlchemy database URL string
    """
    return get_config().database_url
