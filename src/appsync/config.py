"""Configuration for application datastore sync.

Values come from environment variables. Entry points call
``dotenv.load_dotenv()`` first so a local ``.env`` file is honoured.

Environment Variables:
    DATABASE_URL: PostgreSQL connection string (required unless dry-run)
    DB_POOL_MIN_SIZE: Minimum pool connections (default: 2)
    DB_POOL_MAX_SIZE: Maximum pool connections (default: 10)
    SYNC_MAX_RETRIES: Attempts per application sync (default: 1, no retry)
    SYNC_RETRY_DELAY_SECONDS: Initial delay between attempts (default: 1.0)
    SYNC_CREATE_PROJECTS: Create missing projects (default: true)
    LOG_LEVEL: Logging level name (default: INFO)
"""

import os

from .datastore.exceptions import ConfigurationError


def _env_number(name: str, default: str, cast=int):
    """Read a numeric environment variable.

    Raises:
        ConfigurationError: If the value does not parse
    """
    value = os.getenv(name, default)
    try:
        return cast(value)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {value!r}",
            details={name: value},
            cause=e,
        )


class SyncConfig:
    """Configuration loaded from environment variables."""

    def __init__(self):
        """Load settings from the environment.

        Raises:
            ConfigurationError: If a numeric variable does not parse
        """
        self.database_url = os.getenv("DATABASE_URL", "")
        self.pool_min_size = _env_number("DB_POOL_MIN_SIZE", "2")
        self.pool_max_size = _env_number("DB_POOL_MAX_SIZE", "10")
        self.max_retries = _env_number("SYNC_MAX_RETRIES", "1")
        self.retry_delay_seconds = _env_number("SYNC_RETRY_DELAY_SECONDS", "1.0", float)
        self.create_projects = os.getenv("SYNC_CREATE_PROJECTS", "true").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    def validate(self, require_database: bool = True) -> None:
        """Check required settings.

        Raises:
            ConfigurationError: If a required variable is missing or a
                value is out of range
        """
        missing = []
        if require_database and not self.database_url:
            missing.append("DATABASE_URL")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing_keys=missing,
            )
        if self.max_retries < 1:
            raise ConfigurationError(
                "SYNC_MAX_RETRIES must be at least 1",
                details={"SYNC_MAX_RETRIES": self.max_retries},
            )
        if self.pool_min_size > self.pool_max_size:
            raise ConfigurationError(
                "DB_POOL_MIN_SIZE must not exceed DB_POOL_MAX_SIZE",
                details={"min": self.pool_min_size, "max": self.pool_max_size},
            )

    def __repr__(self):
        return (
            f"SyncConfig("
            f"database={'set' if self.database_url else 'unset'}, "
            f"pool={self.pool_min_size}-{self.pool_max_size}, "
            f"retries={self.max_retries}, "
            f"create_projects={self.create_projects}, "
            f"log_level={self.log_level})"
        )
