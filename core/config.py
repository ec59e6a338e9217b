"""
=====================================
Configuration management for contexts.
=====================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

Sections:
- DatabaseConfig: MySQL connection settings and pool size
- BuilderConfig: clause builder strictness and mutation guards
- LoggingConfig: log level and per-statement SQL logging

Example:
    >>> from core.config import config
    >>>
    >>> # Database connection
    >>> engine_url = config.get_connection_string()
    >>>
    >>> # Builder behaviour
    >>> if config.builders.strict_conditions:
    ...     print("Malformed WHERE conditions will raise")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment ('1', 'true', 'yes', 'on')."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class DatabaseConfig:
    """Database configuration settings.

    Attributes:
        host: MySQL server hostname or IP address
        port: MySQL server port number
        user: Database username
        password: Database password
        database: Database (schema) the contexts are bound to
        pool_size: Maximum number of pooled connections
        url: Full SQLAlchemy URL; overrides the individual fields when set
    """

    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 20
    url: Optional[str] = None

    def get_connection_string(self) -> str:
        """Get the SQLAlchemy connection string.

        Returns:
            The DATABASE_URL override if present, otherwise a
            mysql+pymysql URL built from the individual settings
        """
        if self.url:
            return self.url
        return f"mysql+pymysql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class BuilderConfig:
    """Clause builder and context guard settings.

    Attributes:
        strict_conditions: Raise InvalidConditionError for a condition with
            a missing column or value instead of silently skipping it
        allow_update_on_all: Default for TableContext update_all()
        allow_truncation: Default for TableContext truncate()
    """

    strict_conditions: bool = False
    allow_update_on_all: bool = False
    allow_truncation: bool = False


@dataclass
class LoggingConfig:
    """Logging settings.

    Attributes:
        level: Root log level name
        log_sql: Log every executed statement at DEBUG level
    """

    level: str = 'INFO'
    log_sql: bool = False


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig instance with connection settings
        builders: BuilderConfig instance with builder/guard settings
        logging: LoggingConfig instance

    Example:
        >>> config = Config()
        >>> print(f"Connecting to {config.db_host}:{config.db_port}")
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig(
            host=os.getenv('MYSQL_HOST', 'localhost'),
            port=int(os.getenv('MYSQL_PORT', '3306')),
            user=os.getenv('MYSQL_USER', 'root'),
            password=os.getenv('MYSQL_PASSWORD', ''),
            database=os.getenv('MYSQL_DATABASE', 'chinook'),
            pool_size=int(os.getenv('MYSQL_POOL_SIZE', '20')),
            url=os.getenv('DATABASE_URL') or None
        )

        self.builders = BuilderConfig(
            strict_conditions=_env_flag('STRICT_CONDITIONS'),
            allow_update_on_all=_env_flag('ALLOW_UPDATE_ON_ALL'),
            allow_truncation=_env_flag('ALLOW_TRUNCATION')
        )

        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO'),
            log_sql=_env_flag('LOG_SQL')
        )

    @property
    def db_host(self) -> str:
        """Get database server hostname."""
        return self.db.host

    @property
    def db_port(self) -> int:
        """Get database server port number."""
        return self.db.port

    @property
    def db_name(self) -> str:
        """Get database name."""
        return self.db.database

    def get_connection_string(self) -> str:
        """Get database connection string.

        Returns:
            SQLAlchemy-compatible connection string
        """
        return self.db.get_connection_string()


# Global configuration instance
config = Config()
