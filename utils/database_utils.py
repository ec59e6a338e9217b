"""
==================================
Database connectivity utilities.
==================================

Provides engine creation with connection pooling, availability checks and
table description for the table contexts. SQLAlchemy owns the pool; one
engine is meant to be shared by every context talking to the same database.

Key Features:
    - Engine creation from config or an explicit URL
    - Availability checks with retry
    - Column discovery for a table (used by join column resolution)

Example:
    >>> from utils.database_utils import create_sqlalchemy_engine, describe_table
    >>>
    >>> engine = create_sqlalchemy_engine()
    >>> describe_table(engine, 'Customer')
    ['CustomerId', 'FirstName', 'LastName', ...]
"""

import logging
import time
from typing import List, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from core.config import config
from core.exceptions import TableContextError

logger = logging.getLogger(__name__)


class DatabaseConnectionError(TableContextError):
    """Exception raised when the database never becomes reachable."""
    pass


def get_connection_string(url: Optional[str] = None) -> str:
    """
    Resolve the connection string to use.

    Args:
        url: Explicit SQLAlchemy URL; defaults to the configured one

    Returns:
        SQLAlchemy connection string
    """
    return url or config.get_connection_string()


def create_sqlalchemy_engine(
    url: Optional[str] = None,
    echo: bool = False,
    pool_size: Optional[int] = None,
    max_overflow: int = 0
) -> Engine:
    """
    Create a SQLAlchemy engine with connection pooling.

    Pool sizing is only applied to server databases; SQLite keeps the pool
    SQLAlchemy picks for it.

    Args:
        url: SQLAlchemy URL (defaults to config)
        echo: Enable SQLAlchemy statement echo
        pool_size: Pooled connections (defaults to MYSQL_POOL_SIZE)
        max_overflow: Connections allowed beyond pool_size

    Returns:
        Configured SQLAlchemy Engine
    """
    connection_url = make_url(get_connection_string(url))

    if connection_url.get_backend_name() == 'sqlite':
        return create_engine(connection_url, echo=echo)

    return create_engine(
        connection_url,
        echo=echo,
        pool_size=pool_size or config.db.pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True  # Verify connections before using
    )


def check_database_available(engine: Engine) -> bool:
    """
    Check whether the database behind an engine answers ``SELECT 1``.

    Args:
        engine: Engine to test

    Returns:
        True if the database is available, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.debug(f"Database not available: {e}")
        return False


def wait_for_database(engine: Engine, max_retries: int = 10, retry_delay: float = 2) -> bool:
    """
    Wait for the database to become available, retrying with a fixed delay.

    Args:
        engine: Engine to test
        max_retries: Maximum number of attempts
        retry_delay: Delay between attempts in seconds

    Returns:
        True once the database is available

    Raises:
        DatabaseConnectionError: If the database never becomes available
    """
    target = engine.url.render_as_string(hide_password=True)
    logger.info(f"Waiting for database at {target}...")

    for attempt in range(1, max_retries + 1):
        if check_database_available(engine):
            logger.info(f"Database is available (attempt {attempt}/{max_retries})")
            return True

        if attempt < max_retries:
            logger.warning(
                f"Database not available yet (attempt {attempt}/{max_retries}), "
                f"retrying in {retry_delay}s..."
            )
            time.sleep(retry_delay)

    error_msg = f"Database at {target} did not become available after {max_retries} attempts"
    logger.error(error_msg)
    raise DatabaseConnectionError(error_msg)


def describe_table(engine: Engine, table: str) -> List[str]:
    """
    List a table's column names in ordinal order.

    Args:
        engine: Engine bound to the database holding the table
        table: Table name

    Returns:
        Column names

    Raises:
        TableContextError: If the table does not exist
    """
    try:
        return [column['name'] for column in inspect(engine).get_columns(table)]
    except NoSuchTableError as e:
        raise TableContextError(f"Table '{table}' does not exist") from e
