"""
=========================================
Core infrastructure package for contexts.
=========================================

This package provides centralized configuration, logging, and the
exception hierarchy used throughout the table contexts.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and utilities
    exceptions: TableContextError and its subclasses

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Connecting to {config.db_host}")
"""

__version__ = "1.1.3"
__all__ = [
    'config', 'Config', 'get_logger', 'setup_logging', 'format_statement',
    'TableContextError', 'InvalidConditionError', 'MissingJoinKeyError',
    'NotSupportedOnJoinError', 'UnsafeMutationError', 'InvalidRecordError',
    'UnrecognizedStatementError', 'QueryExecutionError'
]

from core.config import Config, config
from core.exceptions import (
    InvalidConditionError,
    InvalidRecordError,
    MissingJoinKeyError,
    NotSupportedOnJoinError,
    QueryExecutionError,
    TableContextError,
    UnrecognizedStatementError,
    UnsafeMutationError,
)
from core.logger import format_statement, get_logger, setup_logging
