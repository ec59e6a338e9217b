"""
==========================
Utility Functions Package.
==========================

Modules:
    database_utils: Engine creation, availability checks, table description
"""

__version__ = "1.1.3"
__all__ = [
    'DatabaseConnectionError',
    'get_connection_string',
    'create_sqlalchemy_engine',
    'check_database_available',
    'wait_for_database',
    'describe_table'
]

from .database_utils import (
    DatabaseConnectionError,
    check_database_available,
    create_sqlalchemy_engine,
    describe_table,
    get_connection_string,
    wait_for_database,
)
