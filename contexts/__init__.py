"""
==========================================
Table contexts and statement execution.
==========================================

Modules:
    executor: Runs compiled statements over a SQLAlchemy engine
    table_context: Read/write facade over a table or a join chain

Example:
    >>> from contexts import TableContext
    >>> customers = TableContext(engine, 'Customer', auto_increment_key='CustomerId')
    >>> customers.count(where=lambda w: w.equals('Country', 'USA'))
"""

__version__ = "1.1.3"
__all__ = [
    'ExecutionResult',
    'StatementExecutor',
    'bind_positional',
    'TableContext'
]

from .executor import ExecutionResult, StatementExecutor, bind_positional
from .table_context import TableContext
