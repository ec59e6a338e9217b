"""
==============================================
SQL clause builders and statement compilation.
==============================================

This package turns fluent, chainable calls into parameterized SQL text
with ``?`` placeholders and a flat, ordered argument list.

The package follows a clear organization:
    - predicate_builder.py: WHERE clause builder (WhereBuilder)
    - order_builder.py: ORDER BY builder (OrderBuilder)
    - group_builder.py: GROUP BY builder and grouped select list (GroupBuilder)
    - join_planner.py: Join chains rendered into one FROM clause
    - query_compiler.py: SELECT / COUNT assembly (CompiledStatement)
    - dml.py: INSERT / UPDATE / DELETE / TRUNCATE templating

Architecture:
    - Builders hold state local to one statement; nothing is shared
    - Join chains are immutable values; extending returns a new chain
    - query_compiler.py depends on the builders, never the reverse
    - Nothing in this package touches a connection

Example:
    >>> from sql import WhereBuilder, compile_select
    >>>
    >>> where = WhereBuilder().equals('FirstName', 'Frank').and_equals('LastName', 'Harris')
    >>> compile_select('Customer', where=where)
    CompiledStatement(text='SELECT * FROM Customer WHERE FirstName = ? AND LastName = ?', arguments=['Frank', 'Harris'])
"""

__version__ = "1.1.3"
__all__ = [
    # Builders
    'WhereBuilder', 'OrderBuilder', 'GroupBuilder',
    # Joins
    'JoinChain', 'JoinEdge', 'JoinKind',
    # Compilation
    'CompiledStatement', 'compile_select', 'compile_count',
    # DML
    'insert_statement', 'update_statement', 'delete_statement', 'truncate_statement'
]

from .dml import delete_statement, insert_statement, truncate_statement, update_statement
from .group_builder import GroupBuilder
from .join_planner import JoinChain, JoinEdge, JoinKind
from .order_builder import OrderBuilder
from .predicate_builder import WhereBuilder
from .query_compiler import CompiledStatement, compile_count, compile_select
