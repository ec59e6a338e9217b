"""
================================================
Observability hooks for statement execution.
================================================

Observers are passed explicitly to a StatementExecutor; there is no global
event bus.

Modules:
    query_observer: QueryEvent, QueryObserver and stock observers

Example:
    >>> from logs import LoggingObserver, QueryStatsObserver
    >>> stats = QueryStatsObserver()
    >>> executor = StatementExecutor(engine, observers=[LoggingObserver(), stats])
"""

__all__ = [
    'QueryEvent', 'QueryObserver', 'LoggingObserver',
    'CallbackObserver', 'QueryStatsObserver'
]

from .query_observer import (
    CallbackObserver,
    LoggingObserver,
    QueryEvent,
    QueryObserver,
    QueryStatsObserver,
)
