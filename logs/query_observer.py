"""
=====================================
Statement execution observers.
=====================================

Observers are handed to a StatementExecutor and are told about every
statement it runs, successful or not. They replace process-wide named
event channels: each executor has its own explicit observer list.

Classes:
    QueryEvent: What ran, against which table, with which arguments, how long
    QueryObserver: Base class; override on_success / on_failure
    LoggingObserver: Writes events to a standard logger
    CallbackObserver: Adapts plain callables
    QueryStatsObserver: Collects per-operation timings (pandas summary)

Example:
    >>> from logs.query_observer import CallbackObserver, LoggingObserver
    >>> from contexts.executor import StatementExecutor
    >>>
    >>> failures = []
    >>> executor = StatementExecutor(
    ...     engine,
    ...     observers=[
    ...         LoggingObserver(),
    ...         CallbackObserver(on_failure=lambda event, error: failures.append(event))
    ...     ]
    ... )
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from core.config import config
from core.logger import format_statement

logger = logging.getLogger(__name__)


@dataclass
class QueryEvent:
    """A statement run by the executor.

    Attributes:
        operation: 'query', 'insert', 'update', 'delete', 'truncate' or 'describe'
        table: Table name, or chain label such as ``Artist-join-Album``
        text: Statement text with ``?`` placeholders
        arguments: Positional arguments
        started_at: When execution began
        duration_ms: Wall-clock duration in milliseconds
        rowcount: Rows returned or affected, when known
    """

    operation: str
    table: str
    text: str
    arguments: List[Any] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    duration_ms: float = 0.0
    rowcount: Optional[int] = None

    @property
    def raw_text(self) -> str:
        """Statement with arguments inlined, for display only."""
        return format_statement(self.text, self.arguments)


class QueryObserver:
    """Base observer; both hooks default to doing nothing."""

    def on_success(self, event: QueryEvent) -> None:
        pass

    def on_failure(self, event: QueryEvent, error: BaseException) -> None:
        pass


class LoggingObserver(QueryObserver):
    """Log each statement at DEBUG and each failure at ERROR.

    Args:
        log: Logger to write to (defaults to this module's logger)
        log_sql: Log successful statements; defaults to the LOG_SQL setting
    """

    def __init__(self, log: Optional[logging.Logger] = None, log_sql: Optional[bool] = None):
        self.log = log or logger
        self.log_sql = config.logging.log_sql if log_sql is None else log_sql

    def on_success(self, event: QueryEvent) -> None:
        if self.log_sql:
            self.log.debug(
                f"[{event.table}] {event.operation} ({event.duration_ms:.1f} ms, "
                f"rows={event.rowcount}): {event.raw_text}"
            )

    def on_failure(self, event: QueryEvent, error: BaseException) -> None:
        self.log.error(f"[{event.table}] {event.operation} failed: {error} -- {event.raw_text}")


class CallbackObserver(QueryObserver):
    """Adapt plain callables to the observer interface."""

    def __init__(
        self,
        on_success: Optional[Callable[[QueryEvent], None]] = None,
        on_failure: Optional[Callable[[QueryEvent, BaseException], None]] = None
    ):
        self._on_success = on_success
        self._on_failure = on_failure

    def on_success(self, event: QueryEvent) -> None:
        if self._on_success is not None:
            self._on_success(event)

    def on_failure(self, event: QueryEvent, error: BaseException) -> None:
        if self._on_failure is not None:
            self._on_failure(event, error)


class QueryStatsObserver(QueryObserver):
    """Collect execution timings for later analysis.

    Example:
        >>> stats = QueryStatsObserver()
        >>> executor = StatementExecutor(engine, observers=[stats])
        >>> # ... run queries ...
        >>> stats.summary()
        {'query': {'count': 12, 'failures': 0, 'mean_ms': 3.2, 'max_ms': 9.8}}
    """

    COLUMNS = ['operation', 'table', 'duration_ms', 'rowcount', 'failed']

    def __init__(self):
        self._records: List[Dict[str, Any]] = []

    def on_success(self, event: QueryEvent) -> None:
        self._record(event, failed=False)

    def on_failure(self, event: QueryEvent, error: BaseException) -> None:
        self._record(event, failed=True)

    def _record(self, event: QueryEvent, failed: bool) -> None:
        self._records.append({
            'operation': event.operation,
            'table': event.table,
            'duration_ms': event.duration_ms,
            'rowcount': event.rowcount,
            'failed': failed,
        })

    def to_frame(self) -> pd.DataFrame:
        """All recorded executions as a DataFrame."""
        return pd.DataFrame(self._records, columns=self.COLUMNS)

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Per-operation execution count, failure count, mean and max duration."""
        frame = self.to_frame()
        if frame.empty:
            return {}

        grouped = frame.groupby('operation').agg(
            count=('duration_ms', 'size'),
            failures=('failed', 'sum'),
            mean_ms=('duration_ms', 'mean'),
            max_ms=('duration_ms', 'max'),
        )
        return {
            operation: {
                'count': int(row['count']),
                'failures': int(row['failures']),
                'mean_ms': float(row['mean_ms']),
                'max_ms': float(row['max_ms']),
            }
            for operation, row in grouped.iterrows()
        }

    def reset(self) -> None:
        self._records = []
