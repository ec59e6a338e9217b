"""
=================================
Compiled statement execution.
=================================

Runs CompiledStatements over a SQLAlchemy engine. The clause builders
emit ``?`` placeholders; before execution each one is rebound to a named
SQLAlchemy parameter (``:p0``, ``:p1``, ...) so the statement works with
any driver paramstyle.

Every execution is reported to the executor's observers. Driver errors are
re-raised as QueryExecutionError once observers have been told.

Example:
    >>> from contexts.executor import StatementExecutor
    >>> from sql.query_compiler import CompiledStatement
    >>>
    >>> executor = StatementExecutor(engine)
    >>> executor.query(CompiledStatement('SELECT * FROM Artist WHERE ArtistId = ?', [1]), table='Artist')
    [{'ArtistId': 1, 'Name': 'AC/DC'}]
"""

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import QueryExecutionError, TableContextError, UnrecognizedStatementError
from logs.query_observer import QueryEvent, QueryObserver
from sql.query_compiler import CompiledStatement
from utils.database_utils import describe_table

logger = logging.getLogger(__name__)

# A quoted literal (skipped) or a positional placeholder
_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\?")

_VERBS = {
    'query': 'SELECT',
    'insert': 'INSERT',
    'update': 'UPDATE',
    'delete': 'DELETE',
    'truncate': 'TRUNCATE',
}


@dataclass
class ExecutionResult:
    """Outcome of a data-modifying statement.

    Attributes:
        rowcount: Rows affected
        lastrowid: Auto-increment id of the first inserted row, if any
    """

    rowcount: int
    lastrowid: Optional[int] = None


def bind_positional(statement_text: str, arguments: Sequence[Any]) -> Tuple[str, Dict[str, Any]]:
    """
    Rewrite ``?`` placeholders as named parameters.

    Placeholders inside single-quoted literals are left alone.

    Args:
        statement_text: Text with ``?`` placeholders
        arguments: Positional arguments, one per placeholder

    Returns:
        Tuple of (rewritten text, parameter dict)

    Raises:
        ValueError: If the placeholder count does not match the arguments
    """
    params: Dict[str, Any] = {}

    def _substitute(match: re.Match) -> str:
        if match.group(0) != '?':
            return match.group(0)
        index = len(params)
        if index >= len(arguments):
            raise ValueError(
                f"Statement has more placeholders than the {len(arguments)} argument(s) supplied"
            )
        name = f"p{index}"
        params[name] = arguments[index]
        return f":{name}"

    rewritten = _PLACEHOLDER_RE.sub(_substitute, statement_text)
    if len(params) != len(arguments):
        raise ValueError(
            f"Statement has {len(params)} placeholder(s) but {len(arguments)} argument(s) were supplied"
        )
    return rewritten, params


class StatementExecutor:
    """Execute compiled statements and notify observers.

    Args:
        engine: SQLAlchemy engine (owns the connection pool)
        observers: Observers notified after every execution
    """

    def __init__(self, engine: Engine, observers: Iterable[QueryObserver] = ()):
        self.engine = engine
        self.observers: List[QueryObserver] = list(observers)

    def add_observer(self, observer: QueryObserver) -> None:
        self.observers.append(observer)

    def query(self, statement: CompiledStatement, table: str = '') -> List[Dict[str, Any]]:
        """
        Run a SELECT and return its rows as dicts.

        Raises:
            UnrecognizedStatementError: If the statement is not a SELECT
            QueryExecutionError: If the database rejects the statement
        """
        self._check_verb(statement, 'query')
        rows, _ = self._run(statement, 'query', table)
        return rows

    def execute(self, statement: CompiledStatement, operation: str, table: str = '') -> ExecutionResult:
        """
        Run a data-modifying statement inside a transaction.

        Args:
            statement: Compiled INSERT / UPDATE / DELETE / TRUNCATE
            operation: 'insert', 'update', 'delete' or 'truncate'
            table: Table label for observers

        Raises:
            UnrecognizedStatementError: If the statement verb does not match ``operation``
            QueryExecutionError: If the database rejects the statement
        """
        self._check_verb(statement, operation)
        _, result = self._run(statement, operation, table)
        return result

    def describe_table(self, table: str) -> List[str]:
        """
        Column names of ``table``, reported to observers as a 'describe'.

        Raises:
            TableContextError: If the table does not exist
            QueryExecutionError: If the database cannot be inspected
        """
        event = QueryEvent(operation='describe', table=table, text=f"DESCRIBE {table}")
        start = time.perf_counter()

        try:
            columns = describe_table(self.engine, table)
        except TableContextError as e:
            self._notify_failure(event, start, e)
            raise
        except SQLAlchemyError as e:
            self._notify_failure(event, start, e)
            raise QueryExecutionError(
                f"describe on {table} failed: {e}",
                statement=event.text
            ) from e

        event.duration_ms = (time.perf_counter() - start) * 1000
        event.rowcount = len(columns)
        for observer in self.observers:
            observer.on_success(event)
        return columns

    def _notify_failure(self, event: QueryEvent, start: float, error: BaseException) -> None:
        event.duration_ms = (time.perf_counter() - start) * 1000
        for observer in self.observers:
            observer.on_failure(event, error)

    def _check_verb(self, statement: CompiledStatement, operation: str) -> None:
        verb = _VERBS.get(operation)
        if verb is None or not statement.text.lstrip().upper().startswith(verb):
            raise UnrecognizedStatementError(
                f"Unrecognized SQL {operation} command: {statement.text[:40]!r}"
            )

    def _run(
        self,
        statement: CompiledStatement,
        operation: str,
        table: str
    ) -> Tuple[List[Dict[str, Any]], ExecutionResult]:
        sql, params = bind_positional(statement.text, statement.arguments)
        event = QueryEvent(
            operation=operation,
            table=table,
            text=statement.text,
            arguments=list(statement.arguments),
            started_at=datetime.now()
        )
        start = time.perf_counter()

        try:
            with self.engine.begin() as conn:
                result = conn.execute(text(sql), params)
                if operation == 'query':
                    # Joined wildcards can repeat a column name; the last one wins.
                    # Table keys survive under their __T_key__ alias.
                    keys = list(result.keys())
                    rows = [dict(zip(keys, row)) for row in result]
                    outcome = ExecutionResult(rowcount=len(rows))
                else:
                    rows = []
                    lastrowid = result.lastrowid if operation == 'insert' else None
                    outcome = ExecutionResult(rowcount=result.rowcount, lastrowid=lastrowid)
        except SQLAlchemyError as e:
            self._notify_failure(event, start, e)
            raise QueryExecutionError(
                f"{operation} on {table or 'database'} failed: {e}",
                statement=statement.text,
                arguments=statement.arguments
            ) from e

        event.duration_ms = (time.perf_counter() - start) * 1000
        event.rowcount = outcome.rowcount
        for observer in self.observers:
            observer.on_success(event)
        return rows, outcome
