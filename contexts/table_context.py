"""
===========================
Table and join contexts.
===========================

A TableContext is a data-access facade over one query source. The source
is a value: either a single TableRef or an immutable JoinChain. Joining a
context returns a new context over a longer chain; the original is left
untouched.

Both kinds of source support the read surface (count, get, get_all). The
mutation surface (insert, update, delete, truncate) needs a single target
table, so on a join source it raises NotSupportedOnJoinError before any
SQL is built.

Query shape is given with callbacks that receive a fresh builder:

    customers = TableContext(engine, 'Customer', auto_increment_key='CustomerId')

    customers.get_all(
        where=lambda w: w.equals('Country', 'USA').or_equals('Country', 'Canada'),
        order_by=lambda o: o.by('LastName').desc().by('FirstName'),
    )
    customers.count(where=lambda w: w.is_not_null('Company'))

    tracks = (
        TableContext(engine, 'Artist')
        .join('Album', {'key': 'ArtistId'}, {'key': 'ArtistId'})
        .join('Track', {'key': 'AlbumId'}, {'key': 'AlbumId'})
    )
    tracks.get(10, where=lambda w: w.equals('Artist.Name', 'AC/DC'))

build_count() and build_select() return the compiled statement without
touching the database, so a query's shape can be checked up front.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
from sqlalchemy.engine import Engine

from contexts.executor import StatementExecutor
from core.config import config
from core.exceptions import NotSupportedOnJoinError, UnsafeMutationError
from logs.query_observer import QueryObserver
from models.schema import TableRef
from sql import join_planner
from sql.dml import (
    assign_generated_ids,
    delete_statement,
    insert_statement,
    truncate_statement,
    update_statement,
)
from sql.group_builder import COUNT_ALIAS, GroupBuilder
from sql.join_planner import JoinChain, JoinKeyLike, JoinKind
from sql.order_builder import OrderBuilder
from sql.predicate_builder import WhereBuilder
from sql.query_compiler import CompiledStatement, compile_count, compile_select
from utils.database_utils import create_sqlalchemy_engine


logger = logging.getLogger(__name__)

WhereCallback = Callable[[WhereBuilder], Any]
OrderCallback = Callable[[OrderBuilder], Any]
GroupCallback = Callable[[GroupBuilder], Any]
Source = Union[TableRef, JoinChain]


def _apply(callback: Optional[Callable[[Any], Any]], builder: Any) -> Any:
    """Run a builder callback; the callback may return the builder or nothing."""
    if callback is None:
        return builder
    result = callback(builder)
    return result if isinstance(result, type(builder)) else builder


class TableContext:
    """Query and mutate one table, or query a chain of joined tables.

    Args:
        connection: StatementExecutor, SQLAlchemy Engine, or connection URL
        table: Table name, TableRef, or JoinChain
        auto_increment_key: Auto-increment column; never written by
            insert/update and filled in on inserted records
        allow_update_on_all: Permit update_all() (defaults to ALLOW_UPDATE_ON_ALL)
        allow_truncation: Permit truncate() (defaults to ALLOW_TRUNCATION)
        observers: Extra observers attached to the executor
        strict_conditions: WhereBuilder strictness (defaults to STRICT_CONDITIONS)
    """

    def __init__(
        self,
        connection: Union[StatementExecutor, Engine, str],
        table: Union[str, Source],
        auto_increment_key: Optional[str] = None,
        allow_update_on_all: Optional[bool] = None,
        allow_truncation: Optional[bool] = None,
        observers: Iterable[QueryObserver] = (),
        strict_conditions: Optional[bool] = None
    ):
        if isinstance(connection, StatementExecutor):
            self._executor = connection
            for observer in observers:
                self._executor.add_observer(observer)
        elif isinstance(connection, Engine):
            self._executor = StatementExecutor(connection, observers)
        elif isinstance(connection, str):
            self._executor = StatementExecutor(create_sqlalchemy_engine(connection), observers)
        else:
            raise TypeError(
                f"connection must be a StatementExecutor, Engine or URL, got {type(connection).__name__}"
            )

        self.source: Source = (
            TableRef(table, key=auto_increment_key) if isinstance(table, str) else table
        )
        self.auto_increment_key = auto_increment_key
        self.allow_update_on_all = (
            config.builders.allow_update_on_all if allow_update_on_all is None else allow_update_on_all
        )
        self.allow_truncation = (
            config.builders.allow_truncation if allow_truncation is None else allow_truncation
        )
        self.strict_conditions = strict_conditions

    # -- identity -----------------------------------------------------------

    @property
    def executor(self) -> StatementExecutor:
        return self._executor

    @property
    def is_join(self) -> bool:
        return isinstance(self.source, JoinChain)

    @property
    def name(self) -> str:
        """Table name, or the chain label (``Artist-join-Album``) for joins."""
        return self.source.name

    @property
    def from_clause(self) -> str:
        if self.is_join:
            return join_planner.render(self.source)
        return self.source.render()

    @property
    def default_columns(self) -> List[str]:
        if self.is_join:
            return join_planner.columns(self.source)
        return ['*']

    def __repr__(self) -> str:
        return f"TableContext({self.from_clause!r})"

    # -- schema -------------------------------------------------------------

    def describe(self) -> List[str]:
        """
        Fetch and cache the column names of every table in the source.

        Returns:
            Column names, table-qualified for joins
        """
        if self.is_join:
            chain = self.source
            root = self._described(chain.root)
            described = JoinChain(root=root)
            for edge in chain.edges:
                described = join_planner.extend(
                    described, self._described(edge.right), edge.left_key, edge.right_key, edge.kind
                )
            self.source = described
            return [f"{t.qualifier}.{c}" for t in described.tables for c in t.columns]

        self.source = self._described(self.source)
        return list(self.source.columns)

    def _described(self, table: TableRef) -> TableRef:
        if table.columns:
            return table
        columns = self._executor.describe_table(table.name)
        logger.debug(f"Described {table.name}: {len(columns)} column(s)")
        return table.with_columns(columns)

    def resolve_column(self, name: str, table: Optional[str] = None) -> str:
        """Qualify a column name; ambiguous names across a join are returned as-is."""
        if self.is_join:
            return join_planner.resolve_column(self.source, name, table)
        return f"{table}.{name}" if table else name

    # -- joins --------------------------------------------------------------

    def join(self, table: Union["TableContext", TableRef, str], left_key: JoinKeyLike, right_key: JoinKeyLike) -> "TableContext":
        """INNER JOIN ``table`` onto the last table of this context.

        Args:
            table: Table to join (context, TableRef or name)
            left_key: ``{'key': column, 'table': optional}`` for this side
            right_key: Key descriptor for ``table``

        Returns:
            New read-only context over the extended chain

        Raises:
            MissingJoinKeyError: If either key descriptor is missing
        """
        return self._join(table, left_key, right_key, JoinKind.INNER)

    def left_join(self, table: Union["TableContext", TableRef, str], left_key: JoinKeyLike, right_key: JoinKeyLike) -> "TableContext":
        return self._join(table, left_key, right_key, JoinKind.LEFT)

    def right_join(self, table: Union["TableContext", TableRef, str], left_key: JoinKeyLike, right_key: JoinKeyLike) -> "TableContext":
        return self._join(table, left_key, right_key, JoinKind.RIGHT)

    def cross_join(self, table: Union["TableContext", TableRef, str], left_key: JoinKeyLike, right_key: JoinKeyLike) -> "TableContext":
        return self._join(table, left_key, right_key, JoinKind.CROSS)

    def _join(self, table, left_key, right_key, kind: JoinKind) -> "TableContext":
        if isinstance(table, TableContext):
            if table.is_join:
                raise TypeError("Only a single table can be joined onto a context")
            right = table.source
        elif isinstance(table, TableRef):
            right = table
        else:
            right = TableRef(str(table))

        chain = join_planner.extend(self.source, right, left_key, right_key, kind)
        return TableContext(
            self._executor,
            chain,
            strict_conditions=self.strict_conditions
        )

    # -- read surface -------------------------------------------------------

    def where_builder(self) -> WhereBuilder:
        return WhereBuilder(strict=self.strict_conditions)

    def build_count(
        self,
        where: Optional[WhereCallback] = None,
        distinct: Optional[Sequence[str]] = None
    ) -> CompiledStatement:
        """Compile the statement count() would run."""
        return compile_count(
            self.from_clause,
            where=_apply(where, self.where_builder()),
            distinct=distinct
        )

    def build_select(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        where: Optional[WhereCallback] = None,
        order_by: Optional[OrderCallback] = None,
        group_by: Optional[GroupCallback] = None,
        distinct: Optional[Sequence[str]] = None
    ) -> CompiledStatement:
        """Compile the statement get()/get_all() would run."""
        return compile_select(
            self.from_clause,
            columns=self.default_columns,
            where=_apply(where, self.where_builder()),
            group=_apply(group_by, GroupBuilder()),
            order=_apply(order_by, OrderBuilder()),
            limit=limit,
            offset=offset,
            distinct=distinct
        )

    def count(self, where: Optional[WhereCallback] = None, distinct: Optional[Sequence[str]] = None) -> int:
        """
        Count rows matching ``where``.

        Args:
            where: WHERE builder callback
            distinct: Count distinct combinations of these columns

        Returns:
            Number of matching rows
        """
        rows = self._executor.query(self.build_count(where, distinct), table=self.name)
        return int(rows[0][COUNT_ALIAS]) if rows else 0

    def get(
        self,
        limit: int,
        offset: int = 0,
        where: Optional[WhereCallback] = None,
        order_by: Optional[OrderCallback] = None,
        group_by: Optional[GroupCallback] = None,
        distinct: Optional[Sequence[str]] = None,
        as_frame: bool = False
    ) -> Union[List[Dict[str, Any]], pd.DataFrame]:
        """
        Fetch up to ``limit`` rows.

        Grouped queries return one row per group with a ``$count`` field
        plus the group keys (and ``$year``/``$yearMonth``/... for buckets).

        Args:
            limit: Maximum rows (0 for no limit)
            offset: Rows to skip
            where: WHERE builder callback
            order_by: ORDER BY builder callback
            group_by: GROUP BY builder callback
            distinct: Columns for SELECT DISTINCT
            as_frame: Return a pandas DataFrame instead of dicts

        Returns:
            Rows as dicts, or a DataFrame
        """
        statement = self.build_select(limit, offset, where, order_by, group_by, distinct)
        rows = self._executor.query(statement, table=self.name)
        return pd.DataFrame(rows) if as_frame else rows

    def get_all(
        self,
        where: Optional[WhereCallback] = None,
        order_by: Optional[OrderCallback] = None,
        group_by: Optional[GroupCallback] = None,
        distinct: Optional[Sequence[str]] = None,
        as_frame: bool = False
    ) -> Union[List[Dict[str, Any]], pd.DataFrame]:
        """Fetch every matching row; see get() for the arguments."""
        statement = self.build_select(None, None, where, order_by, group_by, distinct)
        rows = self._executor.query(statement, table=self.name)
        return pd.DataFrame(rows) if as_frame else rows

    # -- mutation surface ---------------------------------------------------

    def _ensure_table(self, operation: str) -> None:
        if self.is_join:
            raise NotSupportedOnJoinError(f"Cannot {operation} on joined tables ({self.name})")

    @property
    def _excluded(self) -> List[str]:
        return [self.auto_increment_key] if self.auto_increment_key else []

    def insert_one(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one record; returns a copy with the generated key filled in."""
        self._ensure_table('insert')
        return self.insert_many([record])[0]

    def insert_many(self, records: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """
        Insert records with a single multi-row INSERT.

        The auto-increment key, if any, is never written; returned copies
        carry the ids the database assigned.

        Returns:
            Copies of the inserted records
        """
        self._ensure_table('insert')
        if not records:
            return []

        statement = insert_statement(self.source.name, records, exclude=self._excluded)
        result = self._executor.execute(statement, 'insert', table=self.name)

        if self.auto_increment_key:
            return assign_generated_ids(records, self.auto_increment_key, result.lastrowid)
        return [dict(record) for record in records]

    def update(self, record: Mapping[str, Any], where: Optional[WhereCallback] = None) -> int:
        """
        Update rows matching ``where`` with the record's values.

        Without ``where``, a record carrying the auto-increment key updates
        the row with that key.

        Returns:
            Number of affected rows

        Raises:
            UnsafeMutationError: If no WHERE clause could be built
            InvalidRecordError: If the record has no columns to set
        """
        self._ensure_table('update')
        builder = _apply(where, self.where_builder())

        key = self.auto_increment_key
        if where is None and key and record.get(key) is not None:
            builder.equals(key, record[key])

        if builder.is_empty:
            raise UnsafeMutationError(
                "No WHERE clause was built, possibly resulting in all records in the table being updated. "
                "If you are sure you know what you are doing, then use update_all()."
            )

        statement = update_statement(self.source.name, record, builder, exclude=self._excluded)
        return self._executor.execute(statement, 'update', table=self.name).rowcount

    def update_all(self, record: Mapping[str, Any]) -> int:
        """
        Update every row of the table.

        Raises:
            UnsafeMutationError: Unless the context allows updates on all rows
        """
        self._ensure_table('update')
        if not self.allow_update_on_all:
            raise UnsafeMutationError(
                "You are trying to update all records in the table with no filter. "
                "Pass allow_update_on_all=True (or set ALLOW_UPDATE_ON_ALL) if this is intended."
            )
        statement = update_statement(self.source.name, record, exclude=self._excluded)
        return self._executor.execute(statement, 'update', table=self.name).rowcount

    def delete(self, where: Optional[WhereCallback] = None) -> int:
        """
        Delete rows matching ``where``.

        Returns:
            Number of deleted rows

        Raises:
            UnsafeMutationError: If no WHERE clause was built
        """
        self._ensure_table('delete')
        builder = _apply(where, self.where_builder())
        if builder.is_empty:
            raise UnsafeMutationError(
                "No WHERE clause was built, possibly resulting in all records in the table being deleted. "
                "If you are sure you know what you are doing, then use truncate()."
            )
        statement = delete_statement(self.source.name, builder)
        return self._executor.execute(statement, 'delete', table=self.name).rowcount

    def truncate(self) -> int:
        """
        Remove every row of the table.

        Raises:
            UnsafeMutationError: Unless the context allows truncation
        """
        self._ensure_table('truncate')
        if not self.allow_truncation:
            raise UnsafeMutationError(
                "You are trying to delete all records in the table. "
                "Pass allow_truncation=True (or set ALLOW_TRUNCATION) if this is intended."
            )
        return self._executor.execute(truncate_statement(self.source.name), 'truncate', table=self.name).rowcount
