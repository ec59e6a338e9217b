"""
==========================
SELECT and COUNT compiler.
==========================

Composes the clause builders into complete statement text plus the flat
argument list ready for positional binding.

Functions:
- compile_select: SELECT with WHERE / GROUP BY / ORDER BY / LIMIT / OFFSET
- compile_count: SELECT COUNT(*) (or COUNT(DISTINCT ...)) with WHERE

Usage:
    from sql.predicate_builder import WhereBuilder
    from sql.query_compiler import compile_select

    statement = compile_select(
        'Customer',
        where=WhereBuilder().equals('Country', 'USA'),
        limit=10
    )
    statement.text       # SELECT * FROM Customer WHERE Country = ? LIMIT 10
    statement.arguments  # ['USA']
"""

from typing import Any, List, NamedTuple, Optional, Sequence

from sql.group_builder import COUNT_ALIAS, GroupBuilder, quote_alias
from sql.order_builder import OrderBuilder
from sql.predicate_builder import WhereBuilder


class CompiledStatement(NamedTuple):
    """Statement text with ``?`` placeholders and its positional arguments."""
    text: str
    arguments: List[Any]


def _non_negative_int(value: Any, name: str) -> int:
    number = int(value)
    if number < 0:
        raise ValueError(f"{name} must be non-negative, got {value!r}")
    return number


def compile_select(
    source: str,
    columns: Sequence[str] = ('*',),
    where: Optional[WhereBuilder] = None,
    group: Optional[GroupBuilder] = None,
    order: Optional[OrderBuilder] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    distinct: Optional[Sequence[str]] = None
) -> CompiledStatement:
    """
    Build a SELECT statement.

    Args:
        source: FROM-clause text (table name or rendered join chain)
        columns: Select list used when the query is neither grouped nor distinct
        where: WHERE builder
        group: GROUP BY builder; when it has keys its projected columns
            replace ``columns``
        order: ORDER BY builder
        limit: Row limit; 0 or None means no limit
        offset: Rows to skip; only rendered together with a limit
        distinct: Columns for SELECT DISTINCT; overrides ``columns`` but
            cannot be combined with a grouped query

    Returns:
        CompiledStatement

    Raises:
        ValueError: If ``distinct`` is given for a grouped query, or
            limit/offset is negative
    """
    grouped = group is not None and not group.is_empty

    if grouped:
        if distinct:
            raise ValueError(
                "distinct cannot be combined with GROUP BY; grouped queries select "
                "only the group keys and the row count"
            )
        select_list = ','.join(group.projected_columns())
    elif distinct:
        select_list = 'DISTINCT ' + ','.join(distinct)
    else:
        select_list = ','.join(columns)

    parts = [f"SELECT {select_list} FROM {source}"]
    arguments: List[Any] = []

    if where is not None and not where.is_empty:
        text, where_args = where.compile()
        parts.append(text)
        arguments.extend(where_args)

    if grouped:
        parts.append(str(group))

    if order is not None and not order.is_empty:
        parts.append(str(order))

    limit = _non_negative_int(limit, 'limit') if limit is not None else 0
    offset = _non_negative_int(offset, 'offset') if offset is not None else 0
    if limit > 0:
        parts.append(f"LIMIT {limit}")
        if offset > 0:
            parts.append(f"OFFSET {offset}")

    return CompiledStatement(' '.join(parts), arguments)


def compile_count(
    source: str,
    where: Optional[WhereBuilder] = None,
    distinct: Optional[Sequence[str]] = None
) -> CompiledStatement:
    """
    Build a row-count statement; the count is returned in the ``$count`` field.

    Args:
        source: FROM-clause text
        where: WHERE builder
        distinct: Count distinct combinations of these columns instead of rows

    Returns:
        CompiledStatement
    """
    if distinct:
        counted = f"COUNT(DISTINCT {','.join(distinct)})"
    else:
        counted = 'COUNT(*)'

    parts = [f"SELECT {counted} AS {quote_alias(COUNT_ALIAS)} FROM {source}"]
    arguments: List[Any] = []
    if where is not None and not where.is_empty:
        text, where_args = where.compile()
        parts.append(text)
        arguments.extend(where_args)

    return CompiledStatement(' '.join(parts), arguments)
