"""
===========================================
Data Manipulation Language (DML) templating.
===========================================

Builds INSERT, UPDATE, DELETE and TRUNCATE statements for a single table
with ``?`` placeholders. Row filtering reuses WhereBuilder so UPDATE and
DELETE bind their SET values first and their WHERE values after.

Functions:
- insert_statement: Multi-row INSERT from a list of records
- update_statement: UPDATE ... SET from one record, optionally filtered
- delete_statement: DELETE filtered by a WhereBuilder
- truncate_statement: TRUNCATE
- normalize_argument: Convert ISO-8601 UTC strings to MySQL DATETIME text

Usage:
    from sql.dml import insert_statement, update_statement
    from sql.predicate_builder import WhereBuilder

    insert_statement('Artist', [{'Name': 'Foo'}, {'Name': 'Bar'}])
    # INSERT INTO Artist (Name) VALUES (?), (?)   ['Foo', 'Bar']

    update_statement('Customer', {'Email': 'a@b.c'}, WhereBuilder().equals('CustomerId', 1))
    # UPDATE Customer SET Email = ? WHERE CustomerId = ?   ['a@b.c', 1]
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from core.exceptions import InvalidRecordError
from sql.predicate_builder import WhereBuilder
from sql.query_compiler import CompiledStatement

# JavaScript-style ISO strings, e.g. 2023-01-31T18:04:05.000Z
ISO_UTC_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$')


def normalize_argument(value: Any) -> Any:
    """Convert an ISO-8601 UTC string to ``YYYY-MM-DD HH:MM:SS``.

    Any other value is returned unchanged.
    """
    if isinstance(value, str) and ISO_UTC_PATTERN.match(value):
        return value[:19].replace('T', ' ')
    return value


def _writable_columns(record: Mapping[str, Any], exclude: Iterable[str]) -> List[str]:
    excluded = set(exclude)
    return [column for column in record.keys() if column not in excluded]


def insert_statement(
    table: str,
    records: Sequence[Mapping[str, Any]],
    exclude: Iterable[str] = ()
) -> CompiledStatement:
    """
    Generate a multi-row INSERT.

    The column list is taken from the first record; every record contributes
    one VALUES tuple in that column order (missing keys bind NULL).

    Args:
        table: Target table
        records: Records to insert
        exclude: Columns never written (e.g. an auto-increment key)

    Returns:
        CompiledStatement

    Raises:
        InvalidRecordError: If there are no records or no writable columns
    """
    if not records:
        raise InvalidRecordError("insert requires at least one record")

    columns = _writable_columns(records[0], exclude)
    if not columns:
        raise InvalidRecordError(f"The record passed to insert into {table} has no columns to write")

    row = '(' + ', '.join('?' for _ in columns) + ')'
    values = ', '.join(row for _ in records)
    arguments = [normalize_argument(record.get(column)) for record in records for column in columns]

    return CompiledStatement(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES {values}",
        arguments
    )


def update_statement(
    table: str,
    record: Mapping[str, Any],
    where: Optional[WhereBuilder] = None,
    exclude: Iterable[str] = ()
) -> CompiledStatement:
    """
    Generate an UPDATE.

    Args:
        table: Target table
        record: Column/value pairs to set
        where: Row filter; None or empty updates every row
        exclude: Columns never written (e.g. an auto-increment key)

    Returns:
        CompiledStatement with SET arguments followed by WHERE arguments

    Raises:
        InvalidRecordError: If the record has no writable columns
    """
    columns = _writable_columns(record, exclude)
    if not columns:
        raise InvalidRecordError(
            f"The record passed to update {table} has no keys to represent the column(s) to update"
        )

    sets = ', '.join(f"{column} = ?" for column in columns)
    arguments = [normalize_argument(record[column]) for column in columns]
    text = f"UPDATE {table} SET {sets}"

    if where is not None and not where.is_empty:
        where_text, where_args = where.compile()
        text += f" {where_text}"
        arguments.extend(where_args)

    return CompiledStatement(text, arguments)


def delete_statement(table: str, where: WhereBuilder) -> CompiledStatement:
    """Generate ``DELETE FROM table WHERE ...``."""
    where_text, where_args = where.compile()
    text = f"DELETE FROM {table}"
    if where_text:
        text += f" {where_text}"
    return CompiledStatement(text, where_args)


def truncate_statement(table: str) -> CompiledStatement:
    """Generate ``TRUNCATE table``."""
    return CompiledStatement(f"TRUNCATE {table}", [])


def assign_generated_ids(
    records: Sequence[Mapping[str, Any]],
    key: str,
    first_id: Optional[int]
) -> List[Dict[str, Any]]:
    """Copy records, setting ``key`` to consecutive ids starting at ``first_id``.

    MySQL reports the id of the first row of a multi-row INSERT; the rest
    follow consecutively.
    """
    copies = []
    for offset, record in enumerate(records):
        copy = dict(record)
        if first_id is not None:
            copy[key] = first_id + offset
        copies.append(copy)
    return copies
