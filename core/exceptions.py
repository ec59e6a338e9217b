"""
====================================
Exception hierarchy for the contexts.
====================================

Every error raised by the clause engine, the table contexts, and the
execution layer derives from TableContextError so callers can catch the
whole family in one place.

Build-time errors (everything except QueryExecutionError) are raised
synchronously while a statement is being composed, before any connection
is checked out of the pool.

Example:
    >>> from core.exceptions import MissingJoinKeyError, TableContextError
    >>> try:
    ...     customers.join(invoices, None, {'key': 'CustomerId'})
    ... except MissingJoinKeyError as e:
    ...     print(f"Bad join: {e}")
"""


class TableContextError(Exception):
    """Base exception for all table context errors."""
    pass


class InvalidConditionError(TableContextError):
    """Exception raised when a strict WhereBuilder receives a condition
    without a column or without its required value."""
    pass


class MissingJoinKeyError(TableContextError):
    """Exception raised when a join is built without both key descriptors."""
    pass


class NotSupportedOnJoinError(TableContextError):
    """Exception raised when a mutation is attempted on a join chain.

    A join chain has no single target table, so insert, update, delete
    and truncate are refused.
    """
    pass


class UnsafeMutationError(TableContextError):
    """Exception raised when an update or delete would touch every row
    without the caller opting in."""
    pass


class InvalidRecordError(TableContextError):
    """Exception raised when a record has no columns to write."""
    pass


class UnrecognizedStatementError(TableContextError):
    """Exception raised when a statement is sent through the wrong
    execution path (e.g. an UPDATE handed to query())."""
    pass


class QueryExecutionError(TableContextError):
    """Exception raised when the database rejects a compiled statement.

    Attributes:
        statement: The statement text that failed
        arguments: Positional arguments bound to the statement
    """

    def __init__(self, message: str, statement: str = "", arguments=None):
        super().__init__(message)
        self.statement = statement
        self.arguments = list(arguments or [])
