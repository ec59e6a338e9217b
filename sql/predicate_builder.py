"""
======================
WHERE clause builder.
======================

Builds a predicate tree from chained condition calls and compiles it to
``WHERE`` clause text with ``?`` placeholders plus the flat, ordered list
of positional arguments bound to them.

Every comparison comes in three flavors:
- default (``equals``) and ``and_`` (``and_equals``): joined with AND
- ``or_`` (``or_equals``): joined with OR
The first condition of a clause is never prefixed with a connector.

Condition methods:
- equals / not_equals: ``col = ?`` / ``col <> ?``
- less_than / less_than_or_equal_to: ``col < ?`` / ``col <= ?``
- greater_than / greater_than_or_equal_to: ``col > ?`` / ``col >= ?``
- is_in / is_not_in: ``col IN (?, ?)`` / ``col NOT IN (?, ?)``
- is_null / is_not_null: ``col IS NULL`` / ``col IS NOT NULL``

Every condition method also accepts a ``where`` callback. The callback gets
a fresh nested builder; whatever it builds is appended right after the
condition and the pair is wrapped in parentheses.

Usage:
    from sql.predicate_builder import WhereBuilder

    where = (
        WhereBuilder()
        .equals('FirstName', 'Frank')
        .and_equals('LastName', 'Harris', lambda w: w.or_equals('CustomerId', 16))
    )
    str(where)             # WHERE FirstName = ? AND (LastName = ? OR CustomerId = ?)
    where.get_arguments()  # ['Frank', 'Harris', 16]

    # Negate one condition, or a whole sub-expression
    WhereBuilder().equals('FirstName', 'Frank').not_().and_equals('LastName', 'Harris')
    WhereBuilder().not_(lambda w: w.equals('FirstName', 'Frank').and_equals('LastName', 'Harris'))
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Tuple

from core.config import config
from core.exceptions import InvalidConditionError


class Operator(str, Enum):
    """Comparison operators, valued with their SQL spelling."""
    EQ = '='
    NE = '<>'
    LT = '<'
    LTE = '<='
    GT = '>'
    GTE = '>='
    IN = 'IN'
    NOT_IN = 'NOT IN'
    IS_NULL = 'IS NULL'
    IS_NOT_NULL = 'IS NOT NULL'


class Connector(str, Enum):
    """How a node attaches to the node before it."""
    NONE = ''
    AND = 'AND'
    OR = 'OR'


LIST_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN})
NULL_OPERATORS = frozenset({Operator.IS_NULL, Operator.IS_NOT_NULL})


@dataclass(frozen=True)
class PredicateNode:
    """One WHERE condition plus its connector, negation and nested group.

    A node without an operator is a pure group: it renders only its
    children, parenthesized. Groups are produced by ``not_(where)``.

    Attributes:
        column: Column reference, bare or table-qualified
        operator: Comparison operator, or None for a group node
        value: Scalar for comparisons, tuple for IN / NOT IN, None otherwise
        connector: Keyword joining this node to the previous one
        negated: Render this node as ``NOT ...``
        children: Nested nodes rendered after this node's own fragment
    """

    column: Optional[str]
    operator: Optional[Operator]
    value: Any = None
    connector: Connector = Connector.NONE
    negated: bool = False
    children: Tuple["PredicateNode", ...] = ()

    @property
    def is_group(self) -> bool:
        return self.operator is None

    def render(self) -> str:
        if self.is_group:
            fragment = f"({render_nodes(self.children)})"
        else:
            fragment = self._render_condition()
            if self.children:
                fragment = f"({fragment}{render_nodes(self.children)})"

        if self.negated:
            fragment = f"NOT {fragment}"
        return fragment

    def arguments(self) -> List[Any]:
        """Positional arguments in the order their placeholders render."""
        if self.operator in LIST_OPERATORS:
            args = list(self.value)
        elif self.operator is None or self.operator in NULL_OPERATORS:
            args = []
        else:
            args = [self.value]

        for child in self.children:
            args.extend(child.arguments())
        return args

    def _render_condition(self) -> str:
        if self.operator in NULL_OPERATORS:
            return f"{self.column} {self.operator.value}"
        if self.operator in LIST_OPERATORS:
            placeholders = ', '.join('?' for _ in self.value)
            return f"{self.column} {self.operator.value} ({placeholders})"
        return f"{self.column} {self.operator.value} ?"


def render_nodes(nodes: Iterable[PredicateNode]) -> str:
    """Render a node sequence, prefixing each node with its connector."""
    parts = []
    for node in nodes:
        if node.connector is Connector.NONE:
            parts.append(node.render())
        else:
            parts.append(f" {node.connector.value} {node.render()}")
    return ''.join(parts)


NestedWhere = Callable[["WhereBuilder"], Optional["WhereBuilder"]]


class WhereBuilder:
    """Fluent builder for WHERE clauses.

    A fresh builder holds no conditions and renders as an empty string.
    Conditions missing their column or value are skipped, so callers that
    need a non-trivial filter must check ``is_empty`` themselves. Pass
    ``strict=True`` (or set STRICT_CONDITIONS) to raise
    InvalidConditionError instead.

    Args:
        strict: Raise on malformed conditions; defaults to the
            ``builders.strict_conditions`` setting
        nested: Build a nested group. The first condition of a nested
            builder keeps its connector, since it continues the parent's
            condition rather than opening a clause.
    """

    def __init__(self, strict: Optional[bool] = None, nested: bool = False):
        self._strict = config.builders.strict_conditions if strict is None else strict
        self._nested = nested
        self._nodes: List[PredicateNode] = []
        self._negate_next = False

    # -- negation -----------------------------------------------------------

    def not_(self, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Negate the next condition, or a whole sub-expression.

        Without a callback, only the next condition appended is negated;
        the flag is consumed by that condition whatever its connector.

        With a callback, the callback runs against this builder and the
        entire tree it leaves behind is wrapped in a single ``NOT (...)``.
        A callback that appends nothing leaves the builder unchanged.

        Args:
            where: Optional callback building the conditions to negate

        Returns:
            This builder
        """
        if where is None:
            self._negate_next = True
            return self

        self._negate_next = False
        before = len(self._nodes)
        where(self)
        if len(self._nodes) == before:
            return self

        first = self._nodes[0]
        children = (replace(first, connector=Connector.NONE),) + tuple(self._nodes[1:])
        self._nodes = [PredicateNode(
            column=None,
            operator=None,
            connector=first.connector,
            negated=True,
            children=children
        )]
        return self

    # -- equality -----------------------------------------------------------

    def equals(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column = ?``, joined with AND when a condition already exists.

        Args:
            column: Column name, bare or table-qualified
            value: Value bound to the placeholder
            where: Optional callback building a nested group after this condition

        Returns:
            This builder
        """
        return self._add(Connector.AND, column, Operator.EQ, value, where)

    def and_equals(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.EQ, value, where)

    def or_equals(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.EQ, value, where)

    def not_equals(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column <> ?``, joined with AND."""
        return self._add(Connector.AND, column, Operator.NE, value, where)

    def and_not_equals(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.NE, value, where)

    def or_not_equals(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.NE, value, where)

    # -- ordering comparisons -----------------------------------------------

    def less_than(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column < ?``, joined with AND."""
        return self._add(Connector.AND, column, Operator.LT, value, where)

    def and_less_than(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.LT, value, where)

    def or_less_than(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.LT, value, where)

    def less_than_or_equal_to(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column <= ?``, joined with AND."""
        return self._add(Connector.AND, column, Operator.LTE, value, where)

    def and_less_than_or_equal_to(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.LTE, value, where)

    def or_less_than_or_equal_to(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.LTE, value, where)

    def greater_than(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column > ?``, joined with AND."""
        return self._add(Connector.AND, column, Operator.GT, value, where)

    def and_greater_than(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.GT, value, where)

    def or_greater_than(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.GT, value, where)

    def greater_than_or_equal_to(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column >= ?``, joined with AND."""
        return self._add(Connector.AND, column, Operator.GTE, value, where)

    def and_greater_than_or_equal_to(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.GTE, value, where)

    def or_greater_than_or_equal_to(self, column: str, value: Any, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.GTE, value, where)

    # -- membership ---------------------------------------------------------

    def is_in(self, column: str, values: Iterable[Any], where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column IN (?, ...)`` with one placeholder per value, joined with AND.

        An empty value list is treated as a missing value.
        """
        return self._add(Connector.AND, column, Operator.IN, values, where)

    def and_in(self, column: str, values: Iterable[Any], where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.IN, values, where)

    def or_in(self, column: str, values: Iterable[Any], where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.IN, values, where)

    def is_not_in(self, column: str, values: Iterable[Any], where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column NOT IN (?, ...)``, joined with AND."""
        return self._add(Connector.AND, column, Operator.NOT_IN, values, where)

    def and_not_in(self, column: str, values: Iterable[Any], where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.NOT_IN, values, where)

    def or_not_in(self, column: str, values: Iterable[Any], where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.NOT_IN, values, where)

    # -- null checks --------------------------------------------------------

    def is_null(self, column: str, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column IS NULL``, joined with AND. Binds no argument."""
        return self._add(Connector.AND, column, Operator.IS_NULL, None, where)

    def and_is_null(self, column: str, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.IS_NULL, None, where)

    def or_is_null(self, column: str, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.IS_NULL, None, where)

    def is_not_null(self, column: str, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        """Add ``column IS NOT NULL``, joined with AND. Binds no argument."""
        return self._add(Connector.AND, column, Operator.IS_NOT_NULL, None, where)

    def and_is_not_null(self, column: str, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.AND, column, Operator.IS_NOT_NULL, None, where)

    def or_is_not_null(self, column: str, where: Optional[NestedWhere] = None) -> "WhereBuilder":
        return self._add(Connector.OR, column, Operator.IS_NOT_NULL, None, where)

    # -- output -------------------------------------------------------------

    @property
    def nodes(self) -> Tuple[PredicateNode, ...]:
        return tuple(self._nodes)

    @property
    def is_empty(self) -> bool:
        """True when no condition has been added."""
        return not self._nodes

    def compile(self) -> Tuple[str, List[Any]]:
        """Compile to ``(clause_text, arguments)``.

        Returns:
            ``('WHERE ...', [...])``, or ``('', [])`` for an empty builder
        """
        return str(self), self.get_arguments()

    def get_arguments(self) -> List[Any]:
        """Flat positional arguments, in placeholder order."""
        args: List[Any] = []
        for node in self._nodes:
            args.extend(node.arguments())
        return args

    def render_conditions(self) -> str:
        """Render the conditions without the ``WHERE`` opener."""
        return render_nodes(self._nodes)

    def reset(self) -> "WhereBuilder":
        """Clear every condition and the pending negation."""
        self._nodes = []
        self._negate_next = False
        return self

    def __str__(self) -> str:
        if not self._nodes:
            return ''
        return f"WHERE {self.render_conditions()}"

    def __repr__(self) -> str:
        return f"WhereBuilder({str(self)!r}, args={self.get_arguments()!r})"

    # -- internals ----------------------------------------------------------

    def _add(
        self,
        connector: Connector,
        column: Optional[str],
        operator: Operator,
        value: Any,
        where: Optional[NestedWhere]
    ) -> "WhereBuilder":
        if not column:
            if self._strict:
                raise InvalidConditionError(f"'{operator.value}' condition requires a column name")
            return self

        if operator in LIST_OPERATORS:
            if isinstance(value, (str, bytes)):
                value = (value,)
            value = tuple(value) if value is not None else ()
            if not value:
                if self._strict:
                    raise InvalidConditionError(f"'{column} {operator.value}' requires at least one value")
                return self
        elif operator not in NULL_OPERATORS and value is None:
            if self._strict:
                raise InvalidConditionError(
                    f"'{column} {operator.value}' requires a value; use is_null() to test for NULL"
                )
            return self

        children: Tuple[PredicateNode, ...] = ()
        if where is not None:
            nested = WhereBuilder(strict=self._strict, nested=True)
            built = where(nested)
            if isinstance(built, WhereBuilder):
                nested = built
            children = nested.nodes

        if not self._nodes and not self._nested:
            connector = Connector.NONE

        node = PredicateNode(
            column=str(column),
            operator=operator,
            value=value,
            connector=connector,
            negated=self._negate_next,
            children=children
        )
        self._negate_next = False
        self._nodes.append(node)
        return self
