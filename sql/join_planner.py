"""
=================================
Join chain planning and rendering.
=================================

Linearizes a sequence of pairwise joins into one FROM clause. A JoinChain is
a strict path: every edge's left table is the previous edge's right table,
and each JOIN is anchored to the table immediately before it. Chains are
immutable; extending one returns a new chain sharing the old edges.

Functions:
- extend: Append a join edge to a table or chain, returning a new chain
- render: FROM-clause text for a chain
- columns: Table-qualified wildcard projection for every joined table
- resolve_column: Qualify a column name against the joined tables

Usage:
    from models.schema import JoinKey, TableRef
    from sql.join_planner import JoinKind, extend, render

    artist, album, track = TableRef('Artist'), TableRef('Album'), TableRef('Track')
    chain = extend(artist, album, JoinKey('ArtistId'), JoinKey('ArtistId'))
    chain = extend(chain, track, JoinKey('AlbumId'), JoinKey('AlbumId'))
    render(chain)
    # Artist INNER JOIN Album ON Artist.ArtistId = Album.ArtistId
    #   INNER JOIN Track ON Album.AlbumId = Track.AlbumId   (one line)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from core.exceptions import MissingJoinKeyError
from models.schema import JoinKey, TableRef

logger = logging.getLogger(__name__)


class JoinKind(str, Enum):
    INNER = 'INNER'
    LEFT = 'LEFT'
    RIGHT = 'RIGHT'
    CROSS = 'CROSS'


@dataclass(frozen=True)
class JoinEdge:
    """One two-table join.

    Attributes:
        left: Table on the left of the JOIN (the chain's previous table)
        right: Table being joined in
        left_key: Key descriptor on the left side
        right_key: Key descriptor on the right side
        kind: Join kind
    """

    left: TableRef
    right: TableRef
    left_key: JoinKey
    right_key: JoinKey
    kind: JoinKind = JoinKind.INNER

    def render(self) -> str:
        if self.kind is JoinKind.CROSS:
            return f"CROSS JOIN {self.right.render()}"
        left_qualifier = self.left_key.table or self.left.qualifier
        right_qualifier = self.right_key.table or self.right.qualifier
        return (
            f"{self.kind.value} JOIN {self.right.render()} "
            f"ON {left_qualifier}.{self.left_key.key} = {right_qualifier}.{self.right_key.key}"
        )


@dataclass(frozen=True)
class JoinChain:
    """Ordered, left-associative sequence of join edges.

    Attributes:
        root: First table of the FROM clause
        edges: Join edges in call order
    """

    root: TableRef
    edges: Tuple[JoinEdge, ...] = ()

    @property
    def tables(self) -> Tuple[TableRef, ...]:
        return (self.root,) + tuple(edge.right for edge in self.edges)

    @property
    def rightmost(self) -> TableRef:
        return self.edges[-1].right if self.edges else self.root

    @property
    def name(self) -> str:
        """Label for logs and events, e.g. ``Artist-join-Album``."""
        return '-join-'.join(table.name for table in self.tables)


JoinKeyLike = Union[JoinKey, dict, str, None]


def coerce_join_key(descriptor: Any, side: str) -> JoinKey:
    """Turn a key descriptor into a JoinKey.

    Accepts a JoinKey, a ``{'key': ..., 'table': ...}`` dict, or a bare
    column name.

    Raises:
        MissingJoinKeyError: If the descriptor is absent or names no key
    """
    if isinstance(descriptor, JoinKey):
        key, table = descriptor.key, descriptor.table
    elif isinstance(descriptor, dict):
        key, table = descriptor.get('key'), descriptor.get('table')
    elif isinstance(descriptor, str):
        key, table = descriptor, None
    else:
        key, table = None, None

    if not key:
        raise MissingJoinKeyError(
            f"The {side} join key descriptor must provide a 'key' naming the column to join on "
            f"(add 'table' if the column belongs to a different table)"
        )
    return JoinKey(key=str(key), table=table)


def extend(
    source: Union[TableRef, JoinChain],
    right: TableRef,
    left_key: JoinKeyLike,
    right_key: JoinKeyLike,
    kind: Union[JoinKind, str] = JoinKind.INNER
) -> JoinChain:
    """Append a join edge, returning a new chain.

    The new edge's left table is the source chain's rightmost table (or the
    source table itself). ``source`` is never modified.

    Args:
        source: Table or chain to extend
        right: Table to join in
        left_key: Key descriptor on the left side
        right_key: Key descriptor on the right side
        kind: Join kind (JoinKind or its name)

    Returns:
        New JoinChain

    Raises:
        MissingJoinKeyError: If either key descriptor is missing
    """
    left = coerce_join_key(left_key, 'left')
    right_join_key = coerce_join_key(right_key, 'right')
    kind = JoinKind(kind.upper()) if isinstance(kind, str) else kind

    chain = source if isinstance(source, JoinChain) else JoinChain(root=source)
    edge = JoinEdge(
        left=chain.rightmost,
        right=right,
        left_key=left,
        right_key=right_join_key,
        kind=kind
    )
    return JoinChain(root=chain.root, edges=chain.edges + (edge,))


def render(chain: JoinChain) -> str:
    """FROM-clause text: the root table followed by each edge in order."""
    parts = [chain.root.render()]
    parts.extend(edge.render() for edge in chain.edges)
    return ' '.join(parts)


def columns(chain: JoinChain) -> List[str]:
    """Wildcard projection of every joined table, qualified by table.

    A table carrying a key also projects it as ``T.key AS __T_key__`` ahead
    of ``T.*``, so an outer join whose right side repeats the key name does
    not hide the left value.
    """
    projection = []
    for table in chain.tables:
        if table.key:
            projection.append(f"{table.qualifier}.{table.key} AS {table.key_alias}")
        projection.append(f"{table.qualifier}.*")
    return projection


def resolve_column(chain: JoinChain, name: str, table: Optional[str] = None) -> str:
    """Qualify a column name for use against a joined FROM clause.

    Args:
        chain: Join chain the column is used with
        name: Column name
        table: Explicit table (or alias) to qualify with

    Returns:
        ``table.name`` when ``table`` is given or exactly one joined table
        knows the column; the name unchanged when it is already qualified,
        ambiguous, or unknown. Ambiguity is left for the caller to resolve.
    """
    if table:
        return f"{table}.{name}"
    if '.' in name:
        return name

    owners = [t for t in chain.tables if t.has_column(name)]
    if len(owners) == 1:
        return f"{owners[0].qualifier}.{name}"
    if len(owners) > 1:
        logger.debug(
            f"Column '{name}' is ambiguous across {[t.name for t in owners]}; "
            f"pass an explicit table to qualify it"
        )
    return name
