"""
===========================================
Table and join key descriptors for contexts.
===========================================

Immutable value types shared by the join planner and the table contexts.
They carry only what the clause engine needs: a table's name, an optional
source alias, and the column names reported by the execution layer.

Example:
    >>> from models.schema import JoinKey, TableRef
    >>>
    >>> artist = TableRef('Artist', columns=('ArtistId', 'Name'))
    >>> album = TableRef('Album', columns=('AlbumId', 'Title', 'ArtistId'))
    >>> key = JoinKey('ArtistId')
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class TableRef:
    """A table taking part in a query.

    Attributes:
        name: Table name as known to the database
        alias: Optional alias used in the FROM clause
        columns: Known column names (empty when the table was never described)
        key: Auto-increment key; joined selects also project it under
            ``key_alias`` so same-named columns of later tables cannot hide it
    """

    name: str
    alias: Optional[str] = None
    columns: Tuple[str, ...] = ()
    key: Optional[str] = None

    @property
    def qualifier(self) -> str:
        """Name used to qualify this table's columns."""
        return self.alias or self.name

    def render(self) -> str:
        """Render the table for a FROM clause."""
        if self.alias:
            return f"{self.name} AS {self.alias}"
        return self.name

    def has_column(self, column: str) -> bool:
        return column in self.columns

    def with_columns(self, columns: Iterable[str]) -> "TableRef":
        """Return a copy of this reference carrying the given column names."""
        return TableRef(self.name, self.alias, tuple(columns), self.key)

    @property
    def key_alias(self) -> Optional[str]:
        """Result field carrying this table's key in joined rows, e.g. ``__Artist_ArtistId__``."""
        if not self.key:
            return None
        return f"__{self.qualifier}_{self.key}__"


@dataclass(frozen=True)
class JoinKey:
    """Join key descriptor supplied per join call.

    Attributes:
        key: Column name to join on
        table: Explicit table (or alias) qualifying the key; defaults to
            the table on that side of the join
    """

    key: str
    table: Optional[str] = None
