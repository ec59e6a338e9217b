"""
=======================
ORDER BY clause builder.
=======================

Usage:
    from sql.order_builder import OrderBuilder

    order = OrderBuilder()
    order.by('LastName').desc().by('FirstName')
    str(order)   # ORDER BY LastName DESC,FirstName
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Tuple


class Direction(str, Enum):
    ASC = 'ASC'
    DESC = 'DESC'


@dataclass(frozen=True)
class OrderKey:
    """One ORDER BY key.

    Attributes:
        column: Column or expression to sort by
        direction: Sort direction
        sequence_index: Position of the key in the chain
        explicit: Whether the direction was set by asc()/desc(); an implicit
            ascending key renders without a direction keyword
    """

    column: str
    direction: Direction = Direction.ASC
    sequence_index: int = 0
    explicit: bool = False

    def render(self) -> str:
        if self.explicit or self.direction is Direction.DESC:
            return f"{self.column} {self.direction.value}"
        return self.column


class OrderChain:
    """Returned by ``OrderBuilder.by``; sets the direction of the newest key
    or appends another one."""

    def __init__(self, builder: "OrderBuilder"):
        self._builder = builder

    def asc(self) -> "OrderChain":
        self._builder._set_direction(Direction.ASC)
        return self

    def desc(self) -> "OrderChain":
        self._builder._set_direction(Direction.DESC)
        return self

    def by(self, column: str) -> "OrderChain":
        return self._builder.by(column)


class OrderBuilder:
    """Append-only list of ORDER BY keys.

    Only the most recently appended key can have its direction changed.
    """

    def __init__(self):
        self._keys: List[OrderKey] = []

    def by(self, column: str) -> OrderChain:
        """Append an ascending key.

        Args:
            column: Column or expression to sort by

        Returns:
            Chain exposing asc(), desc() and by()
        """
        self._keys.append(OrderKey(column=str(column), sequence_index=len(self._keys)))
        return OrderChain(self)

    @property
    def keys(self) -> Tuple[OrderKey, ...]:
        return tuple(self._keys)

    @property
    def is_empty(self) -> bool:
        return not self._keys

    def _set_direction(self, direction: Direction) -> None:
        """Set the newest key's direction; a call before any key exists is ignored."""
        if not self._keys:
            return
        self._keys[-1] = replace(self._keys[-1], direction=direction, explicit=True)

    def __str__(self) -> str:
        if not self._keys:
            return ''
        return 'ORDER BY ' + ','.join(key.render() for key in self._keys)

    def __repr__(self) -> str:
        return f"OrderBuilder({str(self)!r})"
