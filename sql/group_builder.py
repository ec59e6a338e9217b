"""
=======================
GROUP BY clause builder.
=======================

Groups by plain columns or by date buckets of a DATE/DATETIME/TIMESTAMP
column. Once any key is added the only selectable columns are the
group keys and a row count, so the select list must come from
``projected_columns()``.

Result rows of a grouped query carry these fields:
    $count      number of rows in the group
    $yearDay    'YYYY/DDD' bucket from by_day()
    $yearWeek   YEARWEEK() bucket from by_week()
    $yearMonth  'YYYY/M' bucket from by_month()
    $year       year from by_year()

Usage:
    from sql.group_builder import GroupBuilder

    group = GroupBuilder().by('Country').by_year('HireDate')
    str(group)                  # GROUP BY Country,`$year`
    group.projected_columns()   # ['COUNT(*) AS `$count`', 'Country', 'YEAR(HireDate) AS `$year`']
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

COUNT_ALIAS = '$count'
YEAR_DAY_ALIAS = '$yearDay'
YEAR_WEEK_ALIAS = '$yearWeek'
YEAR_MONTH_ALIAS = '$yearMonth'
YEAR_ALIAS = '$year'


def quote_alias(alias: str) -> str:
    """Backtick-quote an alias so the ``$`` prefix reaches the driver intact."""
    return f"`{alias}`"


@dataclass(frozen=True)
class GroupKey:
    """One GROUP BY key.

    Attributes:
        expression: Bare column or bucketing expression
        alias: Result field name for bucketing expressions
        sequence_index: Position of the key in the chain
    """

    expression: str
    alias: Optional[str] = None
    sequence_index: int = 0

    def render_group(self) -> str:
        return quote_alias(self.alias) if self.alias else self.expression

    def render_select(self) -> str:
        if self.alias:
            return f"{self.expression} AS {quote_alias(self.alias)}"
        return self.expression


class GroupBuilder:
    """Fluent builder for GROUP BY keys and the matching select list."""

    def __init__(self):
        self._keys: List[GroupKey] = []

    def by(self, column: str) -> "GroupBuilder":
        """Group by a plain column."""
        return self._append(str(column))

    def by_day(self, column: str) -> "GroupBuilder":
        """Group a temporal column by day of year; rows carry ``$yearDay``."""
        return self._append(f"CONCAT(YEAR({column}), '/', DAYOFYEAR({column}))", YEAR_DAY_ALIAS)

    def by_week(self, column: str) -> "GroupBuilder":
        """Group a temporal column by week; rows carry ``$yearWeek``."""
        return self._append(f"YEARWEEK({column})", YEAR_WEEK_ALIAS)

    def by_month(self, column: str) -> "GroupBuilder":
        """Group a temporal column by month; rows carry ``$yearMonth``."""
        return self._append(f"CONCAT(YEAR({column}), '/', MONTH({column}))", YEAR_MONTH_ALIAS)

    def by_year(self, column: str) -> "GroupBuilder":
        """Group a temporal column by year; rows carry ``$year``."""
        return self._append(f"YEAR({column})", YEAR_ALIAS)

    @property
    def keys(self) -> Tuple[GroupKey, ...]:
        return tuple(self._keys)

    @property
    def is_empty(self) -> bool:
        return not self._keys

    def projected_columns(self, default: Sequence[str] = ('*',)) -> List[str]:
        """Columns the surrounding SELECT may project.

        Args:
            default: Projection used when no key was added

        Returns:
            ``default`` when ungrouped, otherwise the row count followed by
            each key's expression (aliased where an alias exists)
        """
        if not self._keys:
            return list(default)
        return [f"COUNT(*) AS {quote_alias(COUNT_ALIAS)}"] + [key.render_select() for key in self._keys]

    def _append(self, expression: str, alias: Optional[str] = None) -> "GroupBuilder":
        self._keys.append(GroupKey(expression=expression, alias=alias, sequence_index=len(self._keys)))
        return self

    def __str__(self) -> str:
        if not self._keys:
            return ''
        return 'GROUP BY ' + ','.join(key.render_group() for key in self._keys)

    def __repr__(self) -> str:
        return f"GroupBuilder({str(self)!r})"
