"""
=========================================
Command-line entry point for contexts.
=========================================

A thin CLI over TableContext for poking at a database from the shell. All
query building goes through the same contexts an application would use.

Commands:
    describe    List a table's columns
    count       Count rows, optionally filtered with --where
    preview     Compile a SELECT (with optional joins) and print it without
                running it

Usage:
    # Columns of Customer
    python main.py describe Customer

    # Customers in Brazil
    python main.py count Customer --where Country=Brazil

    # Statement for the first 10 AC/DC tracks
    python main.py preview Artist --join Album:ArtistId:ArtistId \\
        --join Track:AlbumId:AlbumId --where Artist.Name=AC/DC \\
        --order Track.Name --limit 10

    # Against another database
    python main.py --url sqlite:///chinook.db count Track
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional, Sequence, Tuple

from core.exceptions import TableContextError
from core.logger import format_statement, get_logger
from contexts.table_context import TableContext
from sql.order_builder import OrderBuilder
from sql.predicate_builder import WhereBuilder
from utils.database_utils import create_sqlalchemy_engine

logger = get_logger(__name__)


def parse_join(text: str) -> Tuple[str, str, str]:
    """
    Parse a ``Table:leftKey:rightKey`` join argument.

    Raises:
        argparse.ArgumentTypeError: If the argument does not have three parts
    """
    parts = text.split(':')
    if len(parts) != 3 or not all(parts):
        raise argparse.ArgumentTypeError(f"join must look like Table:leftKey:rightKey, got {text!r}")
    return parts[0], parts[1], parts[2]


def _coerce(value: str):
    try:
        return int(value)
    except ValueError:
        return value


def where_from_args(conditions: Sequence[str]) -> Optional[Callable[[WhereBuilder], WhereBuilder]]:
    """
    Build a WHERE callback ANDing ``column=value`` pairs.

    Integer-looking values are bound as integers.
    """
    if not conditions:
        return None

    pairs = []
    for condition in conditions:
        column, sep, value = condition.partition('=')
        if not sep or not column:
            raise argparse.ArgumentTypeError(f"where must look like column=value, got {condition!r}")
        pairs.append((column, _coerce(value)))

    def _where(builder: WhereBuilder) -> WhereBuilder:
        for column, value in pairs:
            builder.and_equals(column, value)
        return builder

    return _where


def order_from_args(keys: Sequence[str]) -> Optional[Callable[[OrderBuilder], None]]:
    """Build an ORDER BY callback from ``column`` or ``column:desc`` keys."""
    if not keys:
        return None

    def _order(builder: OrderBuilder) -> None:
        for key in keys:
            column, _, direction = key.partition(':')
            chain = builder.by(column)
            if direction.lower() == 'desc':
                chain.desc()
            elif direction.lower() == 'asc':
                chain.asc()

    return _order


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Query tables through table contexts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split('Usage:')[1]
    )
    parser.add_argument(
        '--url',
        type=str,
        default=None,
        help='SQLAlchemy URL (defaults to DATABASE_URL or the MYSQL_* settings)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging (DEBUG level)'
    )

    commands = parser.add_subparsers(dest='command')

    describe = commands.add_parser('describe', help="List a table's columns")
    describe.add_argument('table')

    count = commands.add_parser('count', help='Count rows')
    count.add_argument('table')
    count.add_argument('--where', action='append', default=[], metavar='COL=VALUE')

    preview = commands.add_parser('preview', help='Print the compiled SELECT without running it')
    preview.add_argument('table')
    preview.add_argument('--join', action='append', default=[], type=parse_join, metavar='TABLE:LEFT:RIGHT')
    preview.add_argument('--where', action='append', default=[], metavar='COL=VALUE')
    preview.add_argument('--order', action='append', default=[], metavar='COL[:desc]')
    preview.add_argument('--limit', type=int, default=None)

    return parser


def build_context(engine, table: str, joins: List[Tuple[str, str, str]] = ()) -> TableContext:
    """Context over ``table`` with each join applied in order."""
    context = TableContext(engine, table)
    for right, left_key, right_key in joins:
        context = context.join(right, {'key': left_key}, {'key': right_key})
    return context


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        return 1

    try:
        engine = create_sqlalchemy_engine(args.url)

        if args.command == 'describe':
            for column in TableContext(engine, args.table).describe():
                print(column)
            return 0

        if args.command == 'count':
            context = TableContext(engine, args.table)
            print(context.count(where=where_from_args(args.where)))
            return 0

        context = build_context(engine, args.table, args.join)
        statement = context.build_select(
            limit=args.limit,
            where=where_from_args(args.where),
            order_by=order_from_args(args.order)
        )
        print(statement.text)
        if statement.arguments:
            logger.info(f"Bound: {format_statement(statement.text, statement.arguments)}")
        return 0

    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except TableContextError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user")
        return 130


if __name__ == '__main__':
    sys.exit(main())
