"""
===============================================
Centralized logging configuration for contexts.
===============================================

Provides consistent logging setup across all modules with:
- Console output with per-level colors
- Optional file output
- Module-specific loggers
- A helper that renders a compiled statement with its arguments inlined,
  for log output only

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='contexts.log')
    >>> logger = get_logger(__name__)
    >>> logger.info("Describing table Customer")
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from core.config import config


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name with ANSI codes.

    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(getattr(logging, level.upper()))

    return logger


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True
) -> None:
    """Configure the root logger with console and/or file handlers.

    Should be called once at application startup. Calling it again replaces
    the handlers installed by the previous call.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g., 'contexts.log')
        log_dir: Optional log directory path (defaults to 'logs/')
        console_output: If True, output to console (stdout)
        use_colors: If True, color the level name on the console
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    line_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        formatter_cls = ColoredFormatter if use_colors else logging.Formatter
        console_handler.setFormatter(formatter_cls(line_format, datefmt=date_format))
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir) if log_dir else Path('logs')
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(line_format, datefmt=date_format))
        root_logger.addHandler(file_handler)


def format_statement(text: str, arguments: Sequence[Any]) -> str:
    """Render a statement with its positional arguments inlined.

    Only meant for log output: values are substituted with repr-style
    quoting, in order, one per ``?`` placeholder.

    Args:
        text: Statement text with ``?`` placeholders
        arguments: Positional arguments in placeholder order

    Returns:
        Human-readable statement text

    Example:
        >>> format_statement("SELECT * FROM Customer WHERE Country = ?", ["USA"])
        "SELECT * FROM Customer WHERE Country = 'USA'"
    """
    pieces = text.split('?')
    if len(pieces) - 1 != len(arguments):
        return f"{text} -- args={list(arguments)!r}"

    rendered = [pieces[0]]
    for value, piece in zip(arguments, pieces[1:]):
        if isinstance(value, str):
            literal = "'" + value.replace("'", "''") + "'"
        elif value is None:
            literal = 'NULL'
        else:
            literal = str(value)
        rendered.append(literal)
        rendered.append(piece)
    return ''.join(rendered)


def _init_default_logging():
    """Install default handlers if nothing configured logging yet."""
    if not logging.getLogger().handlers:
        setup_logging(
            log_level=config.logging.level,
            console_output=True,
            use_colors=True
        )


# Auto-initialize on import
_init_default_logging()
