"""
Logging Configuration Module.

Every module obtains its logger through ``get_logger(__name__)``, so all
records land under the ``order_ingest`` namespace and share the handlers
installed once by ``setup_logger``.

Console records go to stderr: the command-line runner writes its JSON
result to stdout and the two must not interleave.

Usage:
    from order_ingest.utils.logger import setup_logger, get_logger

    setup_logger(level="DEBUG")

    logger = get_logger(__name__)
    logger.info("Parsing order export...")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import IO, List, Optional

import colorama
from colorama import Fore, Style

colorama.init()

ROOT_LOGGER_NAME = "order_ingest"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the whole console line by record level."""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno)
        if color is None:
            return message
        return f"{color}{message}{Style.RESET_ALL}"


def _level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level}")
    return value


def _build_handlers(
    log_format: str,
    date_format: str,
    log_file: Optional[str],
    max_bytes: int,
    backup_count: int,
    colorize: bool,
    stream: IO
) -> List[logging.Handler]:
    formatter_class = ColoredFormatter if colorize else logging.Formatter
    console = logging.StreamHandler(stream)
    console.setFormatter(formatter_class(log_format, datefmt=date_format))
    handlers: List[logging.Handler] = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        # Never write color codes to files
        rotating.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        handlers.append(rotating)

    return handlers


def setup_logger(
    level: str = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: bool = True,
    stream: Optional[IO] = None
) -> logging.Logger:
    """
    Configure the ``order_ingest`` logger.

    Calling it again replaces the previous handlers, so the level can be
    changed after startup (the runner does this for --debug and --quiet).

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Record format; defaults to ``DEFAULT_FORMAT``.
        date_format: Timestamp format; defaults to ``DEFAULT_DATE_FORMAT``.
        log_file: Rotating log file path. None disables file logging.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated files to keep.
        colorize: Whether to color console output.
        stream: Console stream; defaults to stderr.

    Returns:
        Configured package logger.

    Raises:
        ValueError: If ``level`` is not a logging level name.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/order_ingest.log")
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(_level(level))

    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    for handler in _build_handlers(
        log_format or DEFAULT_FORMAT,
        date_format or DEFAULT_DATE_FORMAT,
        log_file,
        max_bytes,
        backup_count,
        colorize,
        stream or sys.stderr,
    ):
        package_logger.addHandler(handler)

    package_logger.propagate = False
    package_logger.debug(f"Logging initialized at {level.upper()}")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` under the ``order_ingest`` namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logger_from_config(level: Optional[str] = None) -> logging.Logger:
    """
    Initialize logging from the ``logging`` section of settings.yaml.

    Args:
        level: Overrides ``logging.level`` when given.
    """
    from config import get_config

    log_file = None
    if get_config("logging.file.enabled", False):
        log_file = get_config("logging.file.path")

    return setup_logger(
        level=level or get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize", True)
    )
