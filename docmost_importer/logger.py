"""Logging setup and per-stage progress tracking for imports."""

import logging
import logging.handlers
import time
from typing import Any, Dict, Optional

import colorlog

LOGGER_NAME = 'docmost_importer'

LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUPS = 5


def resolve_log_level(verbosity: int = 0, level: Optional[str] = None) -> int:
    """
    Map an explicit level name or a ``-v`` count to a logging level.

    An explicit ``level`` wins; otherwise 0 is WARNING, 1 is INFO and 2 or
    more is DEBUG.

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    if level:
        name = level.upper()
        if name not in LEVEL_NAMES:
            raise ValueError(
                f"Invalid log level '{level}'. Must be one of: {', '.join(LEVEL_NAMES)}"
            )
        return getattr(logging, name)

    return {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    level: Optional[str] = None
) -> logging.Logger:
    """
    Configure the ``docmost_importer`` logger for a command-line run.

    Handlers from a previous call are replaced, so calling this twice does not
    duplicate output. Library modules only ever call ``getLogger``.

    Args:
        verbosity: Number of ``-v`` flags
        log_file: Optional path of a rotating log file
        log_format: Optional custom log format string
        date_format: Optional custom date format string
        level: Optional explicit level name, overrides ``verbosity``

    Returns:
        The configured package logger
    """
    log_level = resolve_log_level(verbosity, level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(log_level, log_format, date_format))

    if log_file:
        try:
            logger.addHandler(_file_handler(log_file, log_level, log_format, date_format))
        except OSError as e:
            logger.warning(f"Cannot write import log to {log_file}: {e}")
        else:
            logger.info(f"Writing import log to {log_file}")

    logger.debug(f"Log level set to {logging.getLevelName(log_level)}")
    return logger


def _console_handler(log_level: int, log_format: str, date_format: str) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(colorlog.ColoredFormatter(
        fmt='%(log_color)s' + log_format,
        datefmt=date_format,
        log_colors=LOG_COLORS
    ))
    return handler


def _file_handler(log_file: str, log_level: int, log_format: str, date_format: str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt=log_format, datefmt=date_format))
    return handler


def format_elapsed(seconds: float) -> str:
    """Render a duration as ``4.2s``, ``3m 5s`` or ``1h 2m 5s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


class ProgressTracker:
    """
    Counts created, failed and skipped items of one import stage.

    Used as a context manager. A one-line summary is logged on exit: ERROR
    when nothing succeeded but something failed, WARNING when anything failed
    or was skipped, INFO otherwise.
    """

    def __init__(
        self,
        total_items: int,
        item_type: str = "items",
        logger: Optional[logging.Logger] = None,
        log_every: int = 10
    ):
        """
        Initialize progress tracker.

        Args:
            total_items: Number of items the stage expects to handle
            item_type: Plural noun used in messages (e.g. "notes")
            logger: Optional logger instance
            log_every: Log a progress line after this many items
        """
        self.total_items = total_items
        self.item_type = item_type
        self.log_every = log_every
        self.logger = logger or logging.getLogger(LOGGER_NAME)

        self.successful_items = 0
        self.failed_items = 0
        self.skipped_items = 0
        self.start_time: Optional[float] = None

    @property
    def processed_items(self) -> int:
        return self.successful_items + self.failed_items + self.skipped_items

    @property
    def elapsed(self) -> float:
        return 0.0 if self.start_time is None else time.monotonic() - self.start_time

    def __enter__(self) -> 'ProgressTracker':
        self.start_time = time.monotonic()
        self.logger.info(f"Importing {self.total_items} {self.item_type}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.logger.error(f"{self.item_type.capitalize()} stage aborted: {exc_val}")
        self.logger.log(self._summary_level(), self.summary())

    def increment(self, success: bool = True) -> None:
        """Count one attempted item."""
        if success:
            self.successful_items += 1
        else:
            self.failed_items += 1

        if not success or self.processed_items % self.log_every == 0:
            self.logger.info(
                f"{self.processed_items}/{self.total_items} {self.item_type} handled "
                f"({self.failed_items} failed)"
            )

    def skip(self, count: int) -> None:
        """Count items never attempted because an ancestor failed."""
        self.skipped_items += count

    def summary(self) -> str:
        return (
            f"{self.item_type.capitalize()}: {self.successful_items} created, "
            f"{self.failed_items} failed, {self.skipped_items} skipped "
            f"of {self.total_items} in {format_elapsed(self.elapsed)}"
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            'total': self.total_items,
            'processed': self.processed_items,
            'successful': self.successful_items,
            'failed': self.failed_items,
            'skipped': self.skipped_items,
            'elapsed_time': self.elapsed
        }

    def _summary_level(self) -> int:
        if self.failed_items and not self.successful_items:
            return logging.ERROR
        if self.failed_items or self.skipped_items:
            return logging.WARNING
        return logging.INFO


def log_section(title: str, logger: Optional[logging.Logger] = None) -> None:
    """Log ``title`` between two rules at INFO level."""
    logger = logger or logging.getLogger(LOGGER_NAME)
    rule = "=" * 60
    for line in (rule, f"  {title.upper()}", rule):
        logger.info(line)


__all__ = [
    'LOGGER_NAME',
    'format_elapsed',
    'log_section',
    'resolve_log_level',
    'setup_logging',
    'ProgressTracker'
]
