"""
batmon Logging Configuration

Centralized logging setup so the collector, the sinks and the CLI runner
share one format.

Usage:
    from batmon.utils.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Message")

Or from the runner:
    from batmon.utils.logging_config import setup_logging
    setup_logging(level=logging.DEBUG, log_file="/var/log/batmon.log")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union
import threading

# Thread-safe initialization
_initialized = False
_lock = threading.Lock()

DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DEBUG_FORMAT = "%(asctime)s | %(name)s:%(lineno)d | %(levelname)s | %(message)s"

LEVEL_COLORS = {
    'DEBUG': '\033[36m',     # Cyan
    'INFO': '\033[32m',      # Green
    'WARNING': '\033[33m',   # Yellow
    'ERROR': '\033[31m',     # Red
    'CRITICAL': '\033[35m',  # Magenta
}
RESET = '\033[0m'

NOISY_LOGGERS = ['urllib3', 'prometheus_client', 'asyncio']


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for terminal output."""

    def __init__(self, fmt=None, datefmt=None, use_colors=True, stream=None):
        super().__init__(fmt, datefmt)
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record):
        if self.use_colors and record.levelname in LEVEL_COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{LEVEL_COLORS[record.levelname]}{record.levelname}{RESET}"
        return super().format(record)


def parse_level(level: Union[int, str]) -> int:
    """Accept logging.INFO or 'info' / 'INFO'"""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    log_format: str = DEFAULT_FORMAT,
    use_colors: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    suppress_libs: bool = True,
    force: bool = False,
) -> None:
    """
    Configure the root logger.

    Console output goes to stderr so stdout stays free for table and JSON
    output.

    Args:
        level: Logging level (default INFO)
        log_file: Optional file path, rotated at max_bytes
        log_format: Log message format string
        use_colors: Enable colored output in terminal
        max_bytes: Max log file size before rotation
        backup_count: Number of backup files to keep
        suppress_libs: Raise third-party loggers to WARNING
        force: Reconfigure even if already initialized
    """
    global _initialized

    level = parse_level(level)

    with _lock:
        if _initialized and not force:
            return

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        if use_colors:
            console_handler.setFormatter(ColoredFormatter(log_format, stream=sys.stderr))
        else:
            console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)

        if suppress_libs:
            for lib_name in NOISY_LOGGERS:
                logging.getLogger(lib_name).setLevel(logging.WARNING)

        _initialized = True


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger, configuring logging with defaults first if needed.

    Args:
        name: Logger name (typically __name__)
    """
    if not _initialized:
        setup_logging()

    return logging.getLogger(name)


def reset_logging() -> None:
    """Forget previous setup (used by tests)."""
    global _initialized
    with _lock:
        logging.getLogger().handlers.clear()
        _initialized = False
