"""Python logging configuration for docker-hipache.

Console logging for the synchronizer process. The core modules only ever
call ``logging.getLogger(__name__)``; handlers and levels are installed here,
once, by the command-line bootstrap.

Environment Variables:
    LOG_LEVEL: Logging level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    PYTHON_LOG_FORMAT: Log message format (default: see below)
"""

import os
import sys
import logging
from typing import Optional

# Raw event frames are logged at this level, below DEBUG
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

NOISY_LOGGERS = (
    'asyncio',
    'redis',
    'docker',
    'urllib3',
    'requests',
)


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output."""

    COLORS = {
        'TRACE': '\033[90m',     # Dark gray
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        msg = super().format(record)
        color = self.COLORS.get(record.levelname, '')
        if color:
            msg = f"{color}{msg}{self.RESET}"
        return msg


def resolve_level(log_level: str) -> int:
    """Map a level name (including TRACE) to its numeric value."""
    name = log_level.upper()
    if name == 'TRACE':
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_python_logging(
    log_level: Optional[str] = None,
    use_colors: bool = True,
    log_format: Optional[str] = None
) -> logging.Logger:
    """Configure Python logging with console output.

    Args:
        log_level: Logging level (if None, reads LOG_LEVEL from env)
        use_colors: Whether to use colored output for TTY
        log_format: Custom log format (if None, reads PYTHON_LOG_FORMAT)

    Returns:
        Configured root logger
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO')
    if log_format is None:
        log_format = os.getenv('PYTHON_LOG_FORMAT', DEFAULT_LOG_FORMAT)

    level = resolve_level(log_level)

    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    colored = use_colors and sys.stdout.isatty()
    formatter = ColoredFormatter(log_format) if colored else logging.Formatter(log_format)
    console_handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    root_logger.debug(f"Python logging configured: level={log_level.upper()}, colors={colored}")
    return root_logger


def silence_noisy_loggers():
    """Reduce verbosity of third-party client loggers to WARNING."""
    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
