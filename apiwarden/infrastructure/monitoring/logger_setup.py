"""Logging configuration for the apiwarden CLI.

Log records go to stderr so rendered tables on stdout stay pipeable. The
executor already logs one line per request, so the HTTP stack underneath it
(requests, urllib3) is kept at WARNING unless explicitly asked for.
"""

import logging
import logging.handlers
import sys
from typing import Any, Optional, Sequence

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Connection-level chatter and full request URLs (query strings included)
HTTP_LIBRARY_LOGGERS = ("urllib3", "requests")

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3


def resolve_log_level(value: Any, default: int = DEFAULT_LOG_LEVEL) -> int:
    """Turns a config value ("debug", "WARNING", 10) into a logging level."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    return default


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
    quiet_loggers: Sequence[str] = HTTP_LIBRARY_LOGGERS,
) -> None:
    """Configures the root logger for a CLI run.

    Args:
        log_level: The minimum logging level for apiwarden's own loggers.
        log_format: The format string for log messages.
        log_file: Optional path to a size-rotated log file.
        quiet_loggers: Loggers never shown below WARNING.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding='utf-8',
            )
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}")
        else:
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(logging.WARNING, log_level))

    logging.debug(f"Logging configured. Level={logging.getLevelName(log_level)}")
