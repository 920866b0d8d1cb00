"""
Logging utilities for the VisuaLearn application.
"""

import logging
import sys
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Dict, Optional, Union

LOGS_DIR = Path.home() / ".visualearn" / "logs"
DEFAULT_LOG_FILE = LOGS_DIR / "visualearn.log"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DETAILED_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def build_logging_config(console_level: str = "WARNING",
                         log_file: Optional[Union[str, Path]] = DEFAULT_LOG_FILE) -> Dict[str, Any]:
    """
    Build the dictConfig for the application.

    The console only shows warnings by default so that log lines do not
    interleave with the chat; the rotating file keeps everything.

    Args:
        console_level: Level for the stdout handler.
        log_file: Path of the rotating log file, or None to disable file logging.
    """
    handlers: Dict[str, Any] = {
        'console': {
            'level': console_level.upper(),
            'formatter': 'standard',
            'class': 'logging.StreamHandler',
            'stream': sys.stdout,
        },
    }
    if log_file:
        handlers['file'] = {
            'level': 'DEBUG',
            'formatter': 'detailed',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': str(log_file),
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5,
            'encoding': 'utf8',
        }

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': DEFAULT_LOG_FORMAT,
            },
            'detailed': {
                'format': DETAILED_LOG_FORMAT,
            },
        },
        'handlers': handlers,
        'loggers': {
            '': {  # Root logger
                'handlers': list(handlers),
                'level': 'DEBUG',
                'propagate': True,
            },
            'google_genai': {
                'level': 'WARNING',
            },
            'httpx': {
                'level': 'WARNING',
            },
        },
    }


def configure_logging(console_level: str = "WARNING",
                      log_file: Optional[Union[str, Path]] = DEFAULT_LOG_FILE,
                      config: Optional[Dict[str, Any]] = None) -> None:
    """
    Configure logging for the application.

    Args:
        console_level: Level for console output.
        log_file: Rotating log file path, or None for console only.
        config: Optional custom logging configuration. Overrides the other arguments.
    """
    if config is None:
        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        config = build_logging_config(console_level, log_file)

    dictConfig(config)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured successfully")
    if log_file:
        logger.debug(f"Log file: {log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Name for the logger, typically __name__ of the calling module
    """
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, exc: Exception, message: str = "An exception occurred:") -> None:
    """
    Log an exception with traceback.

    Args:
        logger: The logger instance to use
        exc: The exception to log
        message: Optional message to include with the exception
    """
    logger.exception(f"{message} {str(exc)}")
