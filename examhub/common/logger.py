"""
Application Logger

This module configures the ``examhub`` logger hierarchy. Modules obtain
children of the application logger, and components that need to tag every
record (audit trail, per-exam operations) wrap them in a ``LoggerAdapter``.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
import asyncio
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from examhub.common.exceptions import BaseError

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
APP_LOGGER_NAME = "examhub"

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'configure_logger',
    'LoggerAdapter',
    'JsonFormatter',
    'app_logger',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    Formatter that renders each record as a single JSON object.

    Context attached through ``LoggerAdapter`` (the ``data`` extra) is merged
    into the top level of the object.
    """

    def __init__(self, datefmt: Optional[str] = None, *, indent: Optional[int] = None):
        super().__init__(datefmt=datefmt)
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno
        }

        if record.exc_info:
            log_object["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        data = getattr(record, "data", None)
        if isinstance(data, dict):
            log_object.update(data)

        return json.dumps(log_object, indent=self.indent, default=str)


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    format_string: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure a logger with console and optional file handlers.

    Args:
        name: Logger name
        level: Log level name or number
        format_string: Log format string for plain-text output
        date_format: Date format string
        use_json: Whether to emit JSON records
        log_file: Path to a log file (no file handler when None)
        console_output: Whether to log to stdout

    Returns:
        Configured logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []

    if use_json:
        formatter = JsonFormatter(date_format)
    else:
        formatter = logging.Formatter(format_string, date_format)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except (FileNotFoundError, PermissionError) as e:
            logger.warning(f"Could not create log file {log_file}: {e}")

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that attaches a context dictionary to every record.

    The context ends up in ``record.data`` where ``JsonFormatter`` picks it up.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, context or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs = kwargs.copy()
        extra = dict(kwargs.get('extra') or {})
        data = dict(extra.get('data') or {})
        data.update(self.extra)
        extra['data'] = data
        kwargs['extra'] = extra
        return msg, kwargs

    def with_context(self, **context) -> 'LoggerAdapter':
        """
        Create a new adapter with additional context.

        Args:
            **context: Context to add

        Returns:
            New logger adapter with combined context
        """
        new_context = dict(self.extra)
        new_context.update(context)
        return LoggerAdapter(self.logger, new_context)


def get_app_logger() -> logging.Logger:
    """
    Get or create the application logger.

    The logger is configured once from the application settings.
    """
    logger = logging.getLogger(APP_LOGGER_NAME)

    if not logger.handlers:
        from examhub.config import settings

        return configure_logger(
            name=APP_LOGGER_NAME,
            level=settings.LOG_LEVEL,
            format_string=settings.LOG_FORMAT,
            use_json=settings.LOG_JSON,
            log_file=settings.LOG_FILE,
            console_output=True
        )

    return logger


app_logger = get_app_logger()


def log_execution_time(logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None) -> Callable[[F], F]:
    """
    Decorator that logs how long a sync or async callable took.

    Client-side domain errors are logged at info level, other failures at
    error level; both are re-raised.
    """
    def decorator(func: F) -> F:
        def _log_success(started: float) -> None:
            (logger or app_logger).debug(
                f"{func.__qualname__} executed in {time.perf_counter() - started:.3f} seconds"
            )

        def _log_failure(started: float, error: Exception) -> None:
            elapsed = time.perf_counter() - started
            if isinstance(error, BaseError) and error.status_code < 500:
                (logger or app_logger).info(
                    f"{func.__qualname__} rejected after {elapsed:.3f} seconds ({error.code}): {error.message}"
                )
                return
            (logger or app_logger).error(f"{func.__qualname__} failed after {elapsed:.3f} seconds: {error}")

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_failure(started, e)
                raise
            _log_success(started)
            return result

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_failure(started, e)
                raise
            _log_success(started)
            return result

        return async_wrapper if asyncio.iscoroutinefunction(func) else wrapper
    return decorator
