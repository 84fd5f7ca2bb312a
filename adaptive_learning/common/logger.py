"""
Logging setup for the personalization engine.

Every module logs through a child of ``app_logger`` (``adaptive_learning``).
Output is human-readable by default and switches to one JSON object per line
when ``LOG_JSON`` is set, which is how session and generation events are
shipped to log collectors. Per-user context (user id, session id) rides on
``LoggerAdapter`` and ends up as top-level keys in JSON output.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
import asyncio
from typing import Dict, Any, Optional, Union, Callable, TypeVar, List

APP_LOGGER_NAME = "adaptive_learning"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'APP_LOGGER_NAME',
    'configure_logger',
    'get_logger',
    'LoggerAdapter',
    'JsonFormatter',
    'with_context',
    'app_logger',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON line, context keys included."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
        }

        context = getattr(record, 'data', None)
        if isinstance(context, dict):
            entry.update(context)

        if record.exc_info and record.exc_info[0] is not None:
            entry["error"] = {
                "type": record.exc_info[0].__name__,
                "detail": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


def _handlers_for(log_file: Optional[str], console_output: bool) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if not log_file:
        return handlers

    try:
        parent = os.path.dirname(log_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    except OSError as e:
        # Console output still works, so a bad log path is not fatal
        logging.getLogger(APP_LOGGER_NAME).warning(f"Log file {log_file} unavailable: {e}")
    return handlers


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    (Re)configure a logger, replacing any handlers it already has.

    Args:
        name: Logger name
        level: Level name or number
        use_json: Emit JSON lines instead of text
        log_file: Optional file to log to in addition to the console
        console_output: Whether to log to stdout

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []

    formatter = JsonFormatter() if use_json else logging.Formatter(TEXT_FORMAT, TEXT_DATE_FORMAT)
    for handler in _handlers_for(log_file, console_output):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str, parent: Optional[logging.Logger] = None) -> logging.Logger:
    """Return ``parent.getChild(name)`` when a parent is given, else the named logger."""
    return parent.getChild(name) if parent else logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that stamps every record with a fixed context dictionary.

    The context is stored on the record as ``data`` so ``JsonFormatter`` can
    merge it; per-call ``extra={'data': {...}}`` values are kept alongside.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(context or {}))

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get('extra') or {})
        data = dict(extra.get('data') or {})
        data.update(self.extra)
        extra['data'] = data
        return msg, dict(kwargs, extra=extra)

    def with_context(self, **context) -> 'LoggerAdapter':
        """Return a new adapter carrying this context plus ``context``."""
        return LoggerAdapter(self.logger, {**self.extra, **context})


def with_context(name: Optional[str] = None, **context) -> LoggerAdapter:
    """
    Build a context-carrying adapter.

    Args:
        name: Logger name; the application logger when omitted
        **context: Key/value pairs attached to every record

    Returns:
        LoggerAdapter wrapping the logger
    """
    return LoggerAdapter(get_logger(name) if name else app_logger, context)


def _bootstrap_app_logger() -> logging.Logger:
    logger = logging.getLogger(APP_LOGGER_NAME)
    if logger.handlers:
        return logger
    return configure_logger(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        use_json=os.environ.get("LOG_JSON", "false").lower() in ("1", "true", "yes"),
        log_file=os.environ.get("LOG_FILE"),
    )


app_logger = _bootstrap_app_logger()


def log_execution_time(logger: Optional[logging.Logger] = None) -> Callable[[F], F]:
    """
    Decorator that logs how long a sync or async callable took.

    Successful calls are logged at DEBUG, failures at ERROR before the
    exception is re-raised.

    Args:
        logger: Logger to report to; ``app_logger`` when omitted
    """
    target = logger or app_logger

    def decorator(func: F) -> F:
        def report(started: float, error: Optional[Exception] = None) -> None:
            elapsed = time.perf_counter() - started
            if error is None:
                target.debug(f"{func.__name__} took {elapsed:.3f}s")
            else:
                target.error(f"{func.__name__} failed after {elapsed:.3f}s: {error}")

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                started = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    report(started, e)
                    raise
                report(started)
                return result
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report(started, e)
                raise
            report(started)
            return result
        return wrapper
    return decorator
