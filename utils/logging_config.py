"""
Logging configuration for AppList.

Provides structured logging with multiple outputs:
- Colored console output (human-readable)
- Rotating file log (human-readable)
- JSON structured log (machine-parseable)
- Error-only log (quick problem identification)
"""

import contextvars
import functools
import json
import logging
import logging.handlers
import sys
import time
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

ROOT_LOGGER_NAME = "applist"


class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }
        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data
        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for human readability."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Color a copy so the other handlers still see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, "")
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    console: bool = True,
    json_logs: bool = True,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Set up logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        console: Enable console output (stderr, so exported data on stdout stays clean)
        json_logs: Enable JSON structured logs
        max_bytes: Max size per log file
        backup_count: Number of backup files to keep

    Returns:
        Root logger for the project
    """
    log_dir = log_dir or Path.home() / ".applist" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    line_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        if sys.stderr.isatty():
            fmt: logging.Formatter = ColoredFormatter(line_format, datefmt="%H:%M:%S")
        else:
            fmt = logging.Formatter(line_format, datefmt="%H:%M:%S")
        console_handler.setFormatter(fmt)
        root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "applist.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s"
        )
    )
    root_logger.addHandler(file_handler)

    if json_logs:
        json_handler = logging.handlers.RotatingFileHandler(
            log_dir / "applist.json.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        json_handler.setLevel(logging.DEBUG)
        json_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(json_handler)

    error_handler = logging.handlers.RotatingFileHandler(
        log_dir / "applist.error.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(module)s:%(lineno)d\n"
            "%(message)s\n---"
        )
    )
    root_logger.addHandler(error_handler)

    return root_logger


_log_context: contextvars.ContextVar[Optional[Dict[str, Any]]] = contextvars.ContextVar(
    "applist_log_context", default=None
)
_base_record_factory = logging.getLogRecordFactory()


def _context_record_factory(*args, **kwargs) -> logging.LogRecord:
    record = _base_record_factory(*args, **kwargs)
    context = _log_context.get()
    if context:
        record.extra_data = context
    return record


# Installed once; the active context is per thread and per task
logging.setLogRecordFactory(_context_record_factory)


class LogContext:
    """Context manager attaching structured data to every record logged inside it.

    The data is visible only in the thread or task that entered the context.
    Nested contexts merge, inner keys winning.

    Usage:
        with LogContext(format="csv", count=12):
            logger.info("Writing artifact")
    """

    def __init__(self, **context: Any):
        self.context = context
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "LogContext":
        merged = {**(_log_context.get() or {}), **self.context}
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, *args) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def log_performance(logger: Optional[logging.Logger] = None):
    """Decorator to log function execution time."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            log = logger or logging.getLogger(func.__module__)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                log.debug(f"{func.__qualname__} completed in {elapsed:.1f}ms")
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                log.error(f"{func.__qualname__} failed after {elapsed:.1f}ms: {e}", exc_info=True)
                raise

        return wrapper

    return decorator


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the project root logger."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
