"""
Logging utilities.

Wraps standard loggers with request-scoped context (request id and
acting user) carried in context variables, plus the audit logger used for
authorization decisions.
"""

import logging
import time
from contextvars import ContextVar
from functools import wraps
from typing import Optional

# Context variables for request tracking
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id: ContextVar[Optional[str]] = ContextVar('user_id', default=None)


class LoggerAdapter:
    """Logger adapter that merges request context into every record"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._context = {}

    def add_context(self, **kwargs):
        """Add context to all log messages"""
        self._context.update(kwargs)
        return self

    def remove_context(self, *keys):
        for key in keys:
            self._context.pop(key, None)
        return self

    def _log(self, level: int, message: str, *args, **kwargs):
        extra = dict(kwargs.get('extra') or {})
        extra.update(self._context)
        req_id = request_id.get()
        if req_id and 'request_id' not in extra:
            extra['request_id'] = req_id
        uid = user_id.get()
        if uid and 'user_id' not in extra:
            extra['user_id'] = uid
        kwargs['extra'] = extra
        kwargs.setdefault('stacklevel', 3)

        self.logger.log(level, message, *args, **kwargs)

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)

    def exception(self, message: str, *args, **kwargs):
        kwargs.setdefault('exc_info', True)
        self._log(logging.ERROR, message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self._log(logging.CRITICAL, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Get configured logger instance.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger adapter carrying request context
    """
    return LoggerAdapter(logging.getLogger(name or "budget_hotel"))


audit_logger = get_logger("audit")


def log_execution_time(logger_name: Optional[str] = None):
    """Decorator logging how long the wrapped call took"""

    def decorator(func):
        log = get_logger(logger_name or func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                elapsed = time.perf_counter() - start
                log.debug(
                    f"{func.__name__} completed in {elapsed:.4f}s",
                    extra={'execution_time': elapsed},
                )

        return wrapper

    return decorator
