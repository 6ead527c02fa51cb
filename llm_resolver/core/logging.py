"""Logging setup for the resolver.

Library modules only ever call ``logging.getLogger(__name__)``; handlers
are installed once by ``configure_root_logging`` from the CLI entry point.
"""

import logging
import re
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

NOISY_HTTP_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_logger = logging.getLogger(__name__)


def set_noisy_http_logger_levels(current_log_level: str) -> None:
    """Ensure HTTP client noise only surfaces at DEBUG level."""

    noisy_level = logging.DEBUG if current_log_level == "DEBUG" else logging.WARNING
    for logger_name in NOISY_HTTP_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


class HttpRequestLogDowngradeFilter(logging.Filter):
    """Downgrade noisy third-party HTTP logs to DEBUG."""

    def __init__(self, *prefixes: str) -> None:
        super().__init__()
        self.prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.INFO:
            for prefix in self.prefixes:
                if record.name.startswith(prefix):
                    record.levelno = logging.DEBUG
                    record.levelname = logging.getLevelName(logging.DEBUG)
                    break
        return True


class SecretRedactionFilter(logging.Filter):
    """Mask bearer tokens, API keys and authorization codes.

    Code never logs secrets on purpose; this catches third-party messages
    such as request URLs carrying a ``code=`` query parameter.
    """

    REDACTED = "<redacted>"

    _PATTERNS = (
        re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"),
        re.compile(r"(?i)(\b(?:api[_-]?key|\w*token|secret|code|code_verifier)=)[^&\s\"']+"),
        re.compile(r"()\bsk-[A-Za-z0-9_-]{8,}"),
    )

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern in self._PATTERNS:
            redacted = pattern.sub(rf"\g<1>{self.REDACTED}", redacted)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


class CorrelationFormatter(logging.Formatter):
    """Prefix messages with the startup run id, when one is active."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None)
        if not correlation_id:
            return super().format(record)
        # Other handlers see the record too; restore it afterwards
        original = record.msg
        record.msg = f"[{correlation_id[:8]}] {original}"
        try:
            return super().format(record)
        finally:
            record.msg = original


@contextmanager
def startup_correlation(run_id: str | None = None) -> Generator[str, None, None]:
    """Tag every log record emitted inside the block with ``run_id``.

    Yields:
        The run id (generated when not given)
    """
    correlation_id = run_id or uuid.uuid4().hex
    old_factory = logging.getLogRecordFactory()

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        record.correlation_id = correlation_id
        return record

    logging.setLogRecordFactory(record_factory)
    try:
        yield correlation_id
    finally:
        logging.setLogRecordFactory(old_factory)


def configure_root_logging(log_level: str = "INFO") -> logging.Handler:
    """Install the single stderr handler on the root logger.

    Safe to call more than once; previous handlers are replaced.

    Returns:
        The installed handler
    """
    level = log_level.split()[0].upper() if log_level.strip() else "INFO"
    if level not in VALID_LOG_LEVELS:
        level = "INFO"

    handler = logging.StreamHandler()
    handler.addFilter(HttpRequestLogDowngradeFilter(*NOISY_HTTP_LOGGERS))
    handler.addFilter(SecretRedactionFilter())
    handler.setFormatter(
        CorrelationFormatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level))

    set_noisy_http_logger_levels(level)
    _logger.debug("Logging configured at %s", level)
    return handler


__all__ = [
    "NOISY_HTTP_LOGGERS",
    "set_noisy_http_logger_levels",
    "HttpRequestLogDowngradeFilter",
    "SecretRedactionFilter",
    "CorrelationFormatter",
    "startup_correlation",
    "configure_root_logging",
]
