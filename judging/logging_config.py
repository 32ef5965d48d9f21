"""
Centralized logging configuration for the judging client.

Format: 2026-01-06T14:05:52Z [source] LEVEL message

Environment Variables:
    LOG_LEVEL: Set to "DEBUG", "TRACE", or "INFO" (default)
               - INFO: Screen refreshes and mutation outcomes
               - DEBUG: Per-request classification details
               - TRACE: Request paths and payload shapes

Usage:
    from judging.logging_config import configure_logging, get_logger

    configure_logging(source="cli")
    logger = get_logger(__name__)
    logger.info("Dashboard loaded")
"""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import UTC, datetime

# Custom TRACE level for very verbose diagnostics
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def _trace(self: logging.Logger, message: object, *args: object, **kw: object) -> None:
    """Log a message at TRACE level (5)."""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kw)  # type: ignore[arg-type]


logging.Logger.trace = _trace  # type: ignore[attr-defined]


def mask_token(token: str | None) -> str:
    """Return a loggable stand-in for a session token."""
    if not token:
        return "<none>"
    return f"{token[:6]}...({len(token)} chars)"


class ISO8601Formatter(logging.Formatter):
    """Formatter producing ISO8601 timestamps in UTC.

    Output format: 2026-01-06T14:05:52Z [source] LEVEL message
    """

    def __init__(self, source: str = "judging"):
        """Initialize formatter with a source identifier.

        Args:
            source: Identifier shown in brackets (e.g., "cli", "screens")
        """
        self.source = source
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record with ISO8601 UTC timestamp."""
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        level = record.levelname
        message = record.getMessage()

        if record.exc_info:
            exception_text = self.formatException(record.exc_info)
            message = f"{message}\n{exception_text}"

        return f"{timestamp} [{self.source}] {level} {message}"


class SessionCookieFilter(logging.Filter):
    """Redact session cookie values that end up in log messages.

    Third-party loggers (httpx at DEBUG) echo request headers verbatim, so a
    ``<cookie_name>=<value>`` pair is rewritten before the record is emitted.

    Args:
        cookie_name: Name of the session cookie (JUDGING_SESSION_COOKIE_NAME)
    """

    def __init__(self, cookie_name: str = "session"):
        super().__init__()
        self.cookie_name = cookie_name
        self.cookie_pattern = re.compile(rf"({re.escape(cookie_name)}=)[^;\s'\"]+", re.IGNORECASE)

    def filter(self, record: logging.LogRecord) -> bool:
        """Rewrite the record in place; never suppresses it.

        Args:
            record: The log record to evaluate

        Returns:
            Always True
        """
        message = record.getMessage()
        redacted = self.cookie_pattern.sub(r"\1<redacted>", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def configure_logging(
    source: str = "judging",
    level: int | None = None,
    debug: bool | None = None,
    cookie_name: str = "session",
) -> logging.Logger:
    """Configure logging for a client component.

    Args:
        source: Source identifier for log messages (e.g., "cli", "screens")
        level: Logging level (defaults to INFO, or DEBUG/TRACE from LOG_LEVEL env var)
        debug: Enable debug mode (overrides level to DEBUG)
        cookie_name: Session cookie whose value is redacted from log output

    Returns:
        Configured root logger
    """
    if level is None:
        log_level_env = os.getenv("LOG_LEVEL", "").upper()
        if log_level_env == "TRACE":
            level = TRACE
        elif log_level_env == "DEBUG" or debug:
            level = logging.DEBUG
        else:
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ISO8601Formatter(source=source))
    handler.addFilter(SessionCookieFilter(cookie_name))

    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
