"""Tests for the client logging format.

Target format: 2026-01-06T14:05:52Z [source] LEVEL message
"""

from __future__ import annotations

import io
import logging
import re
from datetime import datetime

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str, level: int = logging.INFO, args: tuple = (), name: str = "test") -> logging.LogRecord:
    return logging.LogRecord(name=name, level=level, pathname="", lineno=0, msg=msg, args=args, exc_info=None)


class TestISO8601Formatter:
    """Test the custom ISO8601 formatter produces correct output."""

    def test_format_matches_layout(self):
        """Verify output matches: 2026-01-06T14:05:52Z [source] LEVEL message"""
        from judging.logging_config import ISO8601Formatter

        output = ISO8601Formatter(source="cli").format(_record("Dashboard loaded"))

        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[cli\] INFO Dashboard loaded$"
        assert re.match(pattern, output), f"Output '{output}' doesn't match expected format"

    def test_timestamp_is_utc(self):
        """Verify timestamp is in UTC (ends with Z)."""
        from judging.logging_config import ISO8601Formatter

        output = ISO8601Formatter().format(_record("Test"))
        timestamp_str = output.split(" ")[0]

        assert timestamp_str.endswith("Z")
        assert datetime.fromisoformat(timestamp_str.replace("Z", "+00:00")) is not None

    def test_default_source_is_judging(self):
        from judging.logging_config import ISO8601Formatter

        assert "[judging]" in ISO8601Formatter().format(_record("Test"))

    def test_trace_level_name(self):
        """TRACE records carry their own level name."""
        from judging.logging_config import TRACE, ISO8601Formatter

        output = ISO8601Formatter(source="test").format(_record("GET /api/ranking_data", level=TRACE))
        assert "] TRACE GET /api/ranking_data" in output

    def test_message_formatting_with_args(self):
        from judging.logging_config import ISO8601Formatter

        output = ISO8601Formatter(source="test").format(_record("Stand %s scored %d", args=("Robotik", 8)))
        assert "Stand Robotik scored 8" in output


class TestSessionCookieFilter:
    """Session cookie values never reach the log output."""

    def test_redacts_cookie_value(self):
        from judging.logging_config import SessionCookieFilter

        record = _record("Request headers: {'cookie': 'session=eyJhbGciOi.secret'}", name="httpx")

        assert SessionCookieFilter().filter(record) is True
        assert "eyJhbGciOi" not in record.getMessage()
        assert "session=<redacted>" in record.getMessage()

    def test_redacts_cookie_in_formatted_args(self):
        from judging.logging_config import SessionCookieFilter

        record = _record("Cookie: %s", args=("session=abc123; Path=/",))
        SessionCookieFilter().filter(record)

        assert record.getMessage() == "Cookie: session=<redacted>; Path=/"

    def test_leaves_other_messages_untouched(self):
        from judging.logging_config import SessionCookieFilter

        record = _record("Fetched %d requests", args=(4,))
        SessionCookieFilter().filter(record)

        assert record.args == (4,)
        assert record.getMessage() == "Fetched 4 requests"

    def test_configured_cookie_name(self):
        from judging.logging_config import SessionCookieFilter

        record = _record("Cookie: judging_sid=abc123; session=keep")
        SessionCookieFilter("judging_sid").filter(record)

        assert record.getMessage() == "Cookie: judging_sid=<redacted>; session=keep"


class TestMaskToken:
    def test_masks_long_token(self):
        from judging.logging_config import mask_token

        masked = mask_token("session=abcdefghijklmnop")
        assert masked == "sessio...(24 chars)"
        assert "abcdef" not in masked

    def test_empty_token(self):
        from judging.logging_config import mask_token

        assert mask_token(None) == "<none>"
        assert mask_token("") == "<none>"


class TestConfigureLogging:
    """Test the configure_logging function."""

    def test_configure_logging_returns_logger(self, monkeypatch):
        from judging.logging_config import configure_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert isinstance(configure_logging(source="test"), logging.Logger)

    def test_debug_flag_sets_debug(self, monkeypatch):
        from judging.logging_config import configure_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert configure_logging(source="test", debug=True).level == logging.DEBUG

    def test_default_level_is_info(self, monkeypatch):
        from judging.logging_config import configure_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert configure_logging(source="test", debug=False).level == logging.INFO

    def test_log_level_env_trace(self, monkeypatch):
        from judging.logging_config import TRACE, configure_logging

        monkeypatch.setenv("LOG_LEVEL", "trace")
        assert configure_logging(source="test").level == TRACE

    def test_httpx_loggers_quieted(self, monkeypatch):
        from judging.logging_config import configure_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        configure_logging(source="test", debug=True)

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

    def test_single_handler_with_cookie_filter(self, monkeypatch):
        from judging.logging_config import SessionCookieFilter, configure_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        configure_logging(source="test")
        root = configure_logging(source="test")

        assert len(root.handlers) == 1
        assert any(isinstance(f, SessionCookieFilter) for f in root.handlers[0].filters)

    def test_cookie_filter_uses_configured_name(self, monkeypatch):
        from judging.logging_config import SessionCookieFilter, configure_logging

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        root = configure_logging(source="test", cookie_name="judging_sid")

        cookie_filter = next(f for f in root.handlers[0].filters if isinstance(f, SessionCookieFilter))
        record = _record("Set-Cookie: judging_sid=s3cret; Path=/")
        cookie_filter.filter(record)
        assert "s3cret" not in record.getMessage()

    def test_get_logger_returns_named_logger(self):
        from judging.logging_config import get_logger

        assert get_logger("judging.screens").name == "judging.screens"


class TestIntegration:
    """Integration tests for the logging system."""

    def test_end_to_end_log_output(self, monkeypatch):
        """Complete flow: trace helper, formatter and redaction together."""
        from judging.logging_config import TRACE, ISO8601Formatter, SessionCookieFilter, configure_logging, get_logger

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        configure_logging(source="integration_test", level=TRACE)
        logger = get_logger("judging.test")

        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ISO8601Formatter(source="integration_test"))
        handler.addFilter(SessionCookieFilter())
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)

        logger.trace("Sending Cookie session=topsecret")  # type: ignore[attr-defined]

        output = stream.getvalue()
        pattern = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[integration_test\] TRACE Sending Cookie session=<redacted>\n$"
        assert re.match(pattern, output), f"Output '{output}' doesn't match expected format"
