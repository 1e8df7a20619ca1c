"""
Unit tests for logging configuration helpers.
"""

import json
import logging

from chat_client.config import ClientSettings
from chat_client.core.logging_config import (
    JSONFormatter,
    filter_sensitive_data,
    mask_token,
    setup_logging,
    truncate_large_data,
)


class TestLogHygiene:
    """Tests for credential masking helpers."""

    def test_mask_token_keeps_prefix(self):
        assert mask_token("abcdefghijklmnop") == "abcdefghij..."

    def test_mask_short_and_missing_tokens(self):
        assert mask_token("short") == "***"
        assert mask_token(None) == "null"

    def test_filter_sensitive_data(self):
        data = {
            "username": "user@example.com",
            "password": "secret",
            "token": {"access_token": "abc"},
            "items": [{"Authorization": "Bearer abc", "name": "ok"}],
        }
        filtered = filter_sensitive_data(data)
        assert filtered["username"] == "user@example.com"
        assert filtered["password"] == "***FILTERED***"
        assert filtered["token"] == "***FILTERED***"
        assert filtered["items"][0] == {"Authorization": "***FILTERED***", "name": "ok"}

    def test_truncate_large_data(self):
        assert truncate_large_data("abc", max_length=5) == "abc"
        assert truncate_large_data("abcdefgh", max_length=3).startswith("abc... (truncated")


class TestFormatters:
    """Tests for formatters and setup."""

    def test_json_formatter_includes_extra_fields(self):
        record = logging.LogRecord("chat_client.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.extra_fields = {"endpoint": "identity"}
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["endpoint"] == "identity"

    def test_setup_logging_writes_json_file(self, tmp_path):
        log_file = tmp_path / "logs" / "client.log"
        config = ClientSettings(
            _env_file=None,
            log_level="debug",
            log_file_enabled=True,
            log_console_enabled=False,
            log_file_path=str(log_file),
        )
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            setup_logging(config)
            logging.getLogger("chat_client.test").info("written")
            for handler in root.handlers:
                handler.flush()
            lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
            assert any(line["message"] == "written" for line in lines)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = previous_handlers
            root.setLevel(previous_level)
