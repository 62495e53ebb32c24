"""Tests for logging setup."""

import json
import logging

import pytest
from rich.logging import RichHandler

from infra_monitor.utils.logging import JsonFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (RichHandler, logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def make_record(message: str) -> logging.LogRecord:
    return logging.LogRecord(
        "infra_monitor.cli", logging.INFO, __file__, 1, message, None, None
    )


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_rich_handler_shows_bare_message(self):
        setup_logging(level="INFO")

        (handler,) = logging.getLogger().handlers
        assert isinstance(handler, RichHandler)
        assert handler.format(make_record("Starting collection")) == "Starting collection"
        assert logging.getLogger().level == logging.INFO

    def test_json_format(self):
        setup_logging(level="DEBUG", json_format=True)

        (handler,) = logging.getLogger().handlers
        assert isinstance(handler.formatter, JsonFormatter)
        payload = json.loads(handler.format(make_record("hello")))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "infra_monitor.cli"
        assert payload["message"] == "hello"

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "monitor.log"
        setup_logging(level="INFO", log_file=log_file, rich_console=False)

        logging.getLogger("infra_monitor.test").info("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text()
        assert "infra_monitor.test - INFO - written to file" in text
