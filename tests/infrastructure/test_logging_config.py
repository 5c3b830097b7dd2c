"""Unit tests for logging setup."""

import io
import json
import logging

import pytest

from pressure_sieve.infrastructure.logging_config import StructuredFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestStructuredFormatter:

    def test_json_line(self):
        record = logging.LogRecord(
            "pressure_sieve.main", logging.WARNING, __file__, 10, "Removed %d records", (3,), None
        )
        record.stage = "pressure"

        data = json.loads(StructuredFormatter().format(record))

        assert data["level"] == "WARNING"
        assert data["logger"] == "pressure_sieve.main"
        assert data["message"] == "Removed 3 records"
        assert data["stage"] == "pressure"


class TestSetupLogging:

    def test_plain_text(self):
        stream = io.StringIO()
        setup_logging(log_level="INFO", stream=stream)

        logging.getLogger("pressure_sieve.test").info("loaded")
        logging.getLogger("pressure_sieve.test").debug("hidden")

        assert "pressure_sieve.test - INFO - loaded" in stream.getvalue()
        assert "hidden" not in stream.getvalue()

    def test_json(self):
        stream = io.StringIO()
        setup_logging(use_json=True, log_level="debug", stream=stream)

        logging.getLogger("pressure_sieve.test").debug("record 104 corrected")

        assert json.loads(stream.getvalue())["message"] == "record 104 corrected"

    def test_single_handler(self):
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())

        assert len(logging.getLogger().handlers) == 1
