"""
Tests for logging setup and formatters.
"""

import json
import logging

import pytest

from src.logging_config import HumanFormatter, JSONFormatter, setup_logging


def _record(msg="Job done", **extra):
    record = logging.LogRecord("src.engine.job", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "src.engine.job"
        assert entry["message"] == "Job done"
        assert "job_id" not in entry

    def test_job_fields(self):
        out = JSONFormatter().format(_record(job_id="J-ABCD1234", operation="resize", strategy=None))
        entry = json.loads(out)
        assert entry["job_id"] == "J-ABCD1234"
        assert entry["operation"] == "resize"
        assert "strategy" not in entry

    def test_exception(self):
        try:
            raise ValueError("bad pixel")
        except ValueError:
            import sys
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad pixel" in entry["exception"]


class TestHumanFormatter:

    def test_module_and_message(self):
        out = HumanFormatter().format(_record("Resized"))
        assert "[job" in out
        assert out.endswith("Resized")


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_format(self):
        setup_logging(level="debug", format_type="json")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_FORMAT", "text")
        setup_logging()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, HumanFormatter)

    def test_noisy_loggers_quieted(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("werkzeug").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING
