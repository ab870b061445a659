# tests/core/test_config.py
"""Tests for environment-driven settings and logging setup."""

import json
import logging

import pytest
from rich.logging import RichHandler

from toolshape.core import config
from toolshape.core.exceptions import ConfigurationError


class TestEnvironmentSettings:
    def test_int_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("TOOLSHAPE_TEST_INT", raising=False)
        assert config._int_from_env("TOOLSHAPE_TEST_INT", 42) == 42

    def test_int_from_env(self, monkeypatch):
        monkeypatch.setenv("TOOLSHAPE_TEST_INT", "128")
        assert config._int_from_env("TOOLSHAPE_TEST_INT", 42) == 128

    def test_non_integer_rejected(self, monkeypatch):
        monkeypatch.setenv("TOOLSHAPE_TEST_INT", "lots")
        with pytest.raises(ConfigurationError, match="must be an integer"):
            config._int_from_env("TOOLSHAPE_TEST_INT", 42)

    def test_non_positive_rejected(self, monkeypatch):
        monkeypatch.setenv("TOOLSHAPE_TEST_INT", "0")
        with pytest.raises(ConfigurationError, match="must be positive"):
            config._int_from_env("TOOLSHAPE_TEST_INT", 42)

    @pytest.mark.parametrize("raw,expected", [("1", True), ("true", True), ("no", False), ("", False)])
    def test_bool_from_env(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TOOLSHAPE_TEST_BOOL", raw)
        assert config._bool_from_env("TOOLSHAPE_TEST_BOOL") is expected


@pytest.fixture
def restore_package_logger():
    package_logger = logging.getLogger("toolshape")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield
    package_logger.handlers[:] = saved[0]
    package_logger.setLevel(saved[1])
    package_logger.propagate = saved[2]


@pytest.mark.usefixtures("restore_package_logger")
class TestLogging:
    def test_rich_handler_by_default(self):
        package_logger = config.configure_logging("DEBUG")
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0], RichHandler)
        assert package_logger.propagate is False

    def test_json_handler_replaces_rich(self):
        config.configure_logging("INFO")
        package_logger = config.configure_logging("INFO", json_logs=True)
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, config.JSONFormatter)

    def test_unknown_level_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown log level"):
            config.configure_logging("LOUD")

    def test_json_formatter_fields(self):
        record = logging.LogRecord("toolshape.tools.ruff", logging.WARNING, __file__, 1, "bad %s", ("json",), None)
        record.tool = "ruff-check"
        entry = json.loads(config.JSONFormatter().format(record))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "toolshape.tools.ruff"
        assert entry["message"] == "bad json"
        assert entry["tool"] == "ruff-check"
        assert "action" not in entry
