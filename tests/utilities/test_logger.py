"""
Tests for logging setup and the runtime log level.
"""

import logging

import pytest

import utilities.logger
from utilities.logger import RuntimeLogLevel, get_logger, setup_logging


@pytest.fixture
def root_level(monkeypatch):
    """Restore the root logger level and the configured base level."""
    monkeypatch.setattr(utilities.logger, "_base_level", logging.INFO)
    root = logging.getLogger()
    original = root.level
    yield root
    root.setLevel(original)


class TestRuntimeLogLevel:
    """Test cases for the runtime log level."""

    def test_defaults_to_normal(self):
        assert RuntimeLogLevel().level == 0
        assert RuntimeLogLevel(9).level == 0

    def test_set_debug(self, root_level):
        levels = RuntimeLogLevel()
        assert levels.set_level(1) == 1
        assert root_level.level == logging.DEBUG
        assert not levels.verbose

    def test_verbose(self, root_level):
        levels = RuntimeLogLevel()
        levels.set_level(2)
        assert levels.verbose
        assert root_level.level == logging.DEBUG

    def test_back_to_info(self, root_level):
        levels = RuntimeLogLevel(1)
        levels.set_level(0)
        assert root_level.level == logging.INFO

    @pytest.mark.parametrize("invalid", [-1, 3, 5])
    def test_invalid_levels_are_ignored(self, root_level, invalid):
        levels = RuntimeLogLevel(1)
        assert levels.set_level(invalid) == 1
        assert levels.level == 1


class TestSetupLogging:
    """Test cases for the configured log level."""

    def test_console_format(self, root_level):
        setup_logging(log_level="WARNING", log_format="console")
        assert root_level.level == logging.WARNING
        get_logger("tests").warning("Console logging configured", check=True)

    @pytest.mark.parametrize("log_level, expected", [("ERROR", logging.ERROR), ("DEBUG", logging.DEBUG)])
    def test_normal_runtime_level_keeps_configured_level(self, root_level, log_level, expected):
        setup_logging(log_level=log_level, log_format="json")

        RuntimeLogLevel().set_level(0)

        assert root_level.level == expected

    def test_debug_and_back_restores_configured_level(self, root_level):
        setup_logging(log_level="ERROR", log_format="json")
        levels = RuntimeLogLevel()

        levels.set_level(1)
        assert root_level.level == logging.DEBUG
        levels.set_level(0)
        assert root_level.level == logging.ERROR
