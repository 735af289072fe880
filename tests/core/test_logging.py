"""Tests for structured logging setup and context binding."""

import pytest
import structlog
from structlog.testing import capture_logs

from sqlbridge.core.errors import ConfigError
from sqlbridge.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)
from sqlbridge.core.settings import SqlBridgeSettings


@pytest.fixture(autouse=True)
def reset_structlog():
    clear_context()
    yield
    clear_context()
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_unknown_level_rejected(self):
        with pytest.raises(ConfigError, match="Unknown log level"):
            configure_logging(level="CHATTY")

    def test_level_is_case_insensitive(self):
        configure_logging(level="debug", json_format=True)
        assert structlog.is_configured()

    def test_json_chain_ends_with_json_renderer(self):
        configure_logging(level="INFO", json_format=True)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert isinstance(processors[0], structlog.processors.TimeStamper)

    def test_console_chain_without_timestamp(self):
        configure_logging(level="INFO", json_format=False, add_timestamp=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert not any(isinstance(p, structlog.processors.TimeStamper) for p in processors)

    def test_from_settings(self):
        configure_from_settings(SqlBridgeSettings(log_level="WARNING", log_format="json"))
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)


class TestEvents:
    def test_keyword_fields_are_captured(self):
        with capture_logs() as logs:
            get_logger("sqlbridge.test").info("table_plan_built", table="ACCOUNT", statements=3)
        assert logs == [{"event": "table_plan_built", "table": "ACCOUNT", "statements": 3, "log_level": "info"}]


class TestContext:
    def test_bind_and_unbind(self):
        bind_context(dialect="oracle", table="ACCOUNT")
        unbind_context("table")
        assert structlog.contextvars.get_contextvars() == {"dialect": "oracle"}

    def test_log_context_scopes_fields(self):
        with LogContext(dialect="db2"):
            assert structlog.contextvars.get_contextvars()["dialect"] == "db2"
        assert "dialect" not in structlog.contextvars.get_contextvars()

    def test_nested_context_restores_shadowed_value(self):
        with LogContext(dialect="db2"):
            with LogContext(dialect="mysql", table="ACCOUNT"):
                assert structlog.contextvars.get_contextvars() == {"dialect": "mysql", "table": "ACCOUNT"}
            assert structlog.contextvars.get_contextvars() == {"dialect": "db2"}
