"""Tests for the sqlbridge error hierarchy."""

import pytest

from sqlbridge.core.enums import ColumnType, RestrictionType
from sqlbridge.core.errors import (
    ConfigError,
    DataError,
    ErrorCategory,
    ErrorContext,
    IncompatibleTypeChangeError,
    InvalidDefaultError,
    MissingPolicyError,
    PrimaryKeyAlterationError,
    SchemaConflictError,
    SchemaResolutionError,
    SqlBridgeError,
    UnknownDialectError,
    UnsupportedPaginationError,
    UnsupportedTimeBucketError,
    categorize_error,
    is_retryable,
)
from sqlbridge.core.enums import TimeBucket


class TestErrorContext:
    def test_empty_context_serializes_empty(self):
        assert ErrorContext().to_dict() == {}

    def test_only_set_fields_serialized(self):
        ctx = ErrorContext(dialect="mysql", table="ACCOUNT", metadata={"attempt": 1})
        assert ctx.to_dict() == {"dialect": "mysql", "table": "ACCOUNT", "attempt": 1}


class TestSqlBridgeError:
    def test_defaults(self):
        error = SqlBridgeError("boom")
        assert error.message == "boom"
        assert str(error) == "boom"
        assert error.category is ErrorCategory.INTERNAL
        assert error.retryable is False

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ConfigError("bad").with_context(dialect="oracle", statement="ALTER")
        assert error.context.dialect == "oracle"
        assert error.context.metadata == {"statement": "ALTER"}

    def test_cause_is_chained(self):
        cause = ValueError("nope")
        error = DataError("wrapped", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "nope"

    def test_to_dict(self):
        payload = ConfigError("bad").with_context(dialect="db2").to_dict()
        assert payload["error_type"] == "ConfigError"
        assert payload["category"] == "CONFIG"
        assert payload["retryable"] is False
        assert payload["context"] == {"dialect": "db2"}

    def test_repr(self):
        assert repr(DataError("x")) == "DataError('x', category=DATA)"


class TestConfigErrors:
    def test_missing_policy(self):
        error = MissingPolicyError("criteria", RestrictionType.LIKE, "hsqldb")
        assert isinstance(error, ConfigError)
        assert str(error) == "No criteria policy registered for LIKE"
        assert error.key is RestrictionType.LIKE
        assert error.context.dialect == "hsqldb"
        assert error.context.metadata["policy_kind"] == "criteria"

    def test_unknown_dialect_lists_supported(self):
        error = UnknownDialectError("sybase", ["oracle", "db2"])
        assert "Unsupported dialect: 'sybase'" in str(error)
        assert str(error).endswith("Supported: db2, oracle")
        assert error.category is ErrorCategory.CONFIG

    def test_unsupported_pagination(self):
        error = UnsupportedPaginationError("mssql", 20, 10)
        assert (error.offset, error.limit) == (20, 10)
        assert error.context.operation == "paginate"
        assert "mssql" in str(error)

    def test_unsupported_time_bucket(self):
        error = UnsupportedTimeBucketError("hsqldb", TimeBucket.WEEK)
        assert "'week'" in str(error)
        assert error.unit is TimeBucket.WEEK

    def test_schema_resolution_is_config(self):
        assert SchemaResolutionError("x").category is ErrorCategory.CONFIG


class TestSchemaConflictErrors:
    @pytest.mark.parametrize("cls", [SchemaConflictError, IncompatibleTypeChangeError, PrimaryKeyAlterationError])
    def test_carries_table_and_column(self, cls):
        error = cls("cannot alter", table="ACCOUNT", column="ID")
        assert (error.table, error.column) == ("ACCOUNT", "ID")
        assert error.context.table == "ACCOUNT"
        assert error.context.column == "ID"
        assert error.category is ErrorCategory.SCHEMA


class TestDataErrors:
    def test_invalid_default(self):
        cause = ValueError("not a number")
        error = InvalidDefaultError(ColumnType.INTEGER, "abc", cause)
        assert str(error) == "Invalid default 'abc' for column type INTEGER"
        assert error.category is ErrorCategory.DATA
        assert error.context.column_type == "INTEGER"
        assert error.__cause__ is cause


class TestUtilities:
    def test_nothing_is_retryable(self):
        assert not is_retryable(ConfigError("x"))
        assert not is_retryable(RuntimeError("x"))

    @pytest.mark.parametrize(
        "error, expected",
        [
            (ConfigError("x"), ErrorCategory.CONFIG),
            (ValueError("x"), ErrorCategory.VALIDATION),
            (TypeError("x"), ErrorCategory.VALIDATION),
            (KeyError("x"), ErrorCategory.CONFIG),
            (RuntimeError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize(self, error, expected):
        assert categorize_error(error) is expected
