"""Tests for statement objects and their binding/extraction plans."""

from datetime import datetime, timezone

from conftest import Status
from sqlbridge.core.enums import ColumnType
from sqlbridge.dialect import get_dialect
from sqlbridge.policies.types import DEFAULT_TYPE_POLICIES, LobStream
from sqlbridge.statements import ResultColumn, SqlParameter, SqlStatement


def policy(column_type, engine=None):
    if engine is None:
        return DEFAULT_TYPE_POLICIES[column_type]
    return get_dialect(engine).type_policy(column_type)


class TestSqlParameter:
    def test_none_binds_as_none(self):
        param = SqlParameter(1, ColumnType.INTEGER, None, policy(ColumnType.INTEGER))
        assert param.bound_value() is None

    def test_enum_binds_code(self):
        param = SqlParameter(1, ColumnType.ENUM_CONSTANT, Status.CLOSED, policy(ColumnType.ENUM_CONSTANT), Status)
        assert param.bound_value() == "C"

    def test_utc_offset_applies_to_utc_timestamps_only(self):
        moment = datetime(2024, 3, 1, 8, 30)
        utc = SqlParameter(1, ColumnType.TIMESTAMP_UTC, moment, policy(ColumnType.TIMESTAMP_UTC))
        local = SqlParameter(2, ColumnType.TIMESTAMP, moment, policy(ColumnType.TIMESTAMP))
        assert utc.bound_value(-120) == datetime(2024, 3, 1, 10, 30)
        assert local.bound_value(-120) == moment

    def test_streamed_lob(self):
        param = SqlParameter(1, ColumnType.CLOB, "hello", policy(ColumnType.CLOB, "mssql"))
        bound = param.bound_value()
        assert isinstance(bound, LobStream)
        assert bound.length == 5

    def test_equality_ignores_policy(self):
        a = SqlParameter(1, ColumnType.BOOLEAN, True, policy(ColumnType.BOOLEAN))
        b = SqlParameter(1, ColumnType.BOOLEAN, True, policy(ColumnType.BOOLEAN, "oracle"))
        assert a == b
        assert a.bound_value() != b.bound_value()


class TestResultColumn:
    def test_extracts_by_position(self):
        column = ResultColumn(1, ColumnType.BOOLEAN, "active", policy(ColumnType.BOOLEAN, "oracle"))
        assert column.extract((7, "N")) is False

    def test_null_stays_null(self):
        column = ResultColumn(0, ColumnType.ENUM_CONSTANT, "status", policy(ColumnType.ENUM_CONSTANT), Status)
        assert column.extract((None,)) is None

    def test_utc_results_are_aware(self):
        column = ResultColumn(0, ColumnType.TIMESTAMP_UTC, "created", policy(ColumnType.TIMESTAMP_UTC))
        assert column.extract((datetime(2024, 1, 1),)) == datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestSqlStatement:
    def test_plain_statement(self):
        stmt = SqlStatement("SELECT 1")
        assert str(stmt) == "SELECT 1"
        assert stmt.bind_values() == []
        assert stmt.extract_row(()) == {}

    def test_bind_values_in_order(self):
        stmt = SqlStatement(
            "UPDATE T SET A = ?, B = ?",
            (
                SqlParameter(1, ColumnType.STRING, "x", policy(ColumnType.STRING)),
                SqlParameter(2, ColumnType.BOOLEAN, "yes", policy(ColumnType.BOOLEAN, "postgresql")),
            ),
        )
        assert stmt.bind_values() == ["x", "Y"]

    def test_offset_carried_to_parameters_and_results(self):
        moment = datetime(2024, 6, 1, 12)
        utc = policy(ColumnType.TIMESTAMP_UTC)
        stmt = SqlStatement(
            "SELECT CREATED FROM T WHERE CREATED > ?",
            (SqlParameter(1, ColumnType.TIMESTAMP_UTC, moment, utc),),
            (ResultColumn(0, ColumnType.TIMESTAMP_UTC, "created", utc),),
            utc_offset=30,
        )
        assert stmt.bind_values() == [datetime(2024, 6, 1, 11, 30)]
        assert stmt.extract_row((moment,)) == {"created": moment.replace(tzinfo=timezone.utc)}

    def test_statements_compare_by_text_and_plans(self):
        a = SqlStatement("SELECT 1", (SqlParameter(1, ColumnType.INTEGER, 1, policy(ColumnType.INTEGER)),))
        b = SqlStatement("SELECT 1", (SqlParameter(1, ColumnType.INTEGER, 1, policy(ColumnType.INTEGER, "oracle")),))
        assert a == b
        assert a != SqlStatement("SELECT 1")
