"""Tests for catalog default matching across engines."""

import pytest

from conftest import Status, make_account
from sqlbridge.core.enums import ColumnType
from sqlbridge.dialect import LiteralDefaultMatcher
from sqlbridge.policies.types import DEFAULT_TYPE_POLICIES
from sqlbridge.schema import SchemaResolver


class TestRenderedDefaultsMatch:
    def test_own_literals_match(self, dialect):
        """Whatever the dialect renders into DDL must match when read back verbatim."""
        resolved = SchemaResolver(dialect).resolve(make_account())
        checked = 0
        for field in resolved.table_fields():
            if field.default_literal is None:
                continue
            assert dialect.matches_default(
                field.column_type, field.default_literal, field.effective_default, field.enum_class
            ), field.name
            checked += 1
        assert checked >= 5


class TestCatalogShapes:
    def test_mssql_parentheses(self, mssql):
        assert mssql.matches_default(ColumnType.INTEGER, "((0))", "0")
        assert mssql.matches_default(ColumnType.STRING, "(N'O''Brien')", "O'Brien")
        assert mssql.matches_default(ColumnType.BOOLEAN, "((1))", "true")

    def test_postgresql_casts(self, pg):
        assert pg.matches_default(ColumnType.STRING, "'abc'::character varying", "abc")
        assert pg.matches_default(ColumnType.BOOLEAN, "'Y'::bpchar", "true")
        assert pg.matches_default(ColumnType.DECIMAL, "0.00", "0")
        assert pg.matches_default(ColumnType.STRING, "NULL::character varying", None)

    def test_oracle_functions_and_whitespace(self, oracle):
        assert oracle.matches_default(ColumnType.STRING, "'abc' ", "abc")
        assert oracle.matches_default(ColumnType.DATE, "TO_DATE('2024-01-31', 'YYYY-MM-DD') ", "2024-01-31")
        assert oracle.matches_default(ColumnType.BLOB, "HEXTORAW('CAFE')", "0xcafe")

    def test_mysql_bare_values(self, mysql):
        assert mysql.matches_default(ColumnType.STRING, "abc", "abc")
        assert mysql.matches_default(ColumnType.ENUM_CONSTANT, "C", "CLOSED", Status)

    def test_typed_literals(self, hsqldb):
        assert hsqldb.matches_default(ColumnType.DATE, "DATE '2024-01-31'", "2024-01-31")
        assert hsqldb.matches_default(ColumnType.BLOB, "X'CAFE'", "CAFE")

    def test_mismatch(self, dialect):
        assert not dialect.matches_default(ColumnType.INTEGER, "1", "0")
        assert not dialect.matches_default(ColumnType.STRING, None, "x")
        assert not dialect.matches_default(ColumnType.STRING, "'x'", None)

    def test_both_absent(self, dialect):
        assert dialect.matches_default(ColumnType.STRING, None, None)


class TestUnwrap:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, None),
            ("NULL", None),
            ("'it''s'", "it's"),
            ("('a')", "a"),
            ("(1) + (2)", "(1) + (2)"),
            ("'a'::text", "a"),
        ],
    )
    def test_unwrap(self, raw, expected):
        matcher = LiteralDefaultMatcher(strip_parentheses=True, strip_casts=True)
        assert matcher.unwrap(raw) == expected

    def test_plain_matcher_keeps_parentheses(self):
        assert LiteralDefaultMatcher().unwrap("((0))") == "((0))"

    def test_unparseable_compared_as_text(self):
        policy = DEFAULT_TYPE_POLICIES[ColumnType.TIMESTAMP]
        matcher = LiteralDefaultMatcher()
        assert matcher.matches(policy, "CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP")
