"""Tests for SchemaResolver: preferred names, overflow swap, default literals, caching."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import make_account
from sqlbridge.core.enums import ColumnType
from sqlbridge.core.errors import SchemaResolutionError
from sqlbridge.schema import EntitySchemaInfo, FieldSchemaInfo, SchemaResolver


class TestNames:
    def test_postgresql_folds_to_lower(self, pg, account):
        resolved = SchemaResolver(pg).resolve(account)
        assert resolved.table == "account"
        assert resolved.bare_table == "account"
        assert resolved.field("openedOn").column == "opened_on"
        assert resolved.view == "account_view"

    def test_schema_qualified(self, hsqldb):
        entity = EntitySchemaInfo("ITEM", (FieldSchemaInfo("id", ColumnType.INTEGER),), schema="INV")
        assert SchemaResolver(hsqldb).resolve(entity).table == "INV.ITEM"

    @pytest.mark.parametrize(
        "engine, expected",
        [
            ("hsqldb", '"ORDER"'),
            ("oracle", '"ORDER"'),
            ("db2", '"ORDER"'),
            ("postgresql", '"order"'),
            ("mysql", "`ORDER`"),
            ("mssql", "[ORDER]"),
        ],
    )
    def test_reserved_column_is_quoted(self, engine, expected):
        from sqlbridge.dialect import get_dialect

        field = FieldSchemaInfo("order", ColumnType.INTEGER)
        assert SchemaResolver(get_dialect(engine)).resolve_field(field).column == expected


class TestDeclarations:
    def test_default_string_length(self, hsqldb):
        field = FieldSchemaInfo("title", ColumnType.STRING)
        resolved = SchemaResolver(hsqldb, default_string_length=80).resolve_field(field)
        assert resolved.declaration == "VARCHAR(80)"
        assert resolved.length == 80

    @pytest.mark.parametrize("engine, expected", [("oracle", "CLOB"), ("mssql", "NVARCHAR(MAX)"), ("mysql", "VARCHAR(5000)")])
    def test_long_strings_swap_to_clob(self, engine, expected):
        from sqlbridge.dialect import get_dialect

        field = FieldSchemaInfo("body", ColumnType.STRING, length=5000)
        resolved = SchemaResolver(get_dialect(engine)).resolve_field(field)
        assert resolved.declaration == expected
        assert resolved.field.column_type is ColumnType.STRING

    def test_decimal_uses_declared_precision(self, oracle, account):
        assert SchemaResolver(oracle).resolve(account).field("balance").declaration == "NUMBER(12,2)"

    def test_oracle_integrals(self, oracle, account):
        resolved = SchemaResolver(oracle).resolve(account)
        assert resolved.field("id").declaration == "NUMBER(19)"
        assert resolved.field("visits").declaration == "NUMBER(10)"
        assert resolved.field("rank").declaration == "NUMBER(5)"


class TestDefaults:
    def test_configured_default_rendered(self, pg, account):
        resolved = SchemaResolver(pg).resolve(account)
        assert resolved.field("visits").default_literal == "0"
        assert resolved.field("status").default_literal == "'O'"
        assert resolved.field("active").default_literal == "'Y'"

    def test_not_null_without_default_gets_zero_value(self, hsqldb, account):
        name = SchemaResolver(hsqldb).resolve(account).field("name")
        assert name.effective_default == ""
        assert name.default_literal == "''"

    def test_oracle_zero_value_text_is_a_blank(self, oracle, account):
        resolved = SchemaResolver(oracle).resolve(account)
        assert resolved.field("name").effective_default == " "
        assert resolved.field("name").default_literal == "' '"
        for column_type in (ColumnType.STRING, ColumnType.CHARACTER, ColumnType.ENUM_CONSTANT):
            assert oracle.type_policy(column_type).alt_default == " "

    def test_nullable_and_key_have_no_default(self, hsqldb, account):
        resolved = SchemaResolver(hsqldb).resolve(account)
        assert resolved.field("notes").default_literal is None
        assert resolved.field("id").default_literal is None

    def test_mssql_national_literal(self, mssql, account):
        assert SchemaResolver(mssql).resolve(account).field("status").default_literal == "N'O'"


class TestView:
    def test_view_columns_include_expressions(self, hsqldb, account):
        resolved = SchemaResolver(hsqldb).resolve(account)
        columns = resolved.view_columns()
        assert columns[0] == "ID"
        assert columns[-1] == "UPPER(NAME) AS LABEL"
        assert [f.name for f in resolved.table_fields()][-1] == "ownerId"

    def test_unknown_field(self, hsqldb, account):
        with pytest.raises(SchemaResolutionError, match="no field 'nope'"):
            SchemaResolver(hsqldb).resolve(account).field("nope")


class TestCaching:
    def test_same_instance(self, hsqldb, account):
        resolver = SchemaResolver(hsqldb)
        assert resolver.resolve(account) is resolver.resolve(account)

    def test_entities_keyed_by_identity(self, hsqldb):
        resolver = SchemaResolver(hsqldb)
        assert resolver.resolve(make_account()) is not resolver.resolve(make_account())

    def test_concurrent_resolution_publishes_one_object(self, mysql):
        resolver = SchemaResolver(mysql)
        entity = make_account()
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: resolver.resolve(entity), range(64)))
        assert all(r is results[0] for r in results)
        assert all(f.field.resolved for f in results[0].fields)
