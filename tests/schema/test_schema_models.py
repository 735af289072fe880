"""Tests for logical schema descriptions."""

import pytest

from conftest import Status
from sqlbridge.core.enums import ColumnType
from sqlbridge.core.errors import SchemaResolutionError
from sqlbridge.schema import (
    CheckConstraintSchemaInfo,
    ColumnAlterInfo,
    ColumnInfo,
    EntitySchemaInfo,
    FieldSchemaInfo,
    IndexSchemaInfo,
    sql_name,
)


class TestSqlName:
    @pytest.mark.parametrize(
        "name, expected",
        [("id", "ID"), ("createdOn", "CREATED_ON"), ("ownerId2Ref", "OWNER_ID2_REF"), ("x", "X")],
    )
    def test_camel_to_upper_snake(self, name, expected):
        assert sql_name(name) == expected


class TestFieldSchemaInfo:
    def test_column_defaults_from_name(self):
        assert FieldSchemaInfo("openedOn", ColumnType.DATE).column == "OPENED_ON"

    def test_explicit_column_kept(self):
        assert FieldSchemaInfo("openedOn", ColumnType.DATE, column="OPENED").column == "OPENED"

    def test_primary_key_is_not_null_and_auto_increment(self):
        pk = FieldSchemaInfo("id", ColumnType.LONG, primary_key=True, nullable=True)
        assert pk.nullable is False
        assert pk.auto_increment is True

    def test_text_primary_key_is_not_auto_increment(self):
        assert FieldSchemaInfo("code", ColumnType.STRING, primary_key=True).auto_increment is False

    def test_list_only_primary_key_rejected(self):
        with pytest.raises(SchemaResolutionError):
            FieldSchemaInfo("id", ColumnType.LONG, primary_key=True, list_only=True)

    def test_negative_size_rejected(self):
        with pytest.raises(SchemaResolutionError):
            FieldSchemaInfo("name", ColumnType.STRING, length=-1)

    def test_has_default_ignores_blank(self):
        assert FieldSchemaInfo("a", ColumnType.STRING, default="x").has_default
        assert not FieldSchemaInfo("a", ColumnType.STRING, default="  ").has_default
        assert not FieldSchemaInfo("a", ColumnType.STRING).has_default


class TestFieldResolution:
    def test_resolves_once(self):
        field = FieldSchemaInfo("status", ColumnType.ENUM_CONSTANT)
        assert field.resolve(enum_class=Status) is True
        assert field.resolved
        assert field.enum_class is Status
        assert field.resolve() is False

    def test_rewrite_before_resolution(self):
        field = FieldSchemaInfo("code", ColumnType.STRING)
        field.resolve(column_type=ColumnType.ENUM_CONSTANT, enum_class=Status)
        assert field.column_type is ColumnType.ENUM_CONSTANT

    def test_rewrite_after_resolution_rejected(self):
        field = FieldSchemaInfo("code", ColumnType.STRING)
        field.resolve()
        with pytest.raises(SchemaResolutionError, match="already resolved"):
            field.resolve(column_type=ColumnType.CLOB)

    def test_same_type_after_resolution_is_fine(self):
        field = FieldSchemaInfo("code", ColumnType.STRING)
        field.resolve()
        assert field.resolve(column_type=ColumnType.STRING) is False

    def test_non_enum_class_rejected(self):
        field = FieldSchemaInfo("status", ColumnType.ENUM_CONSTANT)
        with pytest.raises(SchemaResolutionError):
            field.resolve(enum_class=dict)  # type: ignore[arg-type]


class TestEntitySchemaInfo:
    def test_lists_are_frozen(self):
        entity = EntitySchemaInfo("T", [FieldSchemaInfo("a", ColumnType.INTEGER)])
        assert isinstance(entity.fields, tuple)

    def test_duplicate_fields_rejected(self):
        with pytest.raises(SchemaResolutionError, match="duplicate"):
            EntitySchemaInfo("T", (FieldSchemaInfo("a", ColumnType.INTEGER), FieldSchemaInfo("a", ColumnType.LONG)))

    def test_two_primary_keys_rejected(self):
        with pytest.raises(SchemaResolutionError, match="more than one primary key"):
            EntitySchemaInfo(
                "T",
                (
                    FieldSchemaInfo("a", ColumnType.INTEGER, primary_key=True),
                    FieldSchemaInfo("b", ColumnType.INTEGER, primary_key=True),
                ),
            )

    def test_constraints_must_reference_known_fields(self):
        with pytest.raises(SchemaResolutionError, match="unknown fields"):
            EntitySchemaInfo(
                "T",
                (FieldSchemaInfo("a", ColumnType.INTEGER),),
                indexes=(IndexSchemaInfo("ix", ("b",)),),
            )
        with pytest.raises(SchemaResolutionError, match="unknown fields"):
            EntitySchemaInfo(
                "T",
                (FieldSchemaInfo("a", ColumnType.INTEGER),),
                check_constraints=(CheckConstraintSchemaInfo("ck", "z", ("1",)),),
            )

    def test_lookup(self, account):
        assert account.field("name").column == "NAME"
        assert account.primary_key.name == "id"
        with pytest.raises(SchemaResolutionError):
            account.field("missing")

    def test_table_fields_skip_list_only(self, account):
        names = [f.name for f in account.table_fields()]
        assert "label" not in names
        assert names[0] == "id"


class TestCatalogTypes:
    def test_effective_precision(self):
        assert ColumnInfo("A", "NUMBER", size=10).effective_precision == 10
        assert ColumnInfo("A", "NUMBER", size=22, precision=12).effective_precision == 12

    def test_alter_info(self):
        assert not ColumnAlterInfo().altered
        assert ColumnAlterInfo(default_changed=True).altered
