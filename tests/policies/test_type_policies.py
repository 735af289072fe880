"""Tests for the default type policy table and its policy classes."""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum

import pytest

from conftest import Status
from sqlbridge.core.enums import ColumnType
from sqlbridge.core.errors import DataError, InvalidDefaultError, MissingPolicyError, UnknownEnumValueError
from sqlbridge.policies.types import (
    DEFAULT_TYPE_POLICIES,
    LobStream,
    build_type_policies,
    normalize_type_name,
    override,
)

P = DEFAULT_TYPE_POLICIES


class Priority(Enum):
    LOW = 1
    HIGH = 2


class TestTable:
    def test_every_type_covered(self):
        assert set(P) == set(ColumnType)

    def test_read_only(self):
        with pytest.raises(TypeError):
            P[ColumnType.STRING] = P[ColumnType.CLOB]  # type: ignore[index]

    def test_override_copies(self):
        bytea = override(ColumnType.BLOB, declaration="BYTEA")
        assert bytea.declaration == "BYTEA"
        assert P[ColumnType.BLOB].declaration == "BLOB"

    def test_build_merges_overrides(self):
        table = build_type_policies({ColumnType.BLOB: override(ColumnType.BLOB, declaration="BYTEA")}, dialect="x")
        assert table[ColumnType.BLOB].declaration == "BYTEA"
        assert table[ColumnType.CLOB] is P[ColumnType.CLOB]

    def test_build_rejects_mismatched_registration(self):
        with pytest.raises(MissingPolicyError):
            build_type_policies({ColumnType.CLOB: P[ColumnType.BLOB]}, dialect="x")

    def test_build_rejects_incomplete_base(self):
        partial = {t: p for t, p in P.items() if t is not ColumnType.DATE}
        with pytest.raises(MissingPolicyError, match="DATE"):
            build_type_policies(base=partial, dialect="x")


class TestDeclarations:
    def test_normalize_type_name(self):
        assert normalize_type_name("VARCHAR2(64 CHAR)") == "varchar2"
        assert normalize_type_name("TIMESTAMP(6) WITH TIME ZONE") == "timestamp with time zone"

    def test_render_sized(self):
        assert P[ColumnType.STRING].render_type(length=64) == "VARCHAR(64)"
        assert P[ColumnType.ENUM_CONSTANT].render_type() == "VARCHAR(32)"

    def test_render_decimal(self):
        assert P[ColumnType.DECIMAL].render_type(precision=12, scale=2) == "DECIMAL(12,2)"
        assert P[ColumnType.DECIMAL].render_type(precision=10) == "DECIMAL(10,0)"
        assert P[ColumnType.DECIMAL].render_type() == "DECIMAL(18,2)"

    def test_sizing_flags(self):
        assert P[ColumnType.STRING].sized
        assert not P[ColumnType.CLOB].sized
        assert P[ColumnType.DECIMAL].precision_sized

    def test_matches_native(self):
        policy = P[ColumnType.STRING]
        assert policy.matches_native("VARCHAR(64)")
        assert policy.matches_native("character varying")
        assert not policy.matches_native("INTEGER")


class TestDefaultLiterals:
    def test_text_is_quoted_and_escaped(self):
        assert P[ColumnType.STRING].render_default_literal("O'Brien") == "'O''Brien'"

    def test_national_template(self):
        policy = replace(P[ColumnType.STRING], literal_template="N'{value}'")
        assert policy.render_default_literal("x") == "N'x'"

    def test_character_must_be_single(self):
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.CHARACTER].render_default_literal("ab")

    def test_enum_by_code_and_name(self):
        policy = P[ColumnType.ENUM_CONSTANT]
        assert policy.render_default_literal("O", Status) == "'O'"
        assert policy.render_default_literal("CLOSED", Status) == "'C'"
        assert policy.render_default_literal("", Status) == "'O'"
        with pytest.raises(InvalidDefaultError):
            policy.render_default_literal("X", Status)

    @pytest.mark.parametrize("raw, literal", [("true", "TRUE"), ("Y", "TRUE"), ("off", "FALSE")])
    def test_boolean(self, raw, literal):
        assert P[ColumnType.BOOLEAN].render_default_literal(raw) == literal

    def test_boolean_rejects_noise(self):
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.BOOLEAN].render_default_literal("maybe")

    def test_integral_range_and_shape(self):
        assert P[ColumnType.SHORT].render_default_literal("1.0") == "1"
        for bad in ("40000", "1.5", "abc"):
            with pytest.raises(InvalidDefaultError):
                P[ColumnType.SHORT].render_default_literal(bad)

    def test_real_and_decimal(self):
        assert P[ColumnType.DOUBLE].render_default_literal("1.5") == "1.5"
        assert P[ColumnType.DECIMAL].render_default_literal("12.50") == "12.50"
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.DECIMAL].render_default_literal("NaN")

    @pytest.mark.parametrize("raw", ["inf", "-Infinity", "nan"])
    def test_real_rejects_non_finite(self, raw):
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.DOUBLE].render_default_literal(raw)
        assert P[ColumnType.FLOAT].canonical_default(raw) == raw

    def test_temporal(self):
        assert P[ColumnType.DATE].render_default_literal("2024-01-31") == "'2024-01-31'"
        assert P[ColumnType.DATE].render_default_literal("2024-01-31 10:00:00") == "'2024-01-31'"
        assert (
            P[ColumnType.TIMESTAMP].render_default_literal("2024-01-31T10:20:30+02:00") == "'2024-01-31 08:20:30'"
        )
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.DATE].render_default_literal("yesterday")

    def test_blob_hex(self):
        assert P[ColumnType.BLOB].render_default_literal("0xcafe") == "X'CAFE'"
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.BLOB].render_default_literal("zz")

    def test_none_is_invalid(self):
        with pytest.raises(InvalidDefaultError):
            P[ColumnType.STRING].render_default_literal(None)  # type: ignore[arg-type]

    def test_canonical_default(self):
        assert P[ColumnType.INTEGER].canonical_default(" 5 ") == 5
        assert P[ColumnType.INTEGER].canonical_default(" next ") == "next"
        assert P[ColumnType.INTEGER].canonical_default(None) is None


class TestBackfill:
    def test_uses_default_when_present(self):
        assert P[ColumnType.INTEGER].backfill_value("7") == "7"

    def test_falls_back_to_backfill_literal(self):
        assert P[ColumnType.CLOB].backfill_value(None) == "CAST('' AS CLOB)"
        assert P[ColumnType.BLOB].backfill_value("  ") == "X''"

    def test_falls_back_to_alt_default(self):
        assert P[ColumnType.INTEGER].backfill_value(None) == "0"
        assert P[ColumnType.STRING].backfill_value(None) == "''"
        assert P[ColumnType.BOOLEAN].backfill_value(None) == "FALSE"
        assert P[ColumnType.DATE].backfill_value(None) == "'1970-01-01'"


class TestBinding:
    def test_none_binds_none(self):
        assert all(p.bind_parameter(None) is None for p in P.values())

    def test_enum_binds_code(self):
        assert P[ColumnType.ENUM_CONSTANT].bind_parameter(Status.CLOSED) == "C"

    def test_boolean_tokens(self):
        yn = replace(P[ColumnType.BOOLEAN], true_value="Y", false_value="N")
        assert yn.bind_parameter(True) == "Y"
        assert yn.bind_parameter("no") == "N"

    def test_decimal_from_float_keeps_text(self):
        assert P[ColumnType.DECIMAL].bind_parameter(0.1) == Decimal("0.1")

    def test_timestamp_utc_naive_uses_offset(self):
        bound = P[ColumnType.TIMESTAMP_UTC].bind_parameter(datetime(2024, 1, 1, 12, 0), utc_offset=60)
        assert bound == datetime(2024, 1, 1, 11, 0)

    def test_timestamp_utc_aware_is_converted(self):
        aware = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert P[ColumnType.TIMESTAMP_UTC].bind_parameter(aware) == datetime(2024, 1, 1, 10, 0)

    def test_plain_timestamp_untouched(self):
        value = datetime(2024, 1, 1, 12, 0)
        assert P[ColumnType.TIMESTAMP].bind_parameter(value, utc_offset=60) == value

    def test_date_from_datetime(self):
        assert P[ColumnType.DATE].bind_parameter(datetime(2024, 1, 1, 12)) == date(2024, 1, 1)

    def test_streamed_lobs(self):
        clob = replace(P[ColumnType.CLOB], streamed=True)
        bound = clob.bind_parameter("hello")
        assert isinstance(bound, LobStream)
        assert bound.length == 5
        assert bound.read() == "hello"
        blob = replace(P[ColumnType.BLOB], streamed=True)
        assert blob.bind_parameter(b"\x01\x02").read() == b"\x01\x02"

    def test_empty_lob_as_null(self):
        clob = replace(P[ColumnType.CLOB], empty_as_null=True)
        assert clob.bind_parameter("") is None
        assert replace(P[ColumnType.BLOB], empty_as_null=True).bind_parameter(b"") is None


class TestExtraction:
    def test_null_column(self):
        assert P[ColumnType.INTEGER].extract_result({"n": None}, "n") is None

    def test_enum_by_code(self):
        assert P[ColumnType.ENUM_CONSTANT].extract_result(("C",), 0, Status) is Status.CLOSED

    def test_enum_with_integer_values(self):
        policy = P[ColumnType.ENUM_CONSTANT]
        assert policy.extract_result((2,), 0, Priority) is Priority.HIGH
        assert policy.extract_result(("1",), 0, Priority) is Priority.LOW
        assert policy.extract_result(("HIGH",), 0, Priority) is Priority.HIGH

    def test_enum_unknown_code(self):
        with pytest.raises(UnknownEnumValueError) as excinfo:
            P[ColumnType.ENUM_CONSTANT].extract_result(("Z",), 0, Status)
        assert isinstance(excinfo.value, DataError)
        assert excinfo.value.value == "Z"

    def test_boolean_shapes(self):
        policy = P[ColumnType.BOOLEAN]
        assert policy.extract_result((1,), 0) is True
        assert policy.extract_result(("N",), 0) is False
        assert policy.extract_result(("Y",), 0) is True

    def test_character_truncates(self):
        assert P[ColumnType.CHARACTER].extract_result(("ab",), 0) == "a"

    def test_timestamp_utc_is_aware(self):
        value = P[ColumnType.TIMESTAMP_UTC].extract_result((datetime(2024, 1, 1, 10),), 0)
        assert value.tzinfo is timezone.utc

    def test_lob_reader(self):
        import io

        assert P[ColumnType.BLOB].extract_result((io.BytesIO(b"ab"),), 0) == b"ab"
        reader = io.StringIO("text")
        streamed = replace(P[ColumnType.CLOB], streamed=True)
        assert streamed.extract_result((reader,), 0) is reader
