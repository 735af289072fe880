"""
Type policies: per-column-type rendering, binding and extraction rules.

Manifesto:
    Every abstract ColumnType needs four things on every engine: a native
    type declaration, a default-value literal, a way to bind a Python
    value into a prepared statement and a way to read it back. Most
    engines agree on most types, so one default table covers the common
    case and each dialect overrides a handful of entries by field
    initialization (``dataclasses.replace``) instead of subclassing.

Architecture:
    ::

        TypePolicy (frozen dataclass)
        ├── TextPolicy          CHARACTER, STRING
        │   ├── EnumPolicy      ENUM_CONSTANT
        │   └── ClobPolicy      CLOB (stream-bound on some engines)
        ├── BooleanPolicy       BOOLEAN (native, CHAR(1) Y/N or BIT)
        ├── IntegralPolicy      SHORT, INTEGER, LONG
        ├── RealPolicy          FLOAT, DOUBLE
        ├── DecimalPolicy       DECIMAL
        ├── DatePolicy          DATE
        ├── TimestampPolicy     TIMESTAMP, TIMESTAMP_UTC
        └── BlobPolicy          BLOB (stream-bound on some engines)

        DEFAULT_TYPE_POLICIES : ColumnType -> TypePolicy (read-only)
        build_type_policies(overrides, dialect=...) -> read-only table,
            raising MissingPolicyError when a ColumnType is left uncovered

Features:
    - Declarations are templates over ``{length}``, ``{precision}``, ``{scale}``
    - Default literals are parsed first, so a bad default fails with
      InvalidDefaultError instead of producing broken DDL
    - ``canonical_default`` gives the comparable value used by default matching
    - LOB policies bind ``LobStream`` readers when ``streamed`` is set

Guardrails:
    ❌ DON'T: Subclass a policy to change its declaration on one engine
    ✅ DO: ``replace(DEFAULT_TYPE_POLICIES[ColumnType.BLOB], declaration="BYTEA")``

    ❌ DON'T: Read a whole LOB locator into memory on a streaming engine
    ✅ DO: Return the driver's locator from ``extract_result`` untouched

Tags:
    type-policy, ddl, default-literal, parameter-binding, lob, sqlbridge
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from sqlbridge.core.enums import ColumnType
from sqlbridge.core.errors import InvalidDefaultError, MissingPolicyError, UnknownEnumValueError

TRUE_WORDS = frozenset({"true", "t", "y", "yes", "1", "on"})
FALSE_WORDS = frozenset({"false", "f", "n", "no", "0", "off"})

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def normalize_type_name(type_name: str) -> str:
    """Lower-case a catalog type name and drop any parenthesized size.

    >>> normalize_type_name("VARCHAR2(64 CHAR)")
    'varchar2'
    >>> normalize_type_name("TIMESTAMP(6) WITH TIME ZONE")
    'timestamp with time zone'
    """
    out = []
    depth = 0
    for ch in type_name:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(depth - 1, 0)
        elif depth == 0:
            out.append(ch)
    return " ".join("".join(out).lower().split())


def quote_text(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


@dataclass(frozen=True)
class LobStream:
    """Stream binding for a large object: a reader plus its total length."""

    reader: io.BytesIO | io.StringIO
    length: int
    column_type: ColumnType

    def read(self, size: int = -1) -> bytes | str:
        return self.reader.read(size)


@dataclass(frozen=True)
class TypePolicy:
    """
    Rendering, binding and extraction rules for one ColumnType on one engine.

    ``aliases`` lists the catalog type names (normalized) that count as
    this type when comparing an observed column against a desired one.
    The declaration's own base name is always included.
    """

    column_type: ColumnType
    declaration: str
    aliases: frozenset[str] = frozenset()
    default_length: int = 0
    default_precision: int = 0
    default_scale: int = 0
    alt_default: str | None = None
    backfill_literal: str | None = None
    literal_template: str = "{value}"
    streamed: bool = False
    empty_as_null: bool = False

    # -- Declaration -------------------------------------------------------

    @property
    def native_name(self) -> str:
        return normalize_type_name(self.declaration)

    @property
    def sized(self) -> bool:
        """Length is part of the type identity."""
        return "{length}" in self.declaration

    @property
    def precision_sized(self) -> bool:
        return "{precision}" in self.declaration

    def render_type(self, length: int = 0, precision: int = 0, scale: int = 0) -> str:
        return self.declaration.format(
            length=length or self.default_length or 1,
            precision=precision or self.default_precision,
            scale=scale if precision else self.default_scale,
        )

    def matches_native(self, type_name: str) -> bool:
        name = normalize_type_name(type_name)
        return name == self.native_name or name in self.aliases

    # -- Default literals --------------------------------------------------

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        return raw

    def format_literal(self, value: Any) -> str:
        return self.literal_template.format(value=value)

    def render_default_literal(self, raw: str, enum_class: type[Enum] | None = None) -> str:
        """Render a language-neutral default as this engine's SQL literal."""
        if raw is None:
            raise InvalidDefaultError(self.column_type, raw)
        return self.format_literal(self.parse_default(raw, enum_class))

    def canonical_default(self, raw: str | None, enum_class: type[Enum] | None = None) -> Any:
        """Comparable form of a default, or the stripped text when it does not parse."""
        if raw is None:
            return None
        try:
            return self.parse_default(raw, enum_class)
        except InvalidDefaultError:
            return raw.strip()

    def backfill_value(self, raw_default: str | None, enum_class: type[Enum] | None = None) -> str:
        """Literal used to fill existing NULLs before a NOT NULL constraint is applied."""
        if raw_default is not None and raw_default.strip():
            return self.render_default_literal(raw_default, enum_class)
        if self.backfill_literal is not None:
            return self.backfill_literal
        return self.render_default_literal(self.alt_default or "", enum_class)

    # -- Binding / extraction ----------------------------------------------

    def bind_parameter(self, value: Any, utc_offset: int = 0) -> Any:
        if value is None:
            return None
        return self.to_db(value, utc_offset)

    def extract_result(
        self,
        row: Any,
        key: int | str,
        enum_class: type[Enum] | None = None,
        utc_offset: int = 0,
    ) -> Any:
        raw = row[key]
        if raw is None:
            return None
        return self.from_db(raw, enum_class, utc_offset)

    def to_db(self, value: Any, utc_offset: int) -> Any:
        return value

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        return raw

    def _invalid(self, raw: Any, cause: Exception | None = None) -> InvalidDefaultError:
        return InvalidDefaultError(self.column_type, raw, cause=cause)


# =============================================================================
# TEXT
# =============================================================================


@dataclass(frozen=True)
class TextPolicy(TypePolicy):
    alt_default: str | None = ""
    literal_template: str = "'{value}'"
    single_character: bool = False

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        if self.single_character and len(raw) != 1:
            raise self._invalid(raw)
        return raw

    def format_literal(self, value: Any) -> str:
        return self.literal_template.replace("'{value}'", quote_text(str(value)))

    def to_db(self, value: Any, utc_offset: int) -> Any:
        if isinstance(value, Enum):
            return str(value.value)
        return str(value)

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        text = raw if isinstance(raw, str) else str(raw)
        if self.single_character:
            return text[:1]
        return text


@dataclass(frozen=True)
class EnumPolicy(TextPolicy):
    """ENUM_CONSTANT: stored as the member's code (its ``value``).

    Defaults resolve by member code, then member name; a blank default
    resolves to the first declared member.
    """

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        if enum_class is None:
            return raw
        if not raw.strip():
            return str(next(iter(enum_class)).value)
        code = _enum_code(enum_class, raw)
        if code is None:
            raise self._invalid(raw)
        return code

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        code = str(raw)
        if enum_class is None:
            return code
        for member in enum_class:
            if member.value == raw or str(member.value) == code:
                return member
        member = enum_class.__members__.get(code)
        if member is None:
            raise UnknownEnumValueError(enum_class, raw)
        return member


def _enum_code(enum_class: type[Enum], raw: str) -> str | None:
    """Resolve a default by member code, then by member name."""
    for member in enum_class:
        if str(member.value) == raw:
            return str(member.value)
    member = enum_class.__members__.get(raw)
    return str(member.value) if member is not None else None


@dataclass(frozen=True)
class ClobPolicy(TextPolicy):
    def to_db(self, value: Any, utc_offset: int) -> Any:
        text = str(value)
        if self.empty_as_null and not text:
            return None
        if self.streamed:
            return LobStream(io.StringIO(text), len(text), self.column_type)
        return text

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        if hasattr(raw, "read"):
            return raw if self.streamed else raw.read()
        return str(raw)


# =============================================================================
# BOOLEAN
# =============================================================================


@dataclass(frozen=True)
class BooleanPolicy(TypePolicy):
    """
    BOOLEAN with engine-specific literal tokens and bound values.

    ``true_token``/``false_token`` are SQL literal text; ``true_value``/
    ``false_value`` are what gets bound into a prepared statement.
    """

    alt_default: str | None = "false"
    true_token: str = "TRUE"
    false_token: str = "FALSE"
    true_value: Any = True
    false_value: Any = False

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        word = raw.strip().lower()
        if word in TRUE_WORDS:
            return True
        if word in FALSE_WORDS:
            return False
        raise self._invalid(raw)

    def format_literal(self, value: Any) -> str:
        return self.true_token if value else self.false_token

    def to_db(self, value: Any, utc_offset: int) -> Any:
        if isinstance(value, str):
            value = self.parse_default(value)
        return self.true_value if value else self.false_value

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, (int, Decimal)):
            return bool(raw)
        return str(raw).strip().lower() in TRUE_WORDS


# =============================================================================
# NUMERIC
# =============================================================================


@dataclass(frozen=True)
class IntegralPolicy(TypePolicy):
    alt_default: str | None = "0"
    min_value: int = -(2**63)
    max_value: int = 2**63 - 1

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        try:
            number = Decimal(raw.strip())
        except InvalidOperation as e:
            raise self._invalid(raw, e) from e
        if not number.is_finite() or number != number.to_integral_value():
            raise self._invalid(raw)
        value = int(number)
        if not self.min_value <= value <= self.max_value:
            raise self._invalid(raw)
        return value

    def format_literal(self, value: Any) -> str:
        return str(value)

    def to_db(self, value: Any, utc_offset: int) -> Any:
        return int(value)

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        return int(raw)


@dataclass(frozen=True)
class RealPolicy(TypePolicy):
    alt_default: str | None = "0"

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        try:
            value = float(raw.strip())
        except ValueError as e:
            raise self._invalid(raw, e) from e
        if not math.isfinite(value):
            raise self._invalid(raw)
        return value

    def format_literal(self, value: Any) -> str:
        return repr(float(value))

    def to_db(self, value: Any, utc_offset: int) -> Any:
        return float(value)

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        return float(raw)


@dataclass(frozen=True)
class DecimalPolicy(TypePolicy):
    alt_default: str | None = "0"

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        try:
            value = Decimal(raw.strip())
        except InvalidOperation as e:
            raise self._invalid(raw, e) from e
        if not value.is_finite():
            raise self._invalid(raw)
        return value

    def format_literal(self, value: Any) -> str:
        return format(value, "f")

    def to_db(self, value: Any, utc_offset: int) -> Any:
        return value if isinstance(value, Decimal) else Decimal(str(value))

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        return raw if isinstance(raw, Decimal) else Decimal(str(raw))


# =============================================================================
# TEMPORAL
# =============================================================================


@dataclass(frozen=True)
class DatePolicy(TypePolicy):
    alt_default: str | None = "1970-01-01"
    literal_template: str = "'{value}'"

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        text = raw.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        except ValueError as e:
            raise self._invalid(raw, e) from e

    def format_literal(self, value: Any) -> str:
        return self.literal_template.format(value=value.isoformat())

    def to_db(self, value: Any, utc_offset: int) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            return self.parse_default(value)
        return value

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        if isinstance(raw, datetime):
            return raw.date()
        if isinstance(raw, str):
            return date.fromisoformat(raw[:10])
        return raw


@dataclass(frozen=True)
class TimestampPolicy(TypePolicy):
    """
    TIMESTAMP and TIMESTAMP_UTC.

    With ``utc`` set, aware datetimes are converted to naive UTC on bind,
    naive ones are taken as local time ``utc_offset`` minutes east of UTC,
    and extracted values come back tz-aware in UTC.
    """

    alt_default: str | None = "1970-01-01 00:00:00"
    literal_template: str = "'{value}'"
    utc: bool = False

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        try:
            value = datetime.fromisoformat(raw.strip())
        except ValueError as e:
            raise self._invalid(raw, e) from e
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.replace(microsecond=0)

    def format_literal(self, value: Any) -> str:
        return self.literal_template.format(value=value.strftime(TIMESTAMP_FORMAT))

    def to_db(self, value: Any, utc_offset: int) -> Any:
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        elif isinstance(value, date) and not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        if not self.utc:
            return value
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value - timedelta(minutes=utc_offset)

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        if isinstance(raw, str):
            raw = datetime.fromisoformat(raw)
        if self.utc and raw.tzinfo is None:
            return raw.replace(tzinfo=timezone.utc)
        return raw


# =============================================================================
# BINARY
# =============================================================================


@dataclass(frozen=True)
class BlobPolicy(TypePolicy):
    """BLOB; default literals are hex strings (``"CAFE"``, ``"0xCAFE"``)."""

    alt_default: str | None = ""
    literal_template: str = "X'{value}'"

    def parse_default(self, raw: str, enum_class: type[Enum] | None = None) -> Any:
        text = raw.strip()
        if text[:2].lower() in ("0x", "\\x"):
            text = text[2:]
        try:
            return bytes.fromhex(text)
        except ValueError as e:
            raise self._invalid(raw, e) from e

    def format_literal(self, value: Any) -> str:
        return self.literal_template.format(value=value.hex().upper())

    def to_db(self, value: Any, utc_offset: int) -> Any:
        data = bytes(value)
        if self.empty_as_null and not data:
            return None
        if self.streamed:
            return LobStream(io.BytesIO(data), len(data), self.column_type)
        return data

    def from_db(self, raw: Any, enum_class: type[Enum] | None, utc_offset: int) -> Any:
        if hasattr(raw, "read"):
            return raw if self.streamed else raw.read()
        return bytes(raw)


# =============================================================================
# DEFAULT TABLE
# =============================================================================

_TEXT_ALIASES = frozenset({"varchar", "character varying", "varchar2", "nvarchar", "nvarchar2"})
_TIMESTAMP_ALIASES = frozenset({"timestamp", "timestamp without time zone", "datetime", "datetime2"})

DEFAULT_TYPE_POLICIES: Mapping[ColumnType, TypePolicy] = MappingProxyType(
    {
        ColumnType.CHARACTER: TextPolicy(
            ColumnType.CHARACTER,
            "CHAR(1)",
            aliases=frozenset({"char", "character", "bpchar", "nchar"}),
            alt_default=" ",
            single_character=True,
        ),
        ColumnType.STRING: TextPolicy(ColumnType.STRING, "VARCHAR({length})", aliases=_TEXT_ALIASES),
        ColumnType.ENUM_CONSTANT: EnumPolicy(
            ColumnType.ENUM_CONSTANT, "VARCHAR({length})", aliases=_TEXT_ALIASES, default_length=32
        ),
        ColumnType.CLOB: ClobPolicy(
            ColumnType.CLOB,
            "CLOB",
            aliases=frozenset({"clob", "text", "nclob", "longtext", "mediumtext", "character large object"}),
            backfill_literal="CAST('' AS CLOB)",
        ),
        ColumnType.BOOLEAN: BooleanPolicy(ColumnType.BOOLEAN, "BOOLEAN", aliases=frozenset({"bool"})),
        ColumnType.SHORT: IntegralPolicy(
            ColumnType.SHORT, "SMALLINT", aliases=frozenset({"int2"}), min_value=-(2**15), max_value=2**15 - 1
        ),
        ColumnType.INTEGER: IntegralPolicy(
            ColumnType.INTEGER,
            "INTEGER",
            aliases=frozenset({"int", "int4"}),
            min_value=-(2**31),
            max_value=2**31 - 1,
        ),
        ColumnType.LONG: IntegralPolicy(ColumnType.LONG, "BIGINT", aliases=frozenset({"int8"})),
        ColumnType.FLOAT: RealPolicy(ColumnType.FLOAT, "REAL", aliases=frozenset({"float4"})),
        ColumnType.DOUBLE: RealPolicy(
            ColumnType.DOUBLE, "DOUBLE PRECISION", aliases=frozenset({"double", "float8", "float"})
        ),
        ColumnType.DECIMAL: DecimalPolicy(
            ColumnType.DECIMAL,
            "DECIMAL({precision},{scale})",
            aliases=frozenset({"numeric", "number"}),
            default_precision=18,
            default_scale=2,
        ),
        ColumnType.DATE: DatePolicy(ColumnType.DATE, "DATE"),
        ColumnType.TIMESTAMP: TimestampPolicy(ColumnType.TIMESTAMP, "TIMESTAMP", aliases=_TIMESTAMP_ALIASES),
        ColumnType.TIMESTAMP_UTC: TimestampPolicy(
            ColumnType.TIMESTAMP_UTC, "TIMESTAMP", aliases=_TIMESTAMP_ALIASES, utc=True
        ),
        ColumnType.BLOB: BlobPolicy(
            ColumnType.BLOB,
            "BLOB",
            aliases=frozenset({"bytea", "varbinary", "longblob", "mediumblob", "image", "binary large object"}),
            backfill_literal="X''",
        ),
    }
)


def override(column_type: ColumnType, **changes: Any) -> TypePolicy:
    """Copy the default policy for ``column_type`` with some fields replaced."""
    return replace(DEFAULT_TYPE_POLICIES[column_type], **changes)


def build_type_policies(
    overrides: Mapping[ColumnType, TypePolicy] | None = None,
    *,
    dialect: str | None = None,
    base: Mapping[ColumnType, TypePolicy] = DEFAULT_TYPE_POLICIES,
) -> Mapping[ColumnType, TypePolicy]:
    """Merge overrides onto ``base`` and freeze the result.

    Raises:
        MissingPolicyError: if any ColumnType is left without a policy, or
            an override is registered under the wrong type.
    """
    table = dict(base)
    for column_type, policy in (overrides or {}).items():
        if policy.column_type is not column_type:
            raise MissingPolicyError("type", column_type, dialect).with_context(
                registered_as=policy.column_type.name
            )
        table[column_type] = policy
    for column_type in ColumnType:
        if column_type not in table:
            raise MissingPolicyError("type", column_type, dialect)
    return MappingProxyType(table)


__all__ = [
    "TRUE_WORDS",
    "FALSE_WORDS",
    "TIMESTAMP_FORMAT",
    "normalize_type_name",
    "quote_text",
    "LobStream",
    "TypePolicy",
    "TextPolicy",
    "EnumPolicy",
    "ClobPolicy",
    "BooleanPolicy",
    "IntegralPolicy",
    "RealPolicy",
    "DecimalPolicy",
    "DatePolicy",
    "TimestampPolicy",
    "BlobPolicy",
    "DEFAULT_TYPE_POLICIES",
    "override",
    "build_type_policies",
]
