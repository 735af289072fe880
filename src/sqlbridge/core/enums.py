"""
Shared vocabulary enums for sqlbridge.

Every other layer (policies, dialects, planner, emitter) speaks in these
types, so they live at the bottom of the dependency order and import
nothing from the rest of the package.

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from enum import Enum


class Alignment(str, Enum):
    """Default horizontal alignment hint for rendered values."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ColumnType(str, Enum):
    """
    Abstract, database-agnostic column type.

    Each member carries an alignment hint and a "convertible-from" set:
    the column types whose stored values can be migrated into this type
    by an in-place ALTER. The relation is transitively closed and acyclic
    (see ``_CONVERTIBLE_FROM``).
    """

    # Text
    CHARACTER = "character"
    STRING = "string"
    CLOB = "clob"
    ENUM_CONSTANT = "enum_constant"

    # Logical
    BOOLEAN = "boolean"

    # Integral
    SHORT = "short"
    INTEGER = "integer"
    LONG = "long"

    # Real
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"

    # Temporal
    DATE = "date"
    TIMESTAMP = "timestamp"
    TIMESTAMP_UTC = "timestamp_utc"

    # Binary
    BLOB = "blob"

    @property
    def alignment(self) -> Alignment:
        return _ALIGNMENT.get(self, Alignment.LEFT)

    @property
    def convertible_from(self) -> frozenset[ColumnType]:
        return _CONVERTIBLE_FROM[self]

    def accepts(self, other: ColumnType) -> bool:
        """True if values of ``other`` can be converted into this type."""
        return other is self or other in _CONVERTIBLE_FROM[self]

    @property
    def is_integral(self) -> bool:
        return self in (ColumnType.SHORT, ColumnType.INTEGER, ColumnType.LONG)

    @property
    def is_numeric(self) -> bool:
        return self.is_integral or self in (ColumnType.FLOAT, ColumnType.DOUBLE, ColumnType.DECIMAL)

    @property
    def is_temporal(self) -> bool:
        return self in (ColumnType.DATE, ColumnType.TIMESTAMP, ColumnType.TIMESTAMP_UTC)

    @property
    def is_lob(self) -> bool:
        return self in (ColumnType.BLOB, ColumnType.CLOB)

    @property
    def is_text(self) -> bool:
        return self in (ColumnType.CHARACTER, ColumnType.STRING, ColumnType.CLOB, ColumnType.ENUM_CONSTANT)


_ALIGNMENT: dict[ColumnType, Alignment] = {
    ColumnType.BOOLEAN: Alignment.CENTER,
    ColumnType.DATE: Alignment.CENTER,
    ColumnType.TIMESTAMP: Alignment.CENTER,
    ColumnType.TIMESTAMP_UTC: Alignment.CENTER,
    ColumnType.SHORT: Alignment.RIGHT,
    ColumnType.INTEGER: Alignment.RIGHT,
    ColumnType.LONG: Alignment.RIGHT,
    ColumnType.FLOAT: Alignment.RIGHT,
    ColumnType.DOUBLE: Alignment.RIGHT,
    ColumnType.DECIMAL: Alignment.RIGHT,
}

_C = ColumnType
_TEXTUAL_SOURCES = frozenset(
    {
        _C.CHARACTER,
        _C.BOOLEAN,
        _C.SHORT,
        _C.INTEGER,
        _C.LONG,
        _C.FLOAT,
        _C.DOUBLE,
        _C.DECIMAL,
        _C.DATE,
        _C.TIMESTAMP,
        _C.TIMESTAMP_UTC,
        _C.ENUM_CONSTANT,
    }
)

# Must stay transitively closed and free of cycles.
_CONVERTIBLE_FROM: dict[ColumnType, frozenset[ColumnType]] = {
    _C.BOOLEAN: frozenset(),
    _C.CHARACTER: frozenset({_C.BOOLEAN}),
    _C.ENUM_CONSTANT: frozenset({_C.CHARACTER, _C.BOOLEAN}),
    _C.STRING: _TEXTUAL_SOURCES,
    _C.CLOB: _TEXTUAL_SOURCES | {_C.STRING},
    _C.SHORT: frozenset(),
    _C.INTEGER: frozenset({_C.SHORT}),
    _C.LONG: frozenset({_C.SHORT, _C.INTEGER}),
    _C.FLOAT: frozenset({_C.SHORT, _C.INTEGER}),
    _C.DOUBLE: frozenset({_C.SHORT, _C.INTEGER, _C.LONG, _C.FLOAT}),
    _C.DECIMAL: frozenset({_C.SHORT, _C.INTEGER, _C.LONG, _C.FLOAT, _C.DOUBLE}),
    _C.DATE: frozenset(),
    _C.TIMESTAMP: frozenset({_C.DATE}),
    _C.TIMESTAMP_UTC: frozenset({_C.DATE, _C.TIMESTAMP}),
    _C.BLOB: frozenset(),
}
del _C


class RestrictionType(str, Enum):
    """
    Comparison and logical operators of a parsed criteria tree.

    Every member maps to exactly one CriteriaPolicy in each dialect.
    """

    # Single operand
    EQUALS = "eq"
    NOT_EQUALS = "neq"
    LESS_THAN = "lt"
    LESS_OR_EQUAL = "lte"
    GREATER = "gt"
    GREATER_OR_EQUAL = "gte"

    # Pattern
    LIKE = "like"
    NOT_LIKE = "not_like"
    BEGINS_WITH = "begins_with"
    NOT_BEGIN_WITH = "not_begin_with"
    ENDS_WITH = "ends_with"
    NOT_END_WITH = "not_end_with"

    # Range / collection
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"
    IN = "in"
    NOT_IN = "not_in"

    # Zero operand
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    # Compound
    AND = "and"
    OR = "or"

    @property
    def is_compound(self) -> bool:
        return self in (RestrictionType.AND, RestrictionType.OR)

    @property
    def is_zero_operand(self) -> bool:
        return self in (RestrictionType.IS_NULL, RestrictionType.IS_NOT_NULL)

    @property
    def is_range(self) -> bool:
        return self in (RestrictionType.BETWEEN, RestrictionType.NOT_BETWEEN)

    @property
    def is_collection(self) -> bool:
        return self in (RestrictionType.IN, RestrictionType.NOT_IN)


class TimeBucket(str, Enum):
    """Truncation units for time-series grouping."""

    HOUR = "hour"
    DAY = "day"
    DAY_OF_WEEK = "day_of_week"
    DAY_OF_MONTH = "day_of_month"
    DAY_OF_YEAR = "day_of_year"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class PlaceholderStyle(str, Enum):
    """DB-API ``paramstyle`` values the dialects emit."""

    QMARK = "qmark"  # ?
    FORMAT = "format"  # %s
    NUMERIC = "numeric"  # :1


__all__ = [
    "Alignment",
    "ColumnType",
    "PlaceholderStyle",
    "RestrictionType",
    "TimeBucket",
]
