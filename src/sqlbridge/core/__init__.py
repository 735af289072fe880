"""Core primitives shared by every sqlbridge layer: vocabulary enums, errors, logging, settings."""

from .enums import Alignment, ColumnType, PlaceholderStyle, RestrictionType, TimeBucket
from .errors import (
    ConfigError,
    DataError,
    ErrorCategory,
    ErrorContext,
    IncompatibleTypeChangeError,
    InvalidDefaultError,
    UnknownEnumValueError,
    MissingPolicyError,
    PrimaryKeyAlterationError,
    SchemaConflictError,
    SchemaResolutionError,
    SqlBridgeError,
    UnknownDialectError,
    UnsupportedPaginationError,
    UnsupportedTimeBucketError,
)

__all__ = [
    "Alignment",
    "ColumnType",
    "PlaceholderStyle",
    "RestrictionType",
    "TimeBucket",
    "ConfigError",
    "DataError",
    "ErrorCategory",
    "ErrorContext",
    "IncompatibleTypeChangeError",
    "InvalidDefaultError",
    "UnknownEnumValueError",
    "MissingPolicyError",
    "PrimaryKeyAlterationError",
    "SchemaConflictError",
    "SchemaResolutionError",
    "SqlBridgeError",
    "UnknownDialectError",
    "UnsupportedPaginationError",
    "UnsupportedTimeBucketError",
]
