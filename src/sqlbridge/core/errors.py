"""
Structured error types for sqlbridge.

Manifesto:
    Everything sqlbridge produces is a deterministic function of
    (schema, dialect). A failure therefore never goes away on retry; the
    caller has to change its input or its configuration. The hierarchy
    exists so the ORM layer above can tell *which* input to change:

    - **ConfigError:** a dialect is incomplete or asked for something it
      cannot express (missing policy, OFFSET on a TOP-only engine,
      unknown dialect name, unsupported time bucket)
    - **SchemaConflictError:** an ALTER the dialect cannot perform safely;
      always carries the table and column
    - **DataError:** a default literal that cannot be parsed or rendered
      for its column type, or a stored enum code with no matching member

Architecture:
    ::

        SqlBridgeError
        ├── ConfigError                  (CONFIG)
        │   ├── MissingPolicyError
        │   ├── UnknownDialectError
        │   ├── UnsupportedPaginationError
        │   ├── UnsupportedTimeBucketError
        │   └── SchemaResolutionError
        ├── SchemaConflictError          (SCHEMA)
        │   ├── IncompatibleTypeChangeError
        │   └── PrimaryKeyAlterationError
        └── DataError                    (DATA)
            ├── InvalidDefaultError
            └── UnknownEnumValueError

Guardrails:
    ❌ DON'T: Raise bare ValueError from dialect or planner code
    ✅ DO: Raise the SqlBridgeError subclass matching the taxonomy

    ❌ DON'T: Mark any of these retryable
    ✅ DO: Let the caller decide whether a DDL failure aborts its migration

    ❌ DON'T: Swallow the original exception when wrapping a parse failure
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, sqlbridge

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories for classification and routing.

    - **CONFIG:** dialect/registry/policy configuration problems
    - **SCHEMA:** alterations the target engine cannot express
    - **DATA:** literal values that do not fit their column type
    - **VALIDATION:** malformed schema descriptions
    - **INTERNAL / UNKNOWN:** everything else
    """

    CONFIG = "CONFIG"
    SCHEMA = "SCHEMA"
    DATA = "DATA"
    VALIDATION = "VALIDATION"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Where in the schema or dialect an error arose.

    ``dialect``, ``table``, ``column``, ``column_type`` and ``operation``
    are the fields sqlbridge fills itself; anything else a caller adds
    through ``with_context`` lands in ``metadata``.
    """

    dialect: str | None = None
    table: str | None = None
    column: str | None = None
    column_type: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Set fields and metadata, flattened into structlog event fields."""
        flat = {name: getattr(self, name) for name in _CONTEXT_FIELDS}
        flat = {name: value for name, value in flat.items() if value is not None}
        return {**flat, **self.metadata}


_CONTEXT_FIELDS = tuple(f.name for f in fields(ErrorContext) if f.name != "metadata")


class SqlBridgeError(Exception):
    """
    Base exception for all sqlbridge errors.

    Carries a category, an ErrorContext and an optional chained cause.
    ``retryable`` exists for callers that route errors generically; it is
    False for every sqlbridge error.

    Examples:
        >>> error = SqlBridgeError("boom")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(table="ACCOUNT").context.table
        'ACCOUNT'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def retryable(self) -> bool:
        return self.default_retryable

    def with_context(self, **kwargs: Any) -> SqlBridgeError:
        """Attach context and return self, so it chains onto ``raise``.

        Known ErrorContext fields are set directly; other keys go to metadata::

            raise MissingPolicyError("type", ColumnType.BLOB).with_context(dialect="db2")
        """
        for key, value in kwargs.items():
            if key in _CONTEXT_FIELDS:
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for log events and API payloads."""
        payload: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            payload["context"] = context
        if self.cause is not None:
            payload["cause"] = str(self.cause)
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SqlBridgeError):
    """A dialect, registry or schema declaration that must be fixed before use."""

    default_category = ErrorCategory.CONFIG


class MissingPolicyError(ConfigError):
    """A dialect policy table lacks an entry for a column type or operator."""

    def __init__(self, kind: str, key: Any, dialect: str | None = None):
        self.kind = kind
        self.key = key
        name = getattr(key, "name", key)
        super().__init__(
            f"No {kind} policy registered for {name}",
            context=ErrorContext(dialect=dialect, metadata={"policy_kind": kind}),
        )


class UnknownDialectError(ConfigError):
    """Requested dialect name is not in the registry."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Unsupported dialect: {name!r}. Supported: {', '.join(sorted(available))}",
            context=ErrorContext(dialect=name),
        )


class UnsupportedPaginationError(ConfigError):
    """Offset/limit combination the dialect's pagination mechanism cannot express."""

    def __init__(self, dialect: str, offset: int, limit: int):
        self.offset = offset
        self.limit = limit
        super().__init__(
            f"Dialect {dialect!r} does not support result offset (offset={offset}, limit={limit})",
            context=ErrorContext(dialect=dialect, operation="paginate"),
        )


class UnsupportedTimeBucketError(ConfigError):
    """Time bucket unit the dialect cannot truncate or label."""

    def __init__(self, dialect: str, unit: Any):
        self.unit = unit
        super().__init__(
            f"Dialect {dialect!r} cannot render time bucket {getattr(unit, 'value', unit)!r}",
            context=ErrorContext(dialect=dialect, operation="time_bucket"),
        )


class SchemaResolutionError(ConfigError):
    """Field or entity schema used inconsistently during the resolve phase."""

    pass


# =============================================================================
# SCHEMA CONFLICT ERRORS
# =============================================================================


class SchemaConflictError(SqlBridgeError):
    """
    Alteration the dialect cannot express safely.

    Carries the offending table and column on the instance and in context.
    """

    default_category = ErrorCategory.SCHEMA

    def __init__(self, message: str, *, table: str, column: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.table = table
        self.column = column
        self.context.table = table
        self.context.column = column


class IncompatibleTypeChangeError(SchemaConflictError):
    """Observed column type cannot be converted in place to the desired type."""

    pass


class PrimaryKeyAlterationError(SchemaConflictError):
    """Primary-key columns are never altered in place."""

    pass


# =============================================================================
# DATA ERRORS
# =============================================================================


class DataError(SqlBridgeError):
    """Value that cannot be rendered for its column type."""

    default_category = ErrorCategory.DATA


class InvalidDefaultError(DataError):
    """Default literal that cannot be parsed for its column type."""

    def __init__(self, column_type: Any, value: Any, cause: Exception | None = None):
        self.column_type = column_type
        self.value = value
        type_name = getattr(column_type, "name", column_type)
        super().__init__(
            f"Invalid default {value!r} for column type {type_name}",
            context=ErrorContext(column_type=str(type_name)),
            cause=cause,
        )


class UnknownEnumValueError(DataError):
    """Stored enum code that matches no member's value or name."""

    def __init__(self, enum_class: Any, value: Any):
        self.enum_class = enum_class
        self.value = value
        class_name = getattr(enum_class, "__name__", enum_class)
        super().__init__(
            f"Stored value {value!r} matches no member of {class_name}",
            context=ErrorContext(column_type="ENUM_CONSTANT", operation="extract"),
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable. sqlbridge errors never are."""
    if isinstance(error, SqlBridgeError):
        return error.retryable
    return False


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SqlBridgeError):
        return error.category
    if isinstance(error, (ValueError, TypeError)):
        return ErrorCategory.VALIDATION
    if isinstance(error, (KeyError, LookupError)):
        return ErrorCategory.CONFIG
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SqlBridgeError",
    "ConfigError",
    "MissingPolicyError",
    "UnknownDialectError",
    "UnsupportedPaginationError",
    "UnsupportedTimeBucketError",
    "SchemaResolutionError",
    "SchemaConflictError",
    "IncompatibleTypeChangeError",
    "PrimaryKeyAlterationError",
    "DataError",
    "InvalidDefaultError",
    "UnknownEnumValueError",
    "is_retryable",
    "categorize_error",
]
