"""
Logical schema descriptions consumed by the engine.

The ORM layer above decides *what* an entity needs and hands sqlbridge
fully populated ``EntitySchemaInfo`` objects. These are built once when
an entity is registered and then reused for every statement generated
for it, so they are frozen dataclasses. The single exception is the
one-shot ``FieldSchemaInfo.resolve`` step, which may rewrite the column
type or enum class exactly once before the field is finalized.

``ColumnInfo`` is the other direction: what the database reports back
about an existing column. ``ColumnAlterInfo`` is the diff between the two.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from sqlbridge.core.enums import ColumnType
from sqlbridge.core.errors import SchemaResolutionError

_resolve_lock = threading.Lock()

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def sql_name(name: str) -> str:
    """Derive the native column/table name for a logical name.

    >>> sql_name("createdOn")
    'CREATED_ON'
    >>> sql_name("id")
    'ID'
    """
    return _CAMEL_BOUNDARY.sub("_", name).upper()


@dataclass(frozen=True)
class ForeignKeyRef:
    """Target of a foreign key: native table and column names."""

    table: str
    column: str = "ID"


@dataclass(frozen=True, eq=False)
class FieldSchemaInfo:
    """
    Logical column description.

    ``column`` is the preferred native column name; it defaults to the
    upper snake-case form of ``name``. ``default`` is a language-neutral
    string form ("0", "true", "2024-01-31", "PENDING") rendered into a
    dialect literal by the column type's TypePolicy.

    List-only fields are computed (``expression``) and only exist on the
    entity's view; they never appear in table DDL or DML writes.
    """

    name: str
    column_type: ColumnType
    column: str = ""
    length: int = 0
    precision: int = 0
    scale: int = 0
    nullable: bool = True
    default: str | None = None
    primary_key: bool = False
    auto_increment: bool | None = None
    foreign_key: ForeignKeyRef | None = None
    list_only: bool = False
    expression: str | None = None
    enum_class: type[Enum] | None = None
    _resolved: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.column:
            object.__setattr__(self, "column", sql_name(self.name))
        if self.primary_key:
            if self.list_only:
                raise SchemaResolutionError(f"Primary key field {self.name!r} cannot be list-only")
            object.__setattr__(self, "nullable", False)
        if self.auto_increment is None:
            object.__setattr__(self, "auto_increment", self.primary_key and self.column_type.is_integral)
        if self.length < 0 or self.precision < 0 or self.scale < 0:
            raise SchemaResolutionError(f"Field {self.name!r} has a negative length/precision/scale")

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def has_default(self) -> bool:
        return self.default is not None and self.default.strip() != ""

    def resolve(self, column_type: ColumnType | None = None, enum_class: type[Enum] | None = None) -> bool:
        """Finalize the field, optionally rewriting its type or enum class.

        Runs at most once per field. Returns True for the call that
        performed the resolution and False for every later call. Passing
        a rewrite after the field is already resolved is an error, since
        other threads may have rendered statements from the old values.
        """
        with _resolve_lock:
            if self._resolved:
                if column_type is not None and column_type is not self.column_type:
                    raise SchemaResolutionError(f"Field {self.name!r} is already resolved as {self.column_type.name}")
                if enum_class is not None and enum_class is not self.enum_class:
                    raise SchemaResolutionError(f"Field {self.name!r} is already resolved")
                return False
            if column_type is not None:
                object.__setattr__(self, "column_type", column_type)
            if enum_class is not None:
                object.__setattr__(self, "enum_class", enum_class)
            if self.column_type is ColumnType.ENUM_CONSTANT and self.enum_class is not None:
                if not issubclass(self.enum_class, Enum):
                    raise SchemaResolutionError(f"Field {self.name!r} enum class is not an Enum")
            object.__setattr__(self, "_resolved", True)
            return True


@dataclass(frozen=True)
class IndexSchemaInfo:
    name: str
    fields: tuple[str, ...]
    unique: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class UniqueConstraintSchemaInfo:
    name: str
    fields: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class CheckConstraintSchemaInfo:
    """Allowed-values check on one field, typically an enum column."""

    name: str
    field: str
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True, eq=False)
class EntitySchemaInfo:
    """
    Table (and optional view) description: ordered fields plus constraints.

    Lists passed for the collection attributes are frozen into tuples.
    """

    table: str
    fields: tuple[FieldSchemaInfo, ...]
    schema: str | None = None
    view: str | None = None
    indexes: tuple[IndexSchemaInfo, ...] = ()
    unique_constraints: tuple[UniqueConstraintSchemaInfo, ...] = ()
    check_constraints: tuple[CheckConstraintSchemaInfo, ...] = ()

    def __post_init__(self) -> None:
        for attr in ("fields", "indexes", "unique_constraints", "check_constraints"):
            object.__setattr__(self, attr, tuple(getattr(self, attr)))
        names = [f.name for f in self.fields]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise SchemaResolutionError(f"Entity {self.table!r} declares duplicate fields: {sorted(duplicates)}")
        if sum(1 for f in self.fields if f.primary_key) > 1:
            raise SchemaResolutionError(f"Entity {self.table!r} declares more than one primary key")

        known = set(names)
        referenced = [n for ix in self.indexes for n in ix.fields]
        referenced += [n for uc in self.unique_constraints for n in uc.fields]
        referenced += [cc.field for cc in self.check_constraints]
        unknown = sorted(set(referenced) - known)
        if unknown:
            raise SchemaResolutionError(f"Entity {self.table!r} constraints reference unknown fields: {unknown}")

    def field(self, name: str) -> FieldSchemaInfo:
        for f in self.fields:
            if f.name == name:
                return f
        raise SchemaResolutionError(f"Entity {self.table!r} has no field {name!r}")

    @property
    def primary_key(self) -> FieldSchemaInfo | None:
        return next((f for f in self.fields if f.primary_key), None)

    def table_fields(self) -> Iterator[FieldSchemaInfo]:
        """Fields physically stored in the table (excludes list-only fields)."""
        return (f for f in self.fields if not f.list_only)


@dataclass(frozen=True)
class ColumnInfo:
    """
    Native column as reported by the database catalog.

    ``size`` is the character length for text types and the precision for
    numeric types when the driver reports only one figure. ``precision``
    wins when both are known. SQL Server reports ``-1`` for ``(MAX)``
    text and binary columns. ``default_constraint`` names the SQL Server
    default constraint bound to the column, when there is one.
    """

    name: str
    type_name: str
    size: int = 0
    precision: int = 0
    scale: int = 0
    nullable: bool = True
    default: str | None = None
    default_constraint: str | None = None

    @property
    def effective_precision(self) -> int:
        return self.precision or self.size


@dataclass(frozen=True)
class ColumnAlterInfo:
    """Three independent facets of difference between observed and desired columns."""

    type_changed: bool = False
    default_changed: bool = False
    nullable_changed: bool = False

    @property
    def altered(self) -> bool:
        return self.type_changed or self.default_changed or self.nullable_changed


__all__ = [
    "sql_name",
    "ForeignKeyRef",
    "FieldSchemaInfo",
    "IndexSchemaInfo",
    "UniqueConstraintSchemaInfo",
    "CheckConstraintSchemaInfo",
    "EntitySchemaInfo",
    "ColumnInfo",
    "ColumnAlterInfo",
]
