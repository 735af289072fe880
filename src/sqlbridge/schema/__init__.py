"""Logical schema descriptions and their one-shot resolution against a dialect."""

from .models import (
    CheckConstraintSchemaInfo,
    ColumnAlterInfo,
    ColumnInfo,
    EntitySchemaInfo,
    FieldSchemaInfo,
    ForeignKeyRef,
    IndexSchemaInfo,
    UniqueConstraintSchemaInfo,
    sql_name,
)
from .resolve import ResolvedEntity, ResolvedField, SchemaResolver

__all__ = [
    "CheckConstraintSchemaInfo",
    "ColumnAlterInfo",
    "ColumnInfo",
    "EntitySchemaInfo",
    "FieldSchemaInfo",
    "ForeignKeyRef",
    "IndexSchemaInfo",
    "UniqueConstraintSchemaInfo",
    "sql_name",
    "ResolvedEntity",
    "ResolvedField",
    "SchemaResolver",
]
