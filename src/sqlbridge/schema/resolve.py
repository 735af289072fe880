"""
One-shot resolution of logical schemas against a dialect.

Rendering a statement needs, per field, the dialect's preferred column
name, the effective TypePolicy after the overflow swap, the rendered
type declaration and the rendered default literal. Computing these on
every statement is wasteful and the inputs never change for an entity's
lifetime, so ``SchemaResolver`` computes them once into frozen
``ResolvedField``/``ResolvedEntity`` objects.

Concurrency:
    Query-building threads may hit the resolver concurrently at startup.
    Lookups read the cache without locking; misses take a single lock,
    re-check, build and publish. Published objects are immutable.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from sqlbridge.core.enums import ColumnType
from sqlbridge.core.errors import SchemaResolutionError
from sqlbridge.core.logging import get_logger
from sqlbridge.policies.types import TypePolicy
from sqlbridge.schema.models import EntitySchemaInfo, FieldSchemaInfo

if TYPE_CHECKING:
    from sqlbridge.dialect.base import Dialect

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedField:
    """A field with every dialect-dependent rendering decided."""

    field: FieldSchemaInfo
    column: str
    column_type: ColumnType
    policy: TypePolicy
    declaration: str
    length: int
    precision: int
    scale: int
    effective_default: str | None
    default_literal: str | None

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def nullable(self) -> bool:
        return self.field.nullable

    @property
    def primary_key(self) -> bool:
        return self.field.primary_key

    @property
    def auto_increment(self) -> bool:
        return bool(self.field.auto_increment)

    @property
    def list_only(self) -> bool:
        return self.field.list_only

    @property
    def enum_class(self) -> type[Enum] | None:
        return self.field.enum_class


@dataclass(frozen=True)
class ResolvedEntity:
    entity: EntitySchemaInfo
    table: str
    bare_table: str
    view: str | None
    fields: tuple[ResolvedField, ...]
    by_name: Mapping[str, ResolvedField]

    def field(self, name: str) -> ResolvedField:
        try:
            return self.by_name[name]
        except KeyError:
            raise SchemaResolutionError(f"Entity {self.entity.table!r} has no field {name!r}") from None

    @property
    def primary_key(self) -> ResolvedField | None:
        return next((f for f in self.fields if f.primary_key), None)

    def table_fields(self) -> tuple[ResolvedField, ...]:
        return tuple(f for f in self.fields if not f.list_only)

    def view_fields(self) -> tuple[ResolvedField, ...]:
        """Fields readable through the view: stored columns plus computed ones."""
        return tuple(f for f in self.fields if not f.list_only or f.field.expression)

    def view_columns(self) -> list[str]:
        """Select-list expressions that define the view."""
        return [
            f"{f.field.expression} AS {f.column}" if f.list_only else f.column for f in self.view_fields()
        ]


class SchemaResolver:
    """Builds and caches resolved schemas for one dialect."""

    def __init__(self, dialect: Dialect, *, default_string_length: int = 255):
        self.dialect = dialect
        self.default_string_length = default_string_length
        self._lock = threading.RLock()
        self._entities: dict[EntitySchemaInfo, ResolvedEntity] = {}
        self._fields: dict[FieldSchemaInfo, ResolvedField] = {}

    def resolve(self, entity: EntitySchemaInfo) -> ResolvedEntity:
        resolved = self._entities.get(entity)
        if resolved is not None:
            return resolved
        with self._lock:
            resolved = self._entities.get(entity)
            if resolved is None:
                resolved = self._build_entity(entity)
                self._entities[entity] = resolved
        return resolved

    def resolve_field(self, field: FieldSchemaInfo) -> ResolvedField:
        resolved = self._fields.get(field)
        if resolved is not None:
            return resolved
        with self._lock:
            resolved = self._fields.get(field)
            if resolved is None:
                resolved = self._build_field(field)
                self._fields[field] = resolved
        return resolved

    # -- Builders ----------------------------------------------------------

    def _build_entity(self, entity: EntitySchemaInfo) -> ResolvedEntity:
        identifiers = self.dialect.identifiers
        fields = tuple(self.resolve_field(f) for f in entity.fields)
        resolved = ResolvedEntity(
            entity=entity,
            table=identifiers.qualified(entity.schema, entity.table),
            bare_table=identifiers.fold(entity.table),
            view=identifiers.qualified(entity.schema, entity.view) if entity.view else None,
            fields=fields,
            by_name=MappingProxyType({f.name: f for f in fields}),
        )
        logger.debug(
            "entity_resolved",
            dialect=self.dialect.name,
            table=resolved.table,
            fields=len(fields),
        )
        return resolved

    def _build_field(self, field: FieldSchemaInfo) -> ResolvedField:
        field.resolve()
        length = field.length
        if not length and field.column_type is ColumnType.STRING:
            length = self.default_string_length
        policy = self.dialect.type_policy(field.column_type, length)
        length = length or policy.default_length
        precision = field.precision or policy.default_precision
        scale = field.scale if field.precision else policy.default_scale

        effective_default = self._effective_default(field, policy)
        default_literal = None
        if effective_default is not None:
            default_literal = policy.render_default_literal(effective_default, field.enum_class)

        return ResolvedField(
            field=field,
            column=self.dialect.identifiers.preferred(field.column),
            column_type=policy.column_type,
            policy=policy,
            declaration=policy.render_type(length, precision, scale),
            length=length,
            precision=precision,
            scale=scale,
            effective_default=effective_default,
            default_literal=default_literal,
        )

    @staticmethod
    def _effective_default(field: FieldSchemaInfo, policy: TypePolicy) -> str | None:
        """Configured default, or the type's zero value for NOT NULL columns without one."""
        if field.has_default:
            return field.default
        if field.nullable or field.primary_key or field.list_only or policy.column_type.is_lob:
            return None
        return policy.alt_default


__all__ = ["ResolvedField", "ResolvedEntity", "SchemaResolver"]
