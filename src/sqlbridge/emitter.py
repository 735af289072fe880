"""
DDL/DML emitter: the facade that turns entity schemas into statements.

Manifesto:
    Callers describe tables once (``EntitySchemaInfo``) and ask for
    statements by intent: create this table, add that column, page
    through these rows. The emitter resolves the entity against its
    dialect, composes the statement from the dialect's strategies and
    returns plain SQL text (DDL) or a ``SqlStatement`` with binding and
    extraction plans (DML). It never executes anything.

Architecture:
    ::

        Emitter(dialect)
          ├── SchemaResolver ........ entity -> ResolvedEntity (cached)
          ├── SchemaAlterationPlanner alter_column / update_table_schema
          ├── DDL ................... create/drop table, columns, indexes,
          │                           unique/check/foreign-key constraints, views
          └── DML ................... select (3-stage pagination), count,
                                      insert, update, delete, find_by_pk

        Placeholders are written as internal markers while a statement is
        built and replaced at the end, so "format"-style engines can have
        literal ``%`` escaped without touching the placeholders.

Examples:
    >>> emitter = Emitter("postgresql")
    >>> emitter.create_table(ACCOUNT)[0]
    'CREATE TABLE account (id BIGINT GENERATED BY DEFAULT AS IDENTITY ...'
    >>> stmt = emitter.build_paginated_select(ACCOUNT, offset=20, limit=10)
    >>> stmt.sql.endswith("LIMIT 10 OFFSET 20")
    True

Guardrails:
    ❌ DON'T: Splice values into SQL text
    ✅ DO: Bind through the statement's ``parameters`` plan

    ❌ DON'T: Emit unique constraints again on engines that inlined them
    ✅ DO: Check the dialect's capability flags

Tags:
    ddl, dml, facade, pagination, sqlbridge

Doc-Types:
    - API Reference
    - Usage Guide
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Sequence

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, RestrictionType, TimeBucket
from sqlbridge.core.errors import SchemaResolutionError
from sqlbridge.core.logging import get_logger
from sqlbridge.core.settings import SqlBridgeSettings, get_settings
from sqlbridge.dialect import Dialect, get_dialect
from sqlbridge.dialect.timebuckets import TimeBucketExpression
from sqlbridge.planner import SchemaAlterationPlanner
from sqlbridge.policies.criteria import Restriction
from sqlbridge.policies.types import TypePolicy
from sqlbridge.schema.models import (
    CheckConstraintSchemaInfo,
    ColumnInfo,
    EntitySchemaInfo,
    IndexSchemaInfo,
    UniqueConstraintSchemaInfo,
)
from sqlbridge.schema.resolve import ResolvedEntity, ResolvedField, SchemaResolver
from sqlbridge.statements import ResultColumn, SqlParameter, SqlStatement

logger = get_logger(__name__)

_MARKER = re.compile("\x00(\\d+)\x00")


class _Binder:
    """Collects parameters in textual order and hands out placeholder markers."""

    def __init__(self) -> None:
        self.parameters: list[SqlParameter] = []

    def bind(
        self,
        field: ResolvedField,
        value: Any,
        column_type: ColumnType | None = None,
        policy: TypePolicy | None = None,
    ) -> str:
        index = len(self.parameters) + 1
        self.parameters.append(
            SqlParameter(
                index=index,
                column_type=column_type or field.column_type,
                value=value,
                policy=policy or field.policy,
                enum_class=field.enum_class,
            )
        )
        return f"\x00{index}\x00"


class Emitter:
    """Statement factory for one dialect."""

    def __init__(
        self,
        dialect: Dialect | str,
        *,
        resolver: SchemaResolver | None = None,
        pretty: bool = False,
        line_separator: str = "\n",
        query_limit: int = 0,
        utc_offset: int = 0,
        default_string_length: int = 255,
    ):
        self.dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect
        self.resolver = resolver or SchemaResolver(self.dialect, default_string_length=default_string_length)
        self.planner = SchemaAlterationPlanner(self.dialect, self.resolver)
        self.pretty = pretty
        self.line_separator = line_separator
        self.query_limit = query_limit
        self.utc_offset = utc_offset

    @classmethod
    def from_settings(cls, settings: SqlBridgeSettings | None = None) -> Emitter:
        """Build an emitter from ``SQLBRIDGE_*`` settings."""
        settings = settings or get_settings()
        logger.debug("emitter_from_settings", dialect=settings.dialect, pretty=settings.pretty_print)
        return cls(
            settings.dialect,
            pretty=settings.pretty_print,
            line_separator=settings.line_separator,
            query_limit=settings.query_limit,
            utc_offset=settings.utc_offset_minutes,
            default_string_length=settings.default_string_length,
        )

    @property
    def sep(self) -> str:
        return self.line_separator if self.pretty else " "

    def resolve(self, entity: EntitySchemaInfo | ResolvedEntity) -> ResolvedEntity:
        if isinstance(entity, ResolvedEntity):
            return entity
        return self.resolver.resolve(entity)

    # =========================================================================
    # TABLES
    # =========================================================================

    def create_table(self, entity: EntitySchemaInfo) -> list[str]:
        """CREATE TABLE plus everything the table needs right after it.

        Unique constraints and indexes go inside the CREATE TABLE when the
        dialect inlines them, and are not repeated afterwards.
        """
        resolved = self.resolve(entity)
        ddl = self.dialect.ddl
        definitions = [ddl.column_definition(resolved.bare_table, f) for f in resolved.table_fields()]

        inline_uniques = self.dialect.generates_unique_constraints_on_create_table
        inline_indexes = self.dialect.generates_indexes_on_create_table
        if inline_uniques:
            for uc in resolved.entity.unique_constraints:
                clause = ddl.inline_unique(self._unique_name(resolved, uc.name), self._columns(resolved, uc.fields))
                if clause:
                    definitions.append(clause)
        if inline_indexes:
            for index in resolved.entity.indexes:
                clause = ddl.inline_index(
                    self._index_name(resolved, index.name), self._columns(resolved, index.fields), index.unique
                )
                if clause:
                    definitions.append(clause)

        if self.pretty:
            inner = f",{self.line_separator}  ".join(definitions)
            create = f"CREATE TABLE {resolved.table} ({self.line_separator}  {inner}{self.line_separator})"
        else:
            create = f"CREATE TABLE {resolved.table} ({', '.join(definitions)})"

        statements = [create]
        pk = resolved.primary_key
        if pk is not None and pk.auto_increment:
            statements.extend(ddl.identity_statements(resolved.table, resolved.bare_table, pk))
        if not inline_uniques:
            statements.extend(self.create_unique_constraint(resolved, uc) for uc in resolved.entity.unique_constraints)
        if not inline_indexes:
            statements.extend(self.create_index(resolved, index) for index in resolved.entity.indexes)
        statements.extend(self.create_check_constraint(resolved, cc) for cc in resolved.entity.check_constraints)
        if resolved.view:
            statements.append(self.create_view(resolved))

        logger.info("create_table_emitted", dialect=self.dialect.name, table=resolved.table, statements=len(statements))
        return statements

    def drop_table(self, entity: EntitySchemaInfo) -> list[str]:
        resolved = self.resolve(entity)
        statements = []
        if resolved.view:
            statements.append(self.drop_view(resolved))
        statements.append(f"DROP TABLE {resolved.table}")
        pk = resolved.primary_key
        if pk is not None and pk.auto_increment:
            statements.extend(self.dialect.ddl.drop_identity_statements(resolved.bare_table, pk))
        return statements

    def rename_table(self, entity: EntitySchemaInfo, old_table: str) -> str:
        """Rename ``old_table`` to the entity's table name."""
        resolved = self.resolve(entity)
        old = self.dialect.identifiers.qualified(resolved.entity.schema, old_table)
        return self.dialect.ddl.rename_table(old, resolved.table, self.sep)

    # =========================================================================
    # COLUMNS
    # =========================================================================

    def add_column(self, entity: EntitySchemaInfo, field_name: str) -> str:
        resolved = self.resolve(entity)
        return self.dialect.ddl.add_column(resolved.table, resolved.bare_table, resolved.field(field_name), self.sep)

    def alter_column(self, entity: EntitySchemaInfo, observed: ColumnInfo, field_name: str) -> list[str]:
        return self.planner.plan_column(self.resolve(entity), observed, field_name, sep=self.sep)

    def update_table_schema(self, entity: EntitySchemaInfo, observed_columns: Sequence[ColumnInfo]) -> list[str]:
        return self.planner.plan_table(self.resolve(entity), observed_columns, sep=self.sep)

    def drop_column(self, entity: EntitySchemaInfo, column: str) -> str:
        resolved = self.resolve(entity)
        return self.dialect.ddl.drop_column(resolved.table, self.dialect.preferred_name(column), self.sep)

    def rename_column(self, entity: EntitySchemaInfo, old_column: str, field_name: str) -> str:
        resolved = self.resolve(entity)
        return self.dialect.ddl.rename_column(
            resolved.table, self.dialect.preferred_name(old_column), resolved.field(field_name), self.sep
        )

    # =========================================================================
    # INDEXES AND CONSTRAINTS
    # =========================================================================

    def create_index(self, entity: EntitySchemaInfo | ResolvedEntity, index: IndexSchemaInfo) -> str:
        resolved = self.resolve(entity)
        kind = "UNIQUE INDEX" if index.unique else "INDEX"
        columns = ", ".join(self._columns(resolved, index.fields))
        return f"CREATE {kind} {self._index_name(resolved, index.name)} ON {resolved.table} ({columns})"

    def drop_index(self, entity: EntitySchemaInfo, index: IndexSchemaInfo) -> str:
        resolved = self.resolve(entity)
        schema = resolved.entity.schema or self.dialect.identifiers.default_schema
        return self.dialect.ddl.drop_index(
            resolved.table,
            self.dialect.preferred_name(schema) if schema else None,
            self._index_name(resolved, index.name),
        )

    def create_unique_constraint(
        self, entity: EntitySchemaInfo | ResolvedEntity, constraint: UniqueConstraintSchemaInfo
    ) -> str:
        resolved = self.resolve(entity)
        columns = ", ".join(self._columns(resolved, constraint.fields))
        name = self._unique_name(resolved, constraint.name)
        return f"ALTER TABLE {resolved.table}{self.sep}ADD CONSTRAINT {name} UNIQUE ({columns})"

    def drop_unique_constraint(self, entity: EntitySchemaInfo, constraint: UniqueConstraintSchemaInfo) -> str:
        resolved = self.resolve(entity)
        return self.dialect.ddl.drop_unique(resolved.table, self._unique_name(resolved, constraint.name), self.sep)

    def create_check_constraint(
        self, entity: EntitySchemaInfo | ResolvedEntity, constraint: CheckConstraintSchemaInfo
    ) -> str:
        """CHECK (column IN (...)) over the allowed values, rendered as column literals."""
        resolved = self.resolve(entity)
        field = resolved.field(constraint.field)
        values = ", ".join(field.policy.render_default_literal(str(v), field.enum_class) for v in constraint.values)
        name = self._check_name(resolved, constraint.name)
        return f"ALTER TABLE {resolved.table}{self.sep}ADD CONSTRAINT {name} CHECK ({field.column} IN ({values}))"

    def drop_check_constraint(self, entity: EntitySchemaInfo, constraint: CheckConstraintSchemaInfo) -> str:
        resolved = self.resolve(entity)
        return self.dialect.ddl.drop_check(resolved.table, self._check_name(resolved, constraint.name), self.sep)

    def create_foreign_key(self, entity: EntitySchemaInfo, field_name: str) -> str:
        resolved = self.resolve(entity)
        field = self._foreign_key_field(resolved, field_name)
        ref = field.field.foreign_key
        identifiers = self.dialect.identifiers
        target = identifiers.qualified(resolved.entity.schema, ref.table)
        return (
            f"ALTER TABLE {resolved.table}{self.sep}ADD CONSTRAINT {self._foreign_key_name(resolved, field)}"
            f" FOREIGN KEY ({field.column}) REFERENCES {target} ({identifiers.preferred(ref.column)})"
        )

    def create_foreign_keys(self, entity: EntitySchemaInfo) -> list[str]:
        resolved = self.resolve(entity)
        return [self.create_foreign_key(entity, f.name) for f in resolved.table_fields() if f.field.foreign_key]

    def drop_foreign_key(self, entity: EntitySchemaInfo, field_name: str) -> str:
        resolved = self.resolve(entity)
        field = self._foreign_key_field(resolved, field_name)
        return self.dialect.ddl.drop_foreign_key(resolved.table, self._foreign_key_name(resolved, field), self.sep)

    # =========================================================================
    # VIEWS
    # =========================================================================

    def create_view(self, entity: EntitySchemaInfo | ResolvedEntity) -> str:
        resolved = self._with_view(entity)
        return self.dialect.ddl.create_view(resolved.view, resolved.table, resolved.view_columns(), self.sep)

    def drop_view(self, entity: EntitySchemaInfo | ResolvedEntity) -> str:
        return self.dialect.ddl.drop_view(self._with_view(entity).view)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def build_paginated_select(
        self,
        entity: EntitySchemaInfo,
        *,
        criteria: Restriction | None = None,
        order_by: Iterable[str] = (),
        offset: int = 0,
        limit: int | None = None,
        fields: Sequence[str] | None = None,
    ) -> SqlStatement:
        """SELECT with criteria, ordering and the dialect's pagination.

        ``limit`` of None falls back to the emitter's ``query_limit``; 0
        means unlimited. ``order_by`` entries are field names, prefixed
        with ``-`` for descending order.

        Raises:
            UnsupportedPaginationError: offset on a TOP or ROWNUM dialect
        """
        resolved = self.resolve(entity)
        limit = self.query_limit if limit is None else limit
        pagination = self.dialect.pagination
        source, selected = self._select_source(resolved, fields)
        binder = _Binder()

        sql = ["SELECT"]
        pagination.append_infix(sql, offset, limit)
        sql.append(" " + ", ".join(f.column for f in selected))
        sql.append(f"{self.sep}FROM {source}")
        where = self._where(resolved, criteria, binder)
        if where:
            sql.append(f"{self.sep}WHERE {where}")
        pagination.append_where_suffix(sql, offset, limit, bool(where))
        order = self._order_by(resolved, order_by)
        if order:
            sql.append(f"{self.sep}ORDER BY {order}")
        pagination.append_trailing_suffix(sql, offset, limit)

        results = [
            ResultColumn(i, f.column_type, f.name, f.policy, f.enum_class) for i, f in enumerate(selected)
        ]
        return self._statement(sql, binder, results)

    def find_by_pk(self, entity: EntitySchemaInfo, pk_value: Any) -> SqlStatement:
        resolved = self.resolve(entity)
        pk = resolved.primary_key
        if pk is None:
            raise SchemaResolutionError(f"Entity {resolved.entity.table!r} has no primary key")
        return self.build_paginated_select(
            entity, criteria=Restriction.of(RestrictionType.EQUALS, pk.name, pk_value), limit=0
        )

    def count(self, entity: EntitySchemaInfo, criteria: Restriction | None = None) -> SqlStatement:
        resolved = self.resolve(entity)
        binder = _Binder()
        source = resolved.view or resolved.table
        sql = [f"SELECT COUNT(*) FROM {source}"]
        where = self._where(resolved, criteria, binder)
        if where:
            sql.append(f"{self.sep}WHERE {where}")
        policy = self.dialect.type_policy(ColumnType.LONG)
        return self._statement(sql, binder, [ResultColumn(0, ColumnType.LONG, "count", policy)])

    def time_bucket(self, entity: EntitySchemaInfo, field_name: str, unit: TimeBucket) -> TimeBucketExpression:
        field = self.resolve(entity).field(field_name)
        return self.dialect.time_bucket(field.column, unit)

    # =========================================================================
    # DML
    # =========================================================================

    def insert(self, entity: EntitySchemaInfo, values: Mapping[str, Any]) -> SqlStatement:
        """INSERT of the given field values, in entity field order."""
        resolved = self.resolve(entity)
        fields = self._writable(resolved, values)
        binder = _Binder()
        markers = [binder.bind(f, values[f.name]) for f in fields]
        columns = ", ".join(f.column for f in fields)
        sql = [f"INSERT INTO {resolved.table} ({columns}){self.sep}VALUES ({', '.join(markers)})"]
        return self._statement(sql, binder)

    def update(
        self, entity: EntitySchemaInfo, values: Mapping[str, Any], criteria: Restriction | None = None
    ) -> SqlStatement:
        resolved = self.resolve(entity)
        fields = self._writable(resolved, values)
        binder = _Binder()
        assignments = ", ".join(f"{f.column} = {binder.bind(f, values[f.name])}" for f in fields)
        sql = [f"UPDATE {resolved.table}{self.sep}SET {assignments}"]
        where = self._where(resolved, criteria, binder)
        if where:
            sql.append(f"{self.sep}WHERE {where}")
        return self._statement(sql, binder)

    def delete(self, entity: EntitySchemaInfo, criteria: Restriction | None = None) -> SqlStatement:
        resolved = self.resolve(entity)
        binder = _Binder()
        sql = [f"DELETE FROM {resolved.table}"]
        where = self._where(resolved, criteria, binder)
        if where:
            sql.append(f"{self.sep}WHERE {where}")
        return self._statement(sql, binder)

    # -- Canned queries --------------------------------------------------------

    def test_query(self) -> SqlStatement:
        return SqlStatement(self.dialect.test_sql)

    def now_query(self) -> SqlStatement:
        policy = self.dialect.type_policy(ColumnType.TIMESTAMP)
        return SqlStatement(
            self.dialect.now_sql, results=(ResultColumn(0, ColumnType.TIMESTAMP, "now", policy),)
        )

    def utc_timestamp_query(self) -> SqlStatement:
        policy = self.dialect.type_policy(ColumnType.TIMESTAMP_UTC)
        return SqlStatement(
            self.dialect.utc_timestamp_sql,
            results=(ResultColumn(0, ColumnType.TIMESTAMP_UTC, "utc_now", policy),),
        )

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _statement(
        self, sql: list[str], binder: _Binder, results: Sequence[ResultColumn] = ()
    ) -> SqlStatement:
        text = "".join(sql)
        if binder.parameters and self.dialect.placeholder_style is PlaceholderStyle.FORMAT:
            text = text.replace("%", "%%")
        text = _MARKER.sub(lambda m: self.dialect.placeholder(int(m.group(1))), text)
        return SqlStatement(text, tuple(binder.parameters), tuple(results), self.utc_offset)

    def _where(self, resolved: ResolvedEntity, criteria: Restriction | None, binder: _Binder) -> str:
        if criteria is None:
            return ""
        return self._translate(resolved, criteria, binder)

    def _translate(self, resolved: ResolvedEntity, node: Restriction, binder: _Binder) -> str:
        policy = self.dialect.criteria_policy(node.type)
        if node.type.is_compound:
            fragments = [self._translate(resolved, child, binder) for child in node.children]
            return policy.render(None, fragments)

        field = resolved.field(node.field)
        if node.type in _LIKE_RESTRICTIONS:
            text = self.dialect.type_policy(ColumnType.STRING)
            markers = [
                binder.bind(field, policy.like_value(v), ColumnType.STRING, text) for v in node.values
            ]
        else:
            markers = [binder.bind(field, v) for v in node.values]
        return policy.render(field.column, markers, self.dialect.max_clause_values)

    def _order_by(self, resolved: ResolvedEntity, order_by: Iterable[str]) -> str:
        terms = []
        for name in order_by:
            descending = name.startswith("-")
            column = resolved.field(name.lstrip("-")).column
            terms.append(f"{column} DESC" if descending else column)
        return ", ".join(terms)

    def _select_source(
        self, resolved: ResolvedEntity, names: Sequence[str] | None
    ) -> tuple[str, tuple[ResolvedField, ...]]:
        if names is not None:
            selected = tuple(resolved.field(n) for n in names)
        elif resolved.view:
            selected = resolved.view_fields()
        else:
            selected = resolved.table_fields()
        use_view = resolved.view is not None and (names is None or any(f.list_only for f in selected))
        return (resolved.view if use_view else resolved.table), selected

    @staticmethod
    def _writable(resolved: ResolvedEntity, values: Mapping[str, Any]) -> list[ResolvedField]:
        for name in values:
            if resolved.field(name).list_only:
                raise SchemaResolutionError(f"Field {name!r} is computed and cannot be written")
        return [f for f in resolved.table_fields() if f.name in values]

    def _with_view(self, entity: EntitySchemaInfo | ResolvedEntity) -> ResolvedEntity:
        resolved = self.resolve(entity)
        if not resolved.view:
            raise SchemaResolutionError(f"Entity {resolved.entity.table!r} declares no view")
        return resolved

    @staticmethod
    def _columns(resolved: ResolvedEntity, names: Sequence[str]) -> list[str]:
        return [resolved.field(n).column for n in names]

    def _constraint_name(self, resolved: ResolvedEntity, name: str, suffix: str) -> str:
        return self.dialect.generated_name(f"{resolved.bare_table}_{name.upper()}{suffix}")

    def _unique_name(self, resolved: ResolvedEntity, name: str) -> str:
        return self._constraint_name(resolved, name, "UK")

    def _index_name(self, resolved: ResolvedEntity, name: str) -> str:
        return self._constraint_name(resolved, name, "IX")

    def _check_name(self, resolved: ResolvedEntity, name: str) -> str:
        return self._constraint_name(resolved, name, "CK")

    def _foreign_key_name(self, resolved: ResolvedEntity, field: ResolvedField) -> str:
        return self._constraint_name(resolved, field.field.column, "FK")

    @staticmethod
    def _foreign_key_field(resolved: ResolvedEntity, field_name: str) -> ResolvedField:
        field = resolved.field(field_name)
        if field.field.foreign_key is None:
            raise SchemaResolutionError(f"Field {field_name!r} of {resolved.entity.table!r} has no foreign key")
        return field


_LIKE_RESTRICTIONS = frozenset(
    {
        RestrictionType.LIKE,
        RestrictionType.NOT_LIKE,
        RestrictionType.BEGINS_WITH,
        RestrictionType.NOT_BEGIN_WITH,
        RestrictionType.ENDS_WITH,
        RestrictionType.NOT_END_WITH,
    }
)


__all__ = ["Emitter"]
