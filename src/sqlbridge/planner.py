"""
Schema alteration planning.

Manifesto:
    Live systems change column types, defaults and nullability while
    the table already holds rows. The planner compares what the catalog
    reports (``ColumnInfo``) with what the entity declares and returns
    the shortest ordered statement list that converges the two, without
    ever leaving a NOT NULL constraint to fail on existing NULLs.

Architecture:
    ::

        observed ColumnInfo ──┐
                              ├─► compute_alter_info ─► ColumnAlterInfo
        desired ResolvedField ┘          │
                                         ▼
                       plan_column: [backfill UPDATE]
                                    + ddl.alter_column(type, default, nullable)
                                         │
                       plan_table:  [DROP VIEW] + adds + alters
                                    + relax abandoned NOT NULL + [CREATE VIEW]

Features:
    - Pure: no I/O, same inputs give the same statements
    - Idempotent: planning against the converged column yields nothing
    - Dialect bundling (MySQL MODIFY, SQL Server ALTER COLUMN, Db2 REORG)
      lives in the dialect's DdlRenderer, not here

Guardrails:
    ❌ DON'T: Tighten nullability before existing NULLs are backfilled
    ✅ DO: Emit the backfill UPDATE first

    ❌ DON'T: Alter primary-key columns in place
    ✅ DO: Raise PrimaryKeyAlterationError and let the caller migrate

Tags:
    schema-evolution, alter-table, ddl, planner, sqlbridge

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Sequence

from sqlbridge.core.errors import IncompatibleTypeChangeError, PrimaryKeyAlterationError
from sqlbridge.core.logging import get_logger
from sqlbridge.dialect.base import Dialect
from sqlbridge.schema.models import ColumnAlterInfo, ColumnInfo, EntitySchemaInfo, FieldSchemaInfo
from sqlbridge.schema.resolve import ResolvedEntity, ResolvedField, SchemaResolver

logger = get_logger(__name__)


def _bare(name: str) -> str:
    """Catalog-comparable form of a column name: unquoted, upper case."""
    return name.strip('"`[]').upper()


class SchemaAlterationPlanner:
    """Plans ALTER sequences for one dialect."""

    def __init__(self, dialect: Dialect, resolver: SchemaResolver | None = None):
        self.dialect = dialect
        self.resolver = resolver or SchemaResolver(dialect)

    # -- Diff ------------------------------------------------------------------

    def compute_alter_info(
        self, observed: ColumnInfo, desired: ResolvedField | FieldSchemaInfo, *, table: str = ""
    ) -> ColumnAlterInfo:
        """Compare an observed column with its desired declaration.

        Raises:
            IncompatibleTypeChangeError: observed values cannot convert to the desired type
            PrimaryKeyAlterationError: a primary-key column would change type
        """
        desired = self._resolved_field(desired)
        type_changed = self._type_changed(observed, desired)
        if desired.primary_key:
            # Identity defaults and key nullability are engine-managed.
            if type_changed:
                raise PrimaryKeyAlterationError(
                    f"Primary key {table}.{desired.column} cannot change type "
                    f"from {observed.type_name} to {desired.declaration}",
                    table=table,
                    column=desired.column,
                )
            return ColumnAlterInfo()
        if type_changed:
            self._check_convertible(observed, desired, table)

        alter = ColumnAlterInfo(
            type_changed=type_changed,
            default_changed=self._default_changed(observed, desired),
            nullable_changed=observed.nullable != desired.nullable,
        )
        if alter.altered:
            logger.debug(
                "column_alteration_detected",
                dialect=self.dialect.name,
                table=table,
                column=desired.column,
                type_changed=alter.type_changed,
                default_changed=alter.default_changed,
                nullable_changed=alter.nullable_changed,
            )
        return alter

    def _type_changed(self, observed: ColumnInfo, desired: ResolvedField) -> bool:
        policy = desired.policy
        if not policy.matches_native(observed.type_name):
            return True
        if policy.sized:
            return bool(observed.size) and observed.size != desired.length
        if policy.precision_sized:
            precision = observed.effective_precision
            if precision and precision != desired.precision:
                return True
            return "{scale}" in policy.declaration and observed.scale != desired.scale
        return False

    def _check_convertible(self, observed: ColumnInfo, desired: ResolvedField, table: str) -> None:
        candidates = self.dialect.column_type_for_native(observed.type_name)
        if any(desired.column_type.accepts(candidate) for candidate in candidates):
            return
        raise IncompatibleTypeChangeError(
            f"Column {table}.{desired.column} of native type {observed.type_name} "
            f"cannot be converted to {desired.column_type.name}",
            table=table,
            column=desired.column,
        ).with_context(observed_type=observed.type_name, desired_type=desired.column_type.name)

    def _default_changed(self, observed: ColumnInfo, desired: ResolvedField) -> bool:
        matcher = self.dialect.default_matcher
        policy = desired.policy
        enum_class = desired.enum_class
        configured = desired.field.default
        if configured is not None and configured.strip():
            return not matcher.matches(policy, observed.default, configured, enum_class)

        # A blank desired default accepts a blank observed one or the type's zero value.
        if observed.default is None or matcher.matches(policy, observed.default, None, enum_class):
            return False
        for candidate in ("", policy.alt_default, desired.effective_default):
            if candidate is not None and matcher.matches(policy, observed.default, candidate, enum_class):
                return False
        return True

    # -- Plans -----------------------------------------------------------------

    def plan_column(
        self,
        table: ResolvedEntity | EntitySchemaInfo,
        observed: ColumnInfo,
        desired: ResolvedField | FieldSchemaInfo | str,
        *,
        sep: str = " ",
    ) -> list[str]:
        """Ordered statements converging ``observed`` onto ``desired``.

        Order: backfill UPDATE, then the dialect's type/default/nullability
        statements. Returns an empty list when nothing differs.
        """
        entity = self._resolved_entity(table)
        if isinstance(desired, str):
            desired = entity.field(desired)
        desired = self._resolved_field(desired)

        alter = self.compute_alter_info(observed, desired, table=entity.table)
        if not alter.altered:
            return []

        statements: list[str] = []
        if alter.nullable_changed and observed.nullable and not desired.nullable:
            literal = desired.policy.backfill_value(desired.effective_default, desired.enum_class)
            statements.append(
                f"UPDATE {entity.table}{sep}SET {desired.column} = {literal}{sep}WHERE {desired.column} IS NULL"
            )
        statements.extend(
            self.dialect.ddl.alter_column(entity.table, entity.bare_table, desired, observed, alter, sep)
        )
        logger.info(
            "column_plan_built",
            dialect=self.dialect.name,
            table=entity.table,
            column=desired.column,
            statements=len(statements),
        )
        return statements

    def plan_table(
        self,
        table: ResolvedEntity | EntitySchemaInfo,
        observed_columns: Sequence[ColumnInfo],
        *,
        sep: str = " ",
    ) -> list[str]:
        """Converge a whole table: add, alter, then relax abandoned NOT NULL columns.

        Dialects that reconstruct views get the entity's view dropped first
        and recreated last whenever anything changes.
        """
        entity = self._resolved_entity(table)
        ddl = self.dialect.ddl
        observed_by_name = {_bare(c.name): c for c in observed_columns}
        declared = set()

        statements: list[str] = []
        for field in entity.table_fields():
            key = _bare(field.column)
            declared.add(key)
            observed = observed_by_name.get(key)
            if observed is None:
                statements.append(ddl.add_column(entity.table, entity.bare_table, field, sep))
            else:
                statements.extend(self.plan_column(entity, observed, field, sep=sep))

        for key, observed in observed_by_name.items():
            if key not in declared and not observed.nullable:
                column = self.dialect.preferred_name(observed.name)
                statements.extend(ddl.make_nullable(entity.table, column, observed, sep))

        if statements and entity.view and self.dialect.reconstruct_views_on_table_schema_update:
            statements.insert(0, ddl.drop_view(entity.view))
            statements.append(ddl.create_view(entity.view, entity.table, entity.view_columns(), sep))

        logger.info(
            "table_plan_built",
            dialect=self.dialect.name,
            table=entity.table,
            statements=len(statements),
        )
        return statements

    # -- Helpers ---------------------------------------------------------------

    def _resolved_entity(self, table: ResolvedEntity | EntitySchemaInfo) -> ResolvedEntity:
        if isinstance(table, ResolvedEntity):
            return table
        return self.resolver.resolve(table)

    def _resolved_field(self, field: ResolvedField | FieldSchemaInfo) -> ResolvedField:
        if isinstance(field, ResolvedField):
            return field
        return self.resolver.resolve_field(field)


__all__ = ["SchemaAlterationPlanner"]
