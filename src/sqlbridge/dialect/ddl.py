"""
DDL grammar shared by the dialects.

``DdlRenderer`` holds the statement shapes most engines agree on:
ANSI ``ALTER COLUMN ... SET DATA TYPE``, ``SET/DROP DEFAULT``,
``SET/DROP NOT NULL`` and identity columns. Each engine module derives
one small renderer that overrides only the statements its grammar
spells differently. Renderers are pure string composition over already
resolved fields; they never look up policies themselves.

``sep`` is the separator between ``ALTER TABLE <name>`` and the clause
that follows: a single space, or a line separator when pretty printing.
"""

from __future__ import annotations

from sqlbridge.schema.models import ColumnAlterInfo, ColumnInfo
from sqlbridge.schema.resolve import ResolvedField


def observed_declaration(observed: ColumnInfo) -> str:
    """Re-render a catalog type for statements that must restate it."""
    if observed.scale and observed.effective_precision:
        return f"{observed.type_name.upper()}({observed.effective_precision},{observed.scale})"
    if observed.size > 0 and observed.type_name.lower() in _SIZED_NATIVE:
        return f"{observed.type_name.upper()}({observed.size})"
    if observed.size < 0 and observed.type_name.lower() in _MAX_SIZED_NATIVE:
        return f"{observed.type_name.upper()}(MAX)"
    return observed.type_name.upper()


_SIZED_NATIVE = frozenset(
    {"varchar", "varchar2", "nvarchar", "nvarchar2", "char", "nchar", "character varying", "character", "varbinary"}
)
# SQL Server reports (MAX) text and binary columns with a size of -1.
_MAX_SIZED_NATIVE = frozenset({"varchar", "nvarchar", "varbinary"})


class DdlRenderer:
    """ANSI-flavoured DDL; engines override what they spell differently."""

    identity_clause = "GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY NOT NULL"
    primary_key_clause = "PRIMARY KEY NOT NULL"
    add_column_keyword = "ADD COLUMN"
    append_null_on_create = False

    # -- Column definitions --------------------------------------------------

    def column_definition(self, bare_table: str, field: ResolvedField) -> str:
        parts = [field.column, field.declaration]
        if field.primary_key:
            parts.append(self.identity_clause if field.auto_increment else self.primary_key_clause)
            return " ".join(parts)
        if field.default_literal is not None:
            parts.append(self.default_clause(bare_table, field))
        if not field.nullable:
            parts.append("NOT NULL")
        elif self.append_null_on_create:
            parts.append("NULL")
        return " ".join(parts)

    def default_clause(self, bare_table: str, field: ResolvedField) -> str:
        return f"DEFAULT {field.default_literal}"

    def identity_statements(self, table: str, bare_table: str, field: ResolvedField) -> list[str]:
        """Extra statements an identity column needs after CREATE TABLE."""
        return []

    def drop_identity_statements(self, bare_table: str, field: ResolvedField) -> list[str]:
        return []

    def inline_unique(self, name: str, columns: list[str]) -> str | None:
        """Unique constraint clause inside CREATE TABLE, for engines that inline them."""
        return None

    def inline_index(self, name: str, columns: list[str], unique: bool) -> str | None:
        return None

    # -- Column alteration -------------------------------------------------

    def alter_column(
        self,
        table: str,
        bare_table: str,
        field: ResolvedField,
        observed: ColumnInfo,
        alter: ColumnAlterInfo,
        sep: str = " ",
    ) -> list[str]:
        """Type, then default, then nullability statements for one column."""
        statements: list[str] = []
        if alter.type_changed:
            statements.append(self.alter_type(table, field, sep))
        if alter.default_changed:
            statements.extend(self.alter_default(table, bare_table, field, observed, sep))
        if alter.nullable_changed:
            statements.append(self.alter_nullable(table, field, sep))
        if statements:
            statements.extend(self.post_alter_statements(table))
        return statements

    def alter_type(self, table: str, field: ResolvedField, sep: str) -> str:
        return f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} SET DATA TYPE {field.declaration}"

    def alter_default(
        self, table: str, bare_table: str, field: ResolvedField, observed: ColumnInfo, sep: str
    ) -> list[str]:
        if field.default_literal is None:
            return [f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} DROP DEFAULT"]
        return [f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} SET DEFAULT {field.default_literal}"]

    def alter_nullable(self, table: str, field: ResolvedField, sep: str) -> str:
        action = "DROP NOT NULL" if field.nullable else "SET NOT NULL"
        return f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} {action}"

    def make_nullable(self, table: str, column: str, observed: ColumnInfo, sep: str = " ") -> list[str]:
        """Relax an abandoned NOT NULL column the entity no longer declares."""
        return [f"ALTER TABLE {table}{sep}ALTER COLUMN {column} DROP NOT NULL"]

    def post_alter_statements(self, table: str) -> list[str]:
        return []

    # -- Structure ---------------------------------------------------------

    def add_column(self, table: str, bare_table: str, field: ResolvedField, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}{self.add_column_keyword} {self.column_definition(bare_table, field)}"

    def drop_column(self, table: str, column: str, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}DROP COLUMN {column}"

    def rename_column(self, table: str, old_column: str, field: ResolvedField, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}RENAME COLUMN {old_column} TO {field.column}"

    def rename_table(self, table: str, new_table: str, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}RENAME TO {new_table}"

    def drop_constraint(self, table: str, name: str, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}DROP CONSTRAINT {name}"

    def drop_unique(self, table: str, name: str, sep: str = " ") -> str:
        return self.drop_constraint(table, name, sep)

    def drop_check(self, table: str, name: str, sep: str = " ") -> str:
        return self.drop_constraint(table, name, sep)

    def drop_foreign_key(self, table: str, name: str, sep: str = " ") -> str:
        return self.drop_constraint(table, name, sep)

    def drop_index(self, table: str, schema: str | None, name: str) -> str:
        return f"DROP INDEX {schema}.{name}" if schema else f"DROP INDEX {name}"

    def create_view(self, view: str, table: str, columns: list[str], sep: str = " ") -> str:
        return f"CREATE VIEW {view} AS{sep}SELECT {', '.join(columns)}{sep}FROM {table}"

    def drop_view(self, view: str) -> str:
        return f"DROP VIEW {view}"


__all__ = ["DdlRenderer", "observed_declaration"]
