"""
Microsoft SQL Server dialect.

Defaults live in named constraints (``DF_<table>_<column>``): changing a
default, or a type under a default, means dropping the constraint,
altering the column and adding the constraint back. Renames go through
``sp_rename``; pagination is ``SELECT TOP n`` without offset.
"""

from __future__ import annotations

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, TimeBucket
from sqlbridge.dialect.base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from sqlbridge.dialect.ddl import DdlRenderer, observed_declaration
from sqlbridge.dialect.defaults import LiteralDefaultMatcher
from sqlbridge.dialect.pagination import TopInfixPagination
from sqlbridge.dialect.timebuckets import TemplateTimeBuckets
from sqlbridge.policies.types import build_type_policies, override
from sqlbridge.schema.models import ColumnAlterInfo, ColumnInfo
from sqlbridge.schema.resolve import ResolvedField

NAME = "mssql"

MSSQL_MAX_STRING_LENGTH = 4000

MSSQL_RESERVED_WORDS = COMMON_RESERVED_WORDS | {
    "BACKUP", "BROWSE", "BULK", "CLUSTERED", "DATABASE", "DENY", "EXEC", "EXECUTE", "FILE",
    "IDENTITY", "INDEX", "KEY", "NOCHECK", "NONCLUSTERED", "PERCENT", "PLAN", "PROC",
    "PROCEDURE", "PUBLIC", "RULE", "SCHEMA", "TOP", "TRAN", "TRANSACTION", "TRIGGER", "VIEW",
}  # fmt: skip

_NVARCHAR_ALIASES = frozenset({"nvarchar", "varchar"})


def _unbracket(name: str) -> str:
    return name.replace("[", "").replace("]", "")


class SqlServerDdl(DdlRenderer):
    identity_clause = "IDENTITY(1,1) PRIMARY KEY NOT NULL"
    add_column_keyword = "ADD"

    @staticmethod
    def default_constraint_name(bare_table: str, column: str) -> str:
        return f"DF_{_unbracket(bare_table)}_{_unbracket(column)}"

    def default_clause(self, bare_table: str, field: ResolvedField) -> str:
        name = self.default_constraint_name(bare_table, field.column)
        return f"CONSTRAINT {name} DEFAULT {field.default_literal}"

    def alter_column(
        self,
        table: str,
        bare_table: str,
        field: ResolvedField,
        observed: ColumnInfo,
        alter: ColumnAlterInfo,
        sep: str = " ",
    ) -> list[str]:
        statements: list[str] = []
        name = self.default_constraint_name(bare_table, field.column)
        has_default = observed.default is not None
        # A default constraint pins the column type, so a type change rebinds it too.
        rebind = alter.default_changed or (alter.type_changed and has_default)
        if rebind and has_default:
            statements.append(self.drop_constraint(table, observed.default_constraint or name, sep))
        if alter.type_changed or alter.nullable_changed:
            nullability = "NULL" if field.nullable else "NOT NULL"
            statements.append(f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} {field.declaration} {nullability}")
        if rebind and field.default_literal is not None:
            statements.append(
                f"ALTER TABLE {table}{sep}ADD CONSTRAINT {name} DEFAULT {field.default_literal} FOR {field.column}"
            )
        return statements

    def make_nullable(self, table: str, column: str, observed: ColumnInfo, sep: str = " ") -> list[str]:
        return [f"ALTER TABLE {table}{sep}ALTER COLUMN {column} {observed_declaration(observed)} NULL"]

    def rename_column(self, table: str, old_column: str, field: ResolvedField, sep: str = " ") -> str:
        return f"EXEC sp_rename '{_unbracket(table)}.{_unbracket(old_column)}', '{_unbracket(field.column)}', 'COLUMN'"

    def rename_table(self, table: str, new_table: str, sep: str = " ") -> str:
        return f"EXEC sp_rename '{_unbracket(table)}', '{_unbracket(new_table)}'"

    def drop_index(self, table: str, schema: str | None, name: str) -> str:
        return f"DROP INDEX {name} ON {table}"


_TRUNCATIONS = {
    TimeBucket.HOUR: "DATEADD(hour, DATEDIFF(hour, 0, {column}), 0)",
    TimeBucket.DAY: "CAST({column} AS DATE)",
    TimeBucket.WEEK: "DATEADD(week, DATEDIFF(week, 0, {column}), 0)",
    TimeBucket.MONTH: "DATEADD(month, DATEDIFF(month, 0, {column}), 0)",
    TimeBucket.YEAR: "DATEADD(year, DATEDIFF(year, 0, {column}), 0)",
    TimeBucket.DAY_OF_WEEK: "DATEPART(weekday, {column})",
    TimeBucket.DAY_OF_MONTH: "DATEPART(day, {column})",
    TimeBucket.DAY_OF_YEAR: "DATEPART(dayofyear, {column})",
}

_LABELS = {
    TimeBucket.HOUR: "FORMAT({column}, 'yyyy-MM-dd HH')",
    TimeBucket.DAY: "FORMAT({column}, 'yyyy-MM-dd')",
    TimeBucket.WEEK: "FORMAT({column}, 'yyyy') + '-' + FORMAT(DATEPART(iso_week, {column}), '00')",
    TimeBucket.MONTH: "FORMAT({column}, 'yyyy-MM')",
    TimeBucket.YEAR: "FORMAT({column}, 'yyyy')",
    TimeBucket.DAY_OF_WEEK: "FORMAT(DATEPART(weekday, {column}), '0')",
    TimeBucket.DAY_OF_MONTH: "FORMAT({column}, 'dd')",
    TimeBucket.DAY_OF_YEAR: "FORMAT(DATEPART(dayofyear, {column}), '000')",
}


def create_mssql_dialect() -> Dialect:
    return Dialect(
        name=NAME,
        pagination=TopInfixPagination(NAME),
        time_buckets=TemplateTimeBuckets(NAME, _TRUNCATIONS, _LABELS),
        identifiers=IdentifierRules(quote_start="[", quote_end="]", reserved_words=MSSQL_RESERVED_WORDS),
        default_matcher=LiteralDefaultMatcher(strip_parentheses=True, national_prefix=True),
        ddl=SqlServerDdl(),
        type_policies=build_type_policies(
            {
                ColumnType.CHARACTER: override(ColumnType.CHARACTER, declaration="NCHAR(1)", literal_template="N'{value}'"),
                ColumnType.STRING: override(
                    ColumnType.STRING,
                    declaration="NVARCHAR({length})",
                    aliases=_NVARCHAR_ALIASES,
                    literal_template="N'{value}'",
                ),
                ColumnType.ENUM_CONSTANT: override(
                    ColumnType.ENUM_CONSTANT,
                    declaration="NVARCHAR({length})",
                    aliases=_NVARCHAR_ALIASES,
                    literal_template="N'{value}'",
                ),
                ColumnType.CLOB: override(
                    ColumnType.CLOB,
                    declaration="NVARCHAR(MAX)",
                    aliases=frozenset({"ntext", "text"}),
                    literal_template="N'{value}'",
                    backfill_literal="CAST('' AS NVARCHAR(MAX))",
                    streamed=True,
                ),
                ColumnType.BOOLEAN: override(
                    ColumnType.BOOLEAN,
                    declaration="BIT",
                    aliases=frozenset(),
                    true_token="1",
                    false_token="0",
                ),
                ColumnType.DOUBLE: override(ColumnType.DOUBLE, declaration="FLOAT", aliases=frozenset()),
                ColumnType.TIMESTAMP: override(ColumnType.TIMESTAMP, declaration="DATETIME2"),
                ColumnType.TIMESTAMP_UTC: override(ColumnType.TIMESTAMP_UTC, declaration="DATETIME2"),
                ColumnType.BLOB: override(
                    ColumnType.BLOB,
                    declaration="VARBINARY(MAX)",
                    aliases=frozenset({"image"}),
                    literal_template="0x{value}",
                    backfill_literal="0x",
                    streamed=True,
                ),
            },
            dialect=NAME,
        ),
        placeholder_style=PlaceholderStyle.QMARK,
        max_string_length=MSSQL_MAX_STRING_LENGTH,
        concat_operator="+",
        now_sql="SELECT GETDATE()",
        utc_timestamp_sql="SELECT GETUTCDATE()",
    )


__all__ = ["NAME", "MSSQL_RESERVED_WORDS", "SqlServerDdl", "create_mssql_dialect"]
