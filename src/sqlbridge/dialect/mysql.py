"""
MySQL dialect.

MySQL restates the whole column on every change (``MODIFY``), so a
type, default and nullability change collapse into one statement. It
also declares unique keys and secondary indexes inside CREATE TABLE,
quotes with backticks and concatenates with ``CONCAT()``.
"""

from __future__ import annotations

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, TimeBucket
from sqlbridge.dialect.base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from sqlbridge.dialect.ddl import DdlRenderer, observed_declaration
from sqlbridge.dialect.pagination import LimitOffsetPagination
from sqlbridge.dialect.timebuckets import TemplateTimeBuckets
from sqlbridge.policies.types import build_type_policies, override
from sqlbridge.schema.models import ColumnAlterInfo, ColumnInfo
from sqlbridge.schema.resolve import ResolvedField

NAME = "mysql"

MYSQL_MAX_STRING_LENGTH = 65_535

# LIMIT is mandatory before OFFSET; this is the documented "all rows" value.
MYSQL_UNBOUNDED_LIMIT = 18_446_744_073_709_551_615

MYSQL_RESERVED_WORDS = COMMON_RESERVED_WORDS | {
    "DATABASE", "DIV", "DUAL", "INDEX", "KEY", "KEYS", "LIMIT", "LOCK", "MOD", "RANGE",
    "READ", "RANK", "ROWS", "SCHEMA", "SHOW", "STATUS", "WRITE",
}  # fmt: skip


class MySqlDdl(DdlRenderer):
    identity_clause = "NOT NULL AUTO_INCREMENT PRIMARY KEY"
    append_null_on_create = True

    def alter_column(
        self,
        table: str,
        bare_table: str,
        field: ResolvedField,
        observed: ColumnInfo,
        alter: ColumnAlterInfo,
        sep: str = " ",
    ) -> list[str]:
        if not alter.altered:
            return []
        return [f"ALTER TABLE {table}{sep}MODIFY {self._restated(field)}"]

    def _restated(self, field: ResolvedField) -> str:
        parts = [field.column, field.declaration]
        if field.default_literal is not None:
            parts.append(f"DEFAULT {field.default_literal}")
        parts.append("NULL" if field.nullable else "NOT NULL")
        return " ".join(parts)

    def make_nullable(self, table: str, column: str, observed: ColumnInfo, sep: str = " ") -> list[str]:
        return [f"ALTER TABLE {table}{sep}MODIFY {column} {observed_declaration(observed)} NULL"]

    def rename_column(self, table: str, old_column: str, field: ResolvedField, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}CHANGE COLUMN {old_column} {self.column_definition('', field)}"

    def rename_table(self, table: str, new_table: str, sep: str = " ") -> str:
        return f"RENAME TABLE {table} TO {new_table}"

    def drop_unique(self, table: str, name: str, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}DROP INDEX {name}"

    def drop_check(self, table: str, name: str, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}DROP CHECK {name}"

    def drop_foreign_key(self, table: str, name: str, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}DROP FOREIGN KEY {name}"

    def drop_index(self, table: str, schema: str | None, name: str) -> str:
        return f"DROP INDEX {name} ON {table}"

    def inline_unique(self, name: str, columns: list[str]) -> str | None:
        return f"UNIQUE KEY {name} ({', '.join(columns)})"

    def inline_index(self, name: str, columns: list[str], unique: bool) -> str | None:
        prefix = "UNIQUE INDEX" if unique else "INDEX"
        return f"{prefix} {name} ({', '.join(columns)})"


_TRUNCATIONS = {
    TimeBucket.HOUR: "DATE_FORMAT({column}, '%Y-%m-%d %H:00:00')",
    TimeBucket.DAY: "DATE({column})",
    TimeBucket.WEEK: "DATE_SUB(DATE({column}), INTERVAL WEEKDAY({column}) DAY)",
    TimeBucket.MONTH: "DATE_FORMAT({column}, '%Y-%m-01')",
    TimeBucket.YEAR: "MAKEDATE(YEAR({column}), 1)",
    TimeBucket.DAY_OF_WEEK: "DAYOFWEEK({column})",
    TimeBucket.DAY_OF_MONTH: "DAYOFMONTH({column})",
    TimeBucket.DAY_OF_YEAR: "DAYOFYEAR({column})",
}

_LABELS = {
    TimeBucket.HOUR: "DATE_FORMAT({column}, '%Y-%m-%d %H')",
    TimeBucket.DAY: "DATE_FORMAT({column}, '%Y-%m-%d')",
    TimeBucket.WEEK: "DATE_FORMAT({column}, '%x-%v')",
    TimeBucket.MONTH: "DATE_FORMAT({column}, '%Y-%m')",
    TimeBucket.YEAR: "DATE_FORMAT({column}, '%Y')",
    TimeBucket.DAY_OF_WEEK: "DATE_FORMAT({column}, '%w')",
    TimeBucket.DAY_OF_MONTH: "DATE_FORMAT({column}, '%d')",
    TimeBucket.DAY_OF_YEAR: "DATE_FORMAT({column}, '%j')",
}


def create_mysql_dialect() -> Dialect:
    return Dialect(
        name=NAME,
        pagination=LimitOffsetPagination(unbounded_limit=MYSQL_UNBOUNDED_LIMIT),
        time_buckets=TemplateTimeBuckets(NAME, _TRUNCATIONS, _LABELS),
        identifiers=IdentifierRules(quote_start="`", quote_end="`", reserved_words=MYSQL_RESERVED_WORDS),
        ddl=MySqlDdl(),
        type_policies=build_type_policies(
            {
                ColumnType.BOOLEAN: override(
                    ColumnType.BOOLEAN,
                    declaration="TINYINT(1)",
                    aliases=frozenset({"tinyint", "bit", "bool", "boolean"}),
                    true_token="1",
                    false_token="0",
                    true_value=1,
                    false_value=0,
                ),
                ColumnType.FLOAT: override(ColumnType.FLOAT, declaration="FLOAT", aliases=frozenset({"real"})),
                ColumnType.DOUBLE: override(
                    ColumnType.DOUBLE, declaration="DOUBLE", aliases=frozenset({"double precision", "real"})
                ),
                ColumnType.TIMESTAMP: override(ColumnType.TIMESTAMP, declaration="DATETIME"),
                ColumnType.TIMESTAMP_UTC: override(ColumnType.TIMESTAMP_UTC, declaration="DATETIME"),
                ColumnType.CLOB: override(ColumnType.CLOB, declaration="MEDIUMTEXT", backfill_literal="''"),
                ColumnType.BLOB: override(ColumnType.BLOB, declaration="MEDIUMBLOB"),
            },
            dialect=NAME,
        ),
        placeholder_style=PlaceholderStyle.FORMAT,
        max_string_length=MYSQL_MAX_STRING_LENGTH,
        concat_operator=None,
        generates_unique_constraints_on_create_table=True,
        generates_indexes_on_create_table=True,
        now_sql="SELECT NOW()",
        utc_timestamp_sql="SELECT UTC_TIMESTAMP()",
    )


__all__ = ["NAME", "MYSQL_RESERVED_WORDS", "MySqlDdl", "create_mysql_dialect"]
