"""HSQLDB dialect: the ANSI baseline with a handful of grammar quirks."""

from __future__ import annotations

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, TimeBucket
from sqlbridge.dialect.base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from sqlbridge.dialect.ddl import DdlRenderer
from sqlbridge.dialect.pagination import LimitOffsetPagination
from sqlbridge.dialect.timebuckets import TemplateTimeBuckets, pattern_labels, trunc_truncations
from sqlbridge.policies.types import build_type_policies, override
from sqlbridge.schema.models import ColumnInfo
from sqlbridge.schema.resolve import ResolvedField

NAME = "hsqldb"

HSQLDB_MAX_STRING_LENGTH = 16_777_216


class HsqlDbDdl(DdlRenderer):
    def alter_nullable(self, table: str, field: ResolvedField, sep: str) -> str:
        action = "SET NULL" if field.nullable else "SET NOT NULL"
        return f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} {action}"

    def make_nullable(self, table: str, column: str, observed: ColumnInfo, sep: str = " ") -> list[str]:
        return [f"ALTER TABLE {table}{sep}ALTER COLUMN {column} SET NULL"]

    def rename_column(self, table: str, old_column: str, field: ResolvedField, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}ALTER COLUMN {old_column} RENAME TO {field.column}"


def create_hsqldb_dialect() -> Dialect:
    truncations = trunc_truncations("TRUNC")
    truncations.update(
        {
            TimeBucket.DAY_OF_WEEK: "DAYOFWEEK({column})",
            TimeBucket.DAY_OF_MONTH: "DAYOFMONTH({column})",
            TimeBucket.DAY_OF_YEAR: "DAYOFYEAR({column})",
        }
    )
    return Dialect(
        name=NAME,
        pagination=LimitOffsetPagination(),
        # TO_CHAR has no ISO week-year pattern here, so WEEK is unsupported.
        time_buckets=TemplateTimeBuckets(NAME, truncations, pattern_labels("TO_CHAR", iso_week=False)),
        identifiers=IdentifierRules(
            reserved_words=COMMON_RESERVED_WORDS | {"LIMIT", "OFFSET", "TOP", "POSITION", "VALUE"},
            upper_case_quoted=True,
        ),
        ddl=HsqlDbDdl(),
        type_policies=build_type_policies(
            {
                ColumnType.DOUBLE: override(
                    ColumnType.DOUBLE,
                    declaration="DOUBLE",
                    aliases=frozenset({"double precision", "float"}),
                ),
            },
            dialect=NAME,
        ),
        placeholder_style=PlaceholderStyle.QMARK,
        max_string_length=HSQLDB_MAX_STRING_LENGTH,
        reconstruct_views_on_table_schema_update=True,
        test_sql="VALUES CURRENT_TIMESTAMP",
        now_sql="VALUES LOCALTIMESTAMP",
        utc_timestamp_sql="VALUES CURRENT_TIMESTAMP AT TIME ZONE INTERVAL '0:00' HOUR TO MINUTE",
    )


__all__ = ["NAME", "HsqlDbDdl", "create_hsqldb_dialect"]
