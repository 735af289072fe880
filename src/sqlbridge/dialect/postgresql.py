"""
PostgreSQL dialect.

Folds every identifier to lower case, stores BOOLEAN as CHAR(1) 'Y'/'N'
for cross-engine schema parity, BLOB as BYTEA and CLOB as TEXT. Type
changes need an explicit ``USING`` cast, and catalog defaults come back
cast-suffixed (``'abc'::character varying``).
"""

from __future__ import annotations

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, TimeBucket
from sqlbridge.dialect.base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from sqlbridge.dialect.ddl import DdlRenderer
from sqlbridge.dialect.defaults import LiteralDefaultMatcher
from sqlbridge.dialect.pagination import LimitOffsetPagination
from sqlbridge.dialect.timebuckets import TemplateTimeBuckets, pattern_labels
from sqlbridge.policies.types import build_type_policies, override
from sqlbridge.schema.resolve import ResolvedField

NAME = "postgresql"

POSTGRESQL_MAX_STRING_LENGTH = 10_485_760

POSTGRESQL_RESERVED_WORDS = COMMON_RESERVED_WORDS | {
    "ANALYSE", "ANALYZE", "ARRAY", "BOTH", "CAST", "COLLATE", "DEFERRABLE", "DO", "FETCH",
    "INITIALLY", "LATERAL", "LEADING", "LIMIT", "OFFSET", "ONLY", "PLACING", "RETURNING",
    "SYMMETRIC", "TRAILING", "VARIADIC", "WINDOW",
}  # fmt: skip


class PostgreSqlDdl(DdlRenderer):
    append_null_on_create = True

    def alter_type(self, table: str, field: ResolvedField, sep: str) -> str:
        return (
            f"ALTER TABLE {table}{sep}ALTER COLUMN {field.column} TYPE {field.declaration}"
            f" USING {field.column}::{field.declaration}"
        )


def _truncations() -> dict[TimeBucket, str]:
    units = {
        TimeBucket.HOUR: "hour",
        TimeBucket.DAY: "day",
        TimeBucket.WEEK: "week",
        TimeBucket.MONTH: "month",
        TimeBucket.YEAR: "year",
    }
    table = {unit: f"DATE_TRUNC('{name}', {{column}})" for unit, name in units.items()}
    table[TimeBucket.DAY_OF_WEEK] = "EXTRACT(DOW FROM {column})"
    table[TimeBucket.DAY_OF_MONTH] = "EXTRACT(DAY FROM {column})"
    table[TimeBucket.DAY_OF_YEAR] = "EXTRACT(DOY FROM {column})"
    return table


def create_postgresql_dialect() -> Dialect:
    return Dialect(
        name=NAME,
        pagination=LimitOffsetPagination(),
        time_buckets=TemplateTimeBuckets(NAME, _truncations(), pattern_labels("TO_CHAR")),
        identifiers=IdentifierRules(reserved_words=POSTGRESQL_RESERVED_WORDS, lower_case=True),
        default_matcher=LiteralDefaultMatcher(
            strip_parentheses=True, strip_casts=True, function_wrappers=frozenset({"DECODE"})
        ),
        ddl=PostgreSqlDdl(),
        type_policies=build_type_policies(
            {
                ColumnType.BOOLEAN: override(
                    ColumnType.BOOLEAN,
                    declaration="CHAR(1)",
                    aliases=frozenset({"bpchar", "character"}),
                    true_token="'Y'",
                    false_token="'N'",
                    true_value="Y",
                    false_value="N",
                ),
                ColumnType.CLOB: override(
                    ColumnType.CLOB, declaration="TEXT", backfill_literal="CAST('' AS TEXT)"
                ),
                ColumnType.BLOB: override(
                    ColumnType.BLOB,
                    declaration="BYTEA",
                    literal_template="decode('{value}', 'hex')",
                    backfill_literal="decode('', 'hex')",
                    streamed=True,
                ),
            },
            dialect=NAME,
        ),
        placeholder_style=PlaceholderStyle.FORMAT,
        max_string_length=POSTGRESQL_MAX_STRING_LENGTH,
        reconstruct_views_on_table_schema_update=True,
        now_sql="SELECT LOCALTIMESTAMP",
        utc_timestamp_sql="SELECT NOW() AT TIME ZONE 'utc'",
    )


__all__ = ["NAME", "POSTGRESQL_RESERVED_WORDS", "PostgreSqlDdl", "create_postgresql_dialect"]
