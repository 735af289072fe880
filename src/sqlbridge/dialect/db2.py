"""IBM DB2 dialect: ANSI alters followed by the REORG a changed table needs."""

from __future__ import annotations

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, TimeBucket
from sqlbridge.dialect.base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from sqlbridge.dialect.ddl import DdlRenderer
from sqlbridge.dialect.defaults import LiteralDefaultMatcher
from sqlbridge.dialect.pagination import FetchNextPagination
from sqlbridge.dialect.timebuckets import TemplateTimeBuckets, pattern_labels, trunc_truncations
from sqlbridge.policies.types import build_type_policies, override
from sqlbridge.schema.models import ColumnInfo

NAME = "db2"

DB2_MAX_STRING_LENGTH = 32_672


class Db2Ddl(DdlRenderer):
    identity_clause = "NOT NULL GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY"

    def post_alter_statements(self, table: str) -> list[str]:
        # Altered tables sit in reorg-pending state until reorganized.
        return [f"CALL SYSPROC.ADMIN_CMD('REORG TABLE {table}')"]

    def make_nullable(self, table: str, column: str, observed: ColumnInfo, sep: str = " ") -> list[str]:
        return super().make_nullable(table, column, observed, sep) + self.post_alter_statements(table)

    def rename_table(self, table: str, new_table: str, sep: str = " ") -> str:
        return f"RENAME TABLE {table} TO {new_table}"


def create_db2_dialect() -> Dialect:
    truncations = trunc_truncations("TRUNC_TIMESTAMP")
    truncations.update(
        {
            TimeBucket.DAY_OF_WEEK: "DAYOFWEEK({column})",
            TimeBucket.DAY_OF_MONTH: "DAY({column})",
            TimeBucket.DAY_OF_YEAR: "DAYOFYEAR({column})",
        }
    )
    return Dialect(
        name=NAME,
        pagination=FetchNextPagination(),
        time_buckets=TemplateTimeBuckets(NAME, truncations, pattern_labels("VARCHAR_FORMAT")),
        identifiers=IdentifierRules(
            reserved_words=COMMON_RESERVED_WORDS | {"FETCH", "ROWS", "ONLY", "OFFSET"}, upper_case_quoted=True
        ),
        default_matcher=LiteralDefaultMatcher(function_wrappers=frozenset({"BLOB", "CLOB"})),
        ddl=Db2Ddl(),
        type_policies=build_type_policies(
            {
                ColumnType.DOUBLE: override(ColumnType.DOUBLE, declaration="DOUBLE", aliases=frozenset({"float"})),
                ColumnType.CLOB: override(ColumnType.CLOB, declaration="CLOB(1M)", backfill_literal="CLOB('')"),
                ColumnType.BLOB: override(
                    ColumnType.BLOB,
                    declaration="BLOB(16M)",
                    literal_template="BLOB(X'{value}')",
                    backfill_literal="BLOB('')",
                    streamed=True,
                ),
            },
            dialect=NAME,
        ),
        placeholder_style=PlaceholderStyle.QMARK,
        max_string_length=DB2_MAX_STRING_LENGTH,
        reconstruct_views_on_table_schema_update=True,
        test_sql="SELECT 1 FROM SYSIBM.SYSDUMMY1",
        now_sql="VALUES CURRENT TIMESTAMP",
        utc_timestamp_sql="VALUES CURRENT TIMESTAMP - CURRENT TIMEZONE",
    )


__all__ = ["NAME", "Db2Ddl", "create_db2_dialect"]
