"""
Oracle dialect.

Features:
    - NUMBER(p) integrals, VARCHAR2 text, CHAR(1) 'Y'/'N' booleans
    - Column changes through ``MODIFY (...)``, additions through ``ADD (...)``
    - ROWNUM pagination folded into the WHERE clause (no offset)
    - LOBs bound as streams; empty LOBs are stored as NULL
    - IN lists split at 1000 values
    - ``oracle11`` variant: identity columns emulated with a sequence and a
      BEFORE INSERT trigger for servers older than 12c
"""

from __future__ import annotations

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, TimeBucket
from sqlbridge.dialect.base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from sqlbridge.dialect.ddl import DdlRenderer
from sqlbridge.dialect.defaults import LiteralDefaultMatcher
from sqlbridge.dialect.pagination import RowNumWherePagination
from sqlbridge.dialect.timebuckets import TemplateTimeBuckets, pattern_labels, trunc_truncations
from sqlbridge.policies.types import build_type_policies, override
from sqlbridge.schema.models import ColumnInfo
from sqlbridge.schema.resolve import ResolvedField

NAME = "oracle"
LEGACY_NAME = "oracle11"

ORACLE_MAX_STRING_LENGTH = 4000
ORACLE_MAX_IN_LIST = 1000
ORACLE_MAX_IDENTIFIER = 30
# Oracle stores the empty string as NULL, so NOT NULL text columns fall back to a single blank.
ORACLE_BLANK_TEXT = " "

ORACLE_RESERVED_WORDS = COMMON_RESERVED_WORDS | {
    "ACCESS", "AUDIT", "CLUSTER", "COMMENT", "COMPRESS", "CONNECT", "DATE", "FILE", "LEVEL",
    "LOCK", "LONG", "MODE", "NUMBER", "OPTION", "RAW", "RESOURCE", "ROW", "ROWID", "ROWNUM",
    "ROWS", "SESSION", "SIZE", "START", "SYNONYM", "SYSDATE", "UID", "VIEW",
}  # fmt: skip

_TEXT_ALIASES = frozenset({"varchar2", "varchar", "nvarchar2"})
_NUMBER_ALIASES = frozenset({"number", "integer", "smallint"})


class OracleDdl(DdlRenderer):
    identity_clause = "GENERATED BY DEFAULT ON NULL AS IDENTITY PRIMARY KEY"
    add_column_keyword = "ADD"

    def add_column(self, table: str, bare_table: str, field: ResolvedField, sep: str = " ") -> str:
        return f"ALTER TABLE {table}{sep}ADD ({self.column_definition(bare_table, field)})"

    def alter_type(self, table: str, field: ResolvedField, sep: str) -> str:
        return f"ALTER TABLE {table}{sep}MODIFY ({field.column} {field.declaration})"

    def alter_default(
        self, table: str, bare_table: str, field: ResolvedField, observed: ColumnInfo, sep: str
    ) -> list[str]:
        literal = field.default_literal if field.default_literal is not None else "NULL"
        return [f"ALTER TABLE {table}{sep}MODIFY ({field.column} DEFAULT {literal})"]

    def alter_nullable(self, table: str, field: ResolvedField, sep: str) -> str:
        action = "NULL" if field.nullable else "NOT NULL"
        return f"ALTER TABLE {table}{sep}MODIFY ({field.column} {action})"

    def make_nullable(self, table: str, column: str, observed: ColumnInfo, sep: str = " ") -> list[str]:
        return [f"ALTER TABLE {table}{sep}MODIFY ({column} NULL)"]


class LegacyOracleDdl(OracleDdl):
    """Pre-12c identity: a plain primary key fed by a sequence trigger."""

    identity_clause = "PRIMARY KEY NOT NULL"

    @staticmethod
    def sequence_name(bare_table: str) -> str:
        return f"{bare_table[: ORACLE_MAX_IDENTIFIER - 4]}_SEQ"

    @staticmethod
    def trigger_name(bare_table: str) -> str:
        return f"{bare_table[: ORACLE_MAX_IDENTIFIER - 4]}_TRG"

    def identity_statements(self, table: str, bare_table: str, field: ResolvedField) -> list[str]:
        sequence = self.sequence_name(bare_table)
        return [
            f"CREATE SEQUENCE {sequence} START WITH 1 INCREMENT BY 1 NOCACHE",
            (
                f"CREATE OR REPLACE TRIGGER {self.trigger_name(bare_table)}"
                f" BEFORE INSERT ON {table} FOR EACH ROW"
                f" WHEN (NEW.{field.column} IS NULL)"
                f" BEGIN SELECT {sequence}.NEXTVAL INTO :NEW.{field.column} FROM DUAL; END;"
            ),
        ]

    def drop_identity_statements(self, bare_table: str, field: ResolvedField) -> list[str]:
        # The trigger goes with the table.
        return [f"DROP SEQUENCE {self.sequence_name(bare_table)}"]


def _type_policies():
    return build_type_policies(
        {
            ColumnType.SHORT: override(
                ColumnType.SHORT, declaration="NUMBER({precision})", aliases=_NUMBER_ALIASES, default_precision=5
            ),
            ColumnType.INTEGER: override(
                ColumnType.INTEGER,
                declaration="NUMBER({precision})",
                aliases=_NUMBER_ALIASES,
                default_precision=10,
            ),
            ColumnType.LONG: override(
                ColumnType.LONG, declaration="NUMBER({precision})", aliases=_NUMBER_ALIASES, default_precision=19
            ),
            ColumnType.DECIMAL: override(ColumnType.DECIMAL, declaration="NUMBER({precision},{scale})"),
            ColumnType.STRING: override(
                ColumnType.STRING,
                declaration="VARCHAR2({length})",
                aliases=_TEXT_ALIASES,
                alt_default=ORACLE_BLANK_TEXT,
            ),
            ColumnType.ENUM_CONSTANT: override(
                ColumnType.ENUM_CONSTANT,
                declaration="VARCHAR2({length})",
                aliases=_TEXT_ALIASES,
                alt_default=ORACLE_BLANK_TEXT,
            ),
            ColumnType.BOOLEAN: override(
                ColumnType.BOOLEAN,
                declaration="CHAR(1)",
                aliases=frozenset({"char"}),
                true_token="'Y'",
                false_token="'N'",
                true_value="Y",
                false_value="N",
            ),
            ColumnType.FLOAT: override(ColumnType.FLOAT, declaration="BINARY_FLOAT", aliases=frozenset({"float"})),
            ColumnType.DOUBLE: override(
                ColumnType.DOUBLE, declaration="BINARY_DOUBLE", aliases=frozenset({"float", "double precision"})
            ),
            ColumnType.DATE: override(ColumnType.DATE, literal_template="TO_DATE('{value}', 'YYYY-MM-DD')"),
            ColumnType.TIMESTAMP: override(
                ColumnType.TIMESTAMP, literal_template="TO_TIMESTAMP('{value}', 'YYYY-MM-DD HH24:MI:SS')"
            ),
            ColumnType.TIMESTAMP_UTC: override(
                ColumnType.TIMESTAMP_UTC, literal_template="TO_TIMESTAMP('{value}', 'YYYY-MM-DD HH24:MI:SS')"
            ),
            ColumnType.CLOB: override(
                ColumnType.CLOB, backfill_literal="EMPTY_CLOB()", streamed=True, empty_as_null=True
            ),
            ColumnType.BLOB: override(
                ColumnType.BLOB,
                literal_template="HEXTORAW('{value}')",
                backfill_literal="EMPTY_BLOB()",
                streamed=True,
                empty_as_null=True,
            ),
        },
        dialect=NAME,
    )


def _truncations() -> dict[TimeBucket, str]:
    table = trunc_truncations("TRUNC", hour="HH24")
    table[TimeBucket.DAY_OF_WEEK] = "TO_NUMBER(TO_CHAR({column}, 'D'))"
    table[TimeBucket.DAY_OF_MONTH] = "EXTRACT(DAY FROM {column})"
    table[TimeBucket.DAY_OF_YEAR] = "TO_NUMBER(TO_CHAR({column}, 'DDD'))"
    return table


def create_oracle_dialect(*, name: str = NAME, ddl: OracleDdl | None = None) -> Dialect:
    return Dialect(
        name=name,
        pagination=RowNumWherePagination(name),
        time_buckets=TemplateTimeBuckets(name, _truncations(), pattern_labels("TO_CHAR")),
        identifiers=IdentifierRules(
            reserved_words=ORACLE_RESERVED_WORDS, upper_case_quoted=True, max_length=ORACLE_MAX_IDENTIFIER
        ),
        default_matcher=LiteralDefaultMatcher(function_wrappers=frozenset({"TO_DATE", "TO_TIMESTAMP", "HEXTORAW"})),
        ddl=ddl or OracleDdl(),
        type_policies=_type_policies(),
        placeholder_style=PlaceholderStyle.NUMERIC,
        max_clause_values=ORACLE_MAX_IN_LIST,
        max_string_length=ORACLE_MAX_STRING_LENGTH,
        test_sql="SELECT 1 FROM DUAL",
        now_sql="SELECT LOCALTIMESTAMP FROM DUAL",
        utc_timestamp_sql="SELECT SYS_EXTRACT_UTC(SYSTIMESTAMP) FROM DUAL",
    )


def create_legacy_oracle_dialect() -> Dialect:
    return create_oracle_dialect(name=LEGACY_NAME, ddl=LegacyOracleDdl())


__all__ = [
    "NAME",
    "LEGACY_NAME",
    "ORACLE_RESERVED_WORDS",
    "OracleDdl",
    "LegacyOracleDdl",
    "create_oracle_dialect",
    "create_legacy_oracle_dialect",
]
