"""
Dialect composition.

Manifesto:
    The engine targets six databases whose SQL disagrees on types,
    quoting, pagination, default literals, identity columns, LOB access
    and date functions. Rather than a class per database inheriting a
    deep abstract base, a ``Dialect`` is a frozen struct holding one
    strategy object per responsibility. Each engine module is a factory
    that fills in the fields it needs and leaves the rest at their
    defaults, so "inherit the common case, override a few" is visible
    field by field.

Architecture:
    ::

        ┌──────────────────────── Dialect (frozen) ──────────────────────┐
        │ name                   registry name ("postgresql", ...)       │
        │ identifiers            IdentifierRules (quoting, reserved)     │
        │ type_policies          ColumnType -> TypePolicy     (RO map)   │
        │ criteria_policies      RestrictionType -> CriteriaPolicy (RO)  │
        │ pagination             PaginationStrategy                      │
        │ default_matcher        DefaultMatcher                          │
        │ time_buckets           TimeBucketRenderer                      │
        │ ddl                    DdlRenderer                             │
        │ placeholder_style, max_clause_values, max_string_length,       │
        │ concat_operator, capability flags, test/now SQL                │
        └────────────────────────────────────────────────────────────────┘

        Construction checks that every ColumnType and RestrictionType
        has a policy; a gap raises MissingPolicyError immediately.

Examples:
    >>> from sqlbridge.dialect import get_dialect
    >>> d = get_dialect("oracle")
    >>> d.type_policy(ColumnType.STRING, 5000).column_type
    <ColumnType.CLOB: 'clob'>
    >>> d.placeholder(1)
    ':1'

Guardrails:
    ❌ DON'T: Branch on ``dialect.name`` in emitter or planner code
    ✅ DO: Add a field or strategy to the Dialect and set it in the factory

    ❌ DON'T: Mutate a policy table after construction
    ✅ DO: Build a new Dialect with ``dataclasses.replace``

Tags:
    dialect, sql, composition, strategy-pattern, sqlbridge

Doc-Types:
    - API Reference
    - Architecture Guide
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from sqlbridge.core.enums import ColumnType, PlaceholderStyle, RestrictionType, TimeBucket
from sqlbridge.core.errors import MissingPolicyError
from sqlbridge.core.logging import get_logger
from sqlbridge.dialect.ddl import DdlRenderer
from sqlbridge.dialect.defaults import DefaultMatcher, LiteralDefaultMatcher
from sqlbridge.dialect.pagination import PaginationStrategy
from sqlbridge.dialect.timebuckets import TimeBucketExpression, TimeBucketRenderer
from sqlbridge.policies.criteria import DEFAULT_CRITERIA_POLICIES, CriteriaPolicy, build_criteria_policies
from sqlbridge.policies.types import DEFAULT_TYPE_POLICIES, TypePolicy, build_type_policies

logger = get_logger(__name__)

_PLAIN_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Words reserved by every supported engine (SQL:2016 core subset).
COMMON_RESERVED_WORDS = frozenset(
    {
        "ALL", "ALTER", "AND", "ANY", "AS", "ASC", "BETWEEN", "BY", "CASE", "CHECK", "COLUMN",
        "CONSTRAINT", "CREATE", "CROSS", "CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP",
        "CURRENT_USER", "DEFAULT", "DELETE", "DESC", "DISTINCT", "DROP", "ELSE", "END", "EXISTS",
        "FALSE", "FOR", "FOREIGN", "FROM", "FULL", "GRANT", "GROUP", "HAVING", "IN", "INNER",
        "INSERT", "INTERSECT", "INTO", "IS", "JOIN", "LEFT", "LIKE", "NOT", "NULL", "ON", "OR",
        "ORDER", "OUTER", "PRIMARY", "REFERENCES", "RIGHT", "SELECT", "SET", "SOME", "TABLE",
        "THEN", "TO", "TRUE", "UNION", "UNIQUE", "UPDATE", "USER", "USING", "VALUES", "WHEN",
        "WHERE", "WITH",
    }
)  # fmt: skip


@dataclass(frozen=True)
class IdentifierRules:
    """
    Identifier folding and quoting.

    Names are folded first (PostgreSQL keeps every object in lower case),
    then quoted when they collide with a reserved word or are not plain
    identifiers. Engines that store unquoted names in upper case
    (Oracle, Db2, HSQLDB) upper-case a name before quoting it so the
    quoted form still matches the catalog.
    """

    quote_start: str = '"'
    quote_end: str = '"'
    reserved_words: frozenset[str] = COMMON_RESERVED_WORDS
    default_schema: str | None = None
    lower_case: bool = False
    upper_case_quoted: bool = False
    max_length: int | None = None

    def fold(self, name: str) -> str:
        return name.lower() if self.lower_case else name

    def needs_quoting(self, name: str) -> bool:
        return name.upper() in self.reserved_words or not _PLAIN_IDENTIFIER.match(name)

    def quote(self, name: str) -> str:
        escaped = name.replace(self.quote_end, self.quote_end * 2)
        return f"{self.quote_start}{escaped}{self.quote_end}"

    def preferred(self, name: str) -> str:
        folded = self.fold(name)
        if not self.needs_quoting(folded):
            return folded
        return self.quote(folded.upper() if self.upper_case_quoted else folded)

    def shorten(self, name: str) -> str:
        """Fit a generated name into ``max_length``.

        Over-long names keep their prefix and end in a short digest of the
        full name, so two names sharing a long prefix stay distinct.
        """
        if self.max_length is None or len(name) <= self.max_length:
            return name
        digest = hashlib.sha1(name.encode("utf-8")).hexdigest()[:4].upper()
        return f"{name[: self.max_length - 5]}_{digest}"

    def qualified(self, schema: str | None, name: str) -> str:
        schema = schema or self.default_schema
        if schema:
            return f"{self.preferred(schema)}.{self.preferred(name)}"
        return self.preferred(name)


@dataclass(frozen=True, eq=False)
class Dialect:
    """One database engine's SQL rendering rules, composed from strategies."""

    name: str
    pagination: PaginationStrategy
    time_buckets: TimeBucketRenderer
    identifiers: IdentifierRules = field(default_factory=IdentifierRules)
    default_matcher: DefaultMatcher = field(default_factory=LiteralDefaultMatcher)
    ddl: DdlRenderer = field(default_factory=DdlRenderer)
    type_policies: Mapping[ColumnType, TypePolicy] = field(default_factory=lambda: DEFAULT_TYPE_POLICIES)
    criteria_policies: Mapping[RestrictionType, CriteriaPolicy] = field(
        default_factory=lambda: DEFAULT_CRITERIA_POLICIES
    )
    placeholder_style: PlaceholderStyle = PlaceholderStyle.QMARK
    max_clause_values: int = -1
    max_string_length: int | None = None
    concat_operator: str | None = "||"

    # -- Capability flags --------------------------------------------------
    generates_unique_constraints_on_create_table: bool = False
    generates_indexes_on_create_table: bool = False
    reconstruct_views_on_table_schema_update: bool = False

    # -- Canned queries ----------------------------------------------------
    test_sql: str = "SELECT 1"
    now_sql: str = "SELECT CURRENT_TIMESTAMP"
    utc_timestamp_sql: str = "SELECT CURRENT_TIMESTAMP"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "type_policies", build_type_policies(base=self.type_policies, dialect=self.name)
        )
        object.__setattr__(self, "criteria_policies", build_criteria_policies(self.criteria_policies, dialect=self.name))
        logger.debug("dialect_initialized", dialect=self.name)

    # -- Policies ----------------------------------------------------------

    def swap_column_type(self, column_type: ColumnType, length: int = 0) -> ColumnType:
        """Substitute CLOB for inline text types longer than the engine allows."""
        if (
            self.max_string_length is not None
            and column_type in (ColumnType.STRING, ColumnType.CHARACTER)
            and length > self.max_string_length
        ):
            return ColumnType.CLOB
        return column_type

    def type_policy(self, column_type: ColumnType, length: int = 0) -> TypePolicy:
        swapped = self.swap_column_type(column_type, length)
        policy = self.type_policies.get(swapped)
        if policy is None:
            raise MissingPolicyError("type", swapped, self.name)
        return policy

    def criteria_policy(self, restriction: RestrictionType) -> CriteriaPolicy:
        policy = self.criteria_policies.get(restriction)
        if policy is None:
            raise MissingPolicyError("criteria", restriction, self.name)
        return policy

    def render_default_literal(
        self, column_type: ColumnType, raw_default: str, enum_class: type[Enum] | None = None
    ) -> str:
        return self.type_policy(column_type).render_default_literal(raw_default, enum_class)

    def matches_default(
        self,
        column_type: ColumnType,
        native_default: str | None,
        configured_default: str | None,
        enum_class: type[Enum] | None = None,
    ) -> bool:
        return self.default_matcher.matches(
            self.type_policy(column_type), native_default, configured_default, enum_class
        )

    def column_type_for_native(self, type_name: str) -> list[ColumnType]:
        """Abstract types whose policy accepts a catalog type name (possibly several)."""
        return [t for t, p in self.type_policies.items() if p.matches_native(type_name)]

    # -- Identifiers / placeholders ----------------------------------------

    def quote(self, name: str) -> str:
        return self.identifiers.quote(name)

    def preferred_name(self, name: str) -> str:
        return self.identifiers.preferred(name)

    def generated_name(self, name: str) -> str:
        """Preferred form of a name sqlbridge derives itself (constraints, indexes)."""
        return self.identifiers.preferred(self.identifiers.shorten(name))

    def placeholder(self, index: int) -> str:
        """Placeholder for the 1-based parameter ``index``."""
        if self.placeholder_style is PlaceholderStyle.FORMAT:
            return "%s"
        if self.placeholder_style is PlaceholderStyle.NUMERIC:
            return f":{index}"
        return "?"

    # -- Expressions -------------------------------------------------------

    def concat(self, *expressions: str) -> str:
        if len(expressions) == 1:
            return expressions[0]
        if self.concat_operator is None:
            return f"CONCAT({', '.join(expressions)})"
        return f" {self.concat_operator} ".join(expressions)

    def time_bucket(self, column: str, unit: TimeBucket) -> TimeBucketExpression:
        return TimeBucketExpression(
            truncate=self.time_buckets.truncate(column, unit),
            label=self.time_buckets.label(column, unit),
        )


__all__ = ["COMMON_RESERVED_WORDS", "IdentifierRules", "Dialect"]
