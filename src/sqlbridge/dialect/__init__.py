"""
Dialects: one composed ``Dialect`` per database engine.

Example:
    >>> from sqlbridge.dialect import get_dialect
    >>> get_dialect("mysql").quote("order")
    '`order`'
"""

from .base import COMMON_RESERVED_WORDS, Dialect, IdentifierRules
from .ddl import DdlRenderer, observed_declaration
from .defaults import DefaultMatcher, LiteralDefaultMatcher
from .pagination import (
    FetchNextPagination,
    LimitOffsetPagination,
    PaginationStrategy,
    RowNumWherePagination,
    TopInfixPagination,
)
from .registry import (
    DB2,
    HSQLDB,
    MSSQL,
    MYSQL,
    ORACLE,
    ORACLE_LEGACY,
    POSTGRESQL,
    available_dialects,
    clear_dialect_cache,
    get_dialect,
    is_known_dialect,
    register_dialect,
)
from .timebuckets import TemplateTimeBuckets, TimeBucketExpression, TimeBucketRenderer

__all__ = [
    # Composition
    "COMMON_RESERVED_WORDS",
    "Dialect",
    "IdentifierRules",
    "DdlRenderer",
    "observed_declaration",
    # Strategies
    "DefaultMatcher",
    "LiteralDefaultMatcher",
    "PaginationStrategy",
    "TopInfixPagination",
    "RowNumWherePagination",
    "LimitOffsetPagination",
    "FetchNextPagination",
    "TemplateTimeBuckets",
    "TimeBucketExpression",
    "TimeBucketRenderer",
    # Registry
    "DB2",
    "HSQLDB",
    "MSSQL",
    "MYSQL",
    "ORACLE",
    "ORACLE_LEGACY",
    "POSTGRESQL",
    "available_dialects",
    "clear_dialect_cache",
    "get_dialect",
    "is_known_dialect",
    "register_dialect",
]
