"""
Dialect registry.

Engine modules register factories; ``get_dialect`` builds each dialect
once, on first request, and hands out the same immutable instance after
that. Construction runs the policy completeness checks, so a broken
table surfaces on first use of that engine only.
"""

from __future__ import annotations

import threading
from typing import Callable, Union

from sqlbridge.core.errors import UnknownDialectError
from sqlbridge.core.logging import get_logger
from sqlbridge.dialect import db2, hsqldb, mssql, mysql, oracle, postgresql
from sqlbridge.dialect.base import Dialect

logger = get_logger(__name__)

DialectFactory = Callable[[], Dialect]

HSQLDB = hsqldb.NAME
ORACLE = oracle.NAME
ORACLE_LEGACY = oracle.LEGACY_NAME
MSSQL = mssql.NAME
DB2 = db2.NAME
POSTGRESQL = postgresql.NAME
MYSQL = mysql.NAME

_FACTORIES: dict[str, DialectFactory] = {
    HSQLDB: hsqldb.create_hsqldb_dialect,
    ORACLE: oracle.create_oracle_dialect,
    ORACLE_LEGACY: oracle.create_legacy_oracle_dialect,
    MSSQL: mssql.create_mssql_dialect,
    DB2: db2.create_db2_dialect,
    POSTGRESQL: postgresql.create_postgresql_dialect,
    MYSQL: mysql.create_mysql_dialect,
}

_ALIASES: dict[str, str] = {
    "postgres": POSTGRESQL,
    "sqlserver": MSSQL,
}

_DIALECTS: dict[str, Dialect] = {}
_lock = threading.Lock()


def _canonical(name: str) -> str:
    key = name.strip().lower()
    return _ALIASES.get(key, key)


def get_dialect(name: str) -> Dialect:
    """Get a dialect by registry name or alias.

    Args:
        name: One of ``'hsqldb'``, ``'oracle'``, ``'oracle11'``, ``'mssql'``,
              ``'db2'``, ``'postgresql'``, ``'mysql'`` (or an alias such as
              ``'postgres'``/``'sqlserver'``). Case-insensitive.

    Raises:
        UnknownDialectError: If ``name`` is not registered.

    Example:
        >>> get_dialect("Postgres").name
        'postgresql'
    """
    key = _canonical(name)
    dialect = _DIALECTS.get(key)
    if dialect is not None:
        return dialect
    with _lock:
        dialect = _DIALECTS.get(key)
        if dialect is None:
            factory = _FACTORIES.get(key)
            if factory is None:
                raise UnknownDialectError(name, available_dialects())
            dialect = factory()
            _DIALECTS[key] = dialect
            logger.info("dialect_built", dialect=key)
    return dialect


def register_dialect(name: str, dialect: Union[Dialect, DialectFactory]) -> None:
    """Register a custom dialect instance or factory under ``name``.

    Replaces any cached instance, so tests can swap in doubles.
    """
    key = name.strip().lower()
    with _lock:
        if isinstance(dialect, Dialect):
            _FACTORIES[key] = lambda: dialect
            _DIALECTS[key] = dialect
        else:
            _FACTORIES[key] = dialect
            _DIALECTS.pop(key, None)
    logger.debug("dialect_registered", dialect=key, instance=isinstance(dialect, Dialect))


def available_dialects() -> list[str]:
    return sorted(_FACTORIES)


def is_known_dialect(name: str) -> bool:
    """True when ``name`` is a registered dialect or one of its aliases."""
    return _canonical(name) in _FACTORIES


def clear_dialect_cache() -> None:
    """Drop built instances; the next lookup rebuilds from the factory."""
    with _lock:
        _DIALECTS.clear()


__all__ = [
    "HSQLDB",
    "ORACLE",
    "ORACLE_LEGACY",
    "MSSQL",
    "DB2",
    "POSTGRESQL",
    "MYSQL",
    "DialectFactory",
    "get_dialect",
    "register_dialect",
    "available_dialects",
    "is_known_dialect",
    "clear_dialect_cache",
]
