"""
Pagination strategies.

The emitter appends a select in pieces and asks the dialect's strategy,
in this fixed order, to contribute:

1. ``append_infix`` right after ``SELECT`` (``TOP n``)
2. ``append_where_suffix`` after the WHERE clause (``ROWNUM <= n``)
3. ``append_trailing_suffix`` after ORDER BY (``LIMIT n OFFSET m``)

Each stage returns whether it emitted anything. A strategy implements
exactly one stage; the other two always return False. Offset requests a
limit-only mechanism cannot honor raise UnsupportedPaginationError
instead of being dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from sqlbridge.core.errors import UnsupportedPaginationError


@runtime_checkable
class PaginationStrategy(Protocol):
    """Three-stage limit/offset protocol."""

    def append_infix(self, sql: list[str], offset: int, limit: int) -> bool: ...

    def append_where_suffix(self, sql: list[str], offset: int, limit: int, has_where: bool) -> bool: ...

    def append_trailing_suffix(self, sql: list[str], offset: int, limit: int) -> bool: ...


class _StageDefaults:
    """Every stage declines; concrete strategies override the one they implement."""

    def append_infix(self, sql: list[str], offset: int, limit: int) -> bool:
        return False

    def append_where_suffix(self, sql: list[str], offset: int, limit: int, has_where: bool) -> bool:
        return False

    def append_trailing_suffix(self, sql: list[str], offset: int, limit: int) -> bool:
        return False


@dataclass(frozen=True)
class TopInfixPagination(_StageDefaults):
    """``SELECT TOP n``; no offset support."""

    dialect: str

    def append_infix(self, sql: list[str], offset: int, limit: int) -> bool:
        if offset > 0:
            raise UnsupportedPaginationError(self.dialect, offset, limit)
        if limit > 0:
            sql.append(f" TOP {limit}")
            return True
        return False


@dataclass(frozen=True)
class RowNumWherePagination(_StageDefaults):
    """``ROWNUM <= n`` folded into the WHERE clause; no offset support."""

    dialect: str
    pseudo_column: str = "ROWNUM"

    def append_where_suffix(self, sql: list[str], offset: int, limit: int, has_where: bool) -> bool:
        if offset > 0:
            raise UnsupportedPaginationError(self.dialect, offset, limit)
        if limit > 0:
            keyword = "AND" if has_where else "WHERE"
            sql.append(f" {keyword} {self.pseudo_column} <= {limit}")
            return True
        return False


@dataclass(frozen=True)
class LimitOffsetPagination(_StageDefaults):
    """
    `` LIMIT n OFFSET m``.

    ``unbounded_limit`` is written as the LIMIT when only an offset is
    requested, for engines whose grammar has no bare OFFSET.
    """

    unbounded_limit: int | None = None

    def append_trailing_suffix(self, sql: list[str], offset: int, limit: int) -> bool:
        appended = False
        if limit > 0:
            sql.append(f" LIMIT {limit}")
            appended = True
        elif offset > 0 and self.unbounded_limit is not None:
            sql.append(f" LIMIT {self.unbounded_limit}")
            appended = True
        if offset > 0:
            sql.append(f" OFFSET {offset}")
            appended = True
        return appended


@dataclass(frozen=True)
class FetchNextPagination(_StageDefaults):
    """`` OFFSET m ROWS FETCH NEXT n ROWS ONLY``."""

    def append_trailing_suffix(self, sql: list[str], offset: int, limit: int) -> bool:
        appended = False
        if offset > 0:
            sql.append(f" OFFSET {offset} ROWS")
            appended = True
        if limit > 0:
            word = "NEXT" if offset > 0 else "FIRST"
            sql.append(f" FETCH {word} {limit} ROWS ONLY")
            appended = True
        return appended


__all__ = [
    "PaginationStrategy",
    "TopInfixPagination",
    "RowNumWherePagination",
    "LimitOffsetPagination",
    "FetchNextPagination",
]
