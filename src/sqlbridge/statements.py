"""
Statement objects handed to the execution layer.

A ``SqlStatement`` is SQL text plus two ordered plans: which value binds
to which placeholder (``parameters``) and how each selected column is
read back (``results``). Both plans carry the TypePolicy that converts
between Python and driver values, so the caller never needs the dialect.

Example:
    >>> stmt = emitter.find_by_pk(entity, 42)
    >>> cursor.execute(stmt.sql, stmt.bind_values())
    >>> record = stmt.extract_row(cursor.fetchone())
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from sqlbridge.core.enums import ColumnType
from sqlbridge.policies.types import TypePolicy


@dataclass(frozen=True)
class SqlParameter:
    """One placeholder's binding: 1-based position, type and raw value."""

    index: int
    column_type: ColumnType
    value: Any
    policy: TypePolicy = dataclasses.field(repr=False, compare=False)
    enum_class: type[Enum] | None = dataclasses.field(default=None, repr=False, compare=False)

    def bound_value(self, utc_offset: int = 0) -> Any:
        return self.policy.bind_parameter(self.value, utc_offset)


@dataclass(frozen=True)
class ResultColumn:
    """One selected column: 0-based position, type and the field it fills."""

    index: int
    column_type: ColumnType
    field: str
    policy: TypePolicy = dataclasses.field(repr=False, compare=False)
    enum_class: type[Enum] | None = dataclasses.field(default=None, repr=False, compare=False)

    def extract(self, row: Sequence[Any], utc_offset: int = 0) -> Any:
        return self.policy.extract_result(row, self.index, self.enum_class, utc_offset)


@dataclass(frozen=True)
class SqlStatement:
    sql: str
    parameters: tuple[SqlParameter, ...] = ()
    results: tuple[ResultColumn, ...] = ()
    utc_offset: int = 0

    def bind_values(self) -> list[Any]:
        return [p.bound_value(self.utc_offset) for p in self.parameters]

    def extract_row(self, row: Sequence[Any]) -> dict[str, Any]:
        return {r.field: r.extract(row, self.utc_offset) for r in self.results}

    def __str__(self) -> str:
        return self.sql


__all__ = ["SqlParameter", "ResultColumn", "SqlStatement"]
