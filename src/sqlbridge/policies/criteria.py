"""
Criteria policies: WHERE-clause fragment renderers, one per RestrictionType.

Policies are stateless string composition over a field reference and
operand placeholders that the caller has already allocated. The only
dialect input is the maximum number of values one IN list may carry;
longer lists are split into OR-ed (or, for NOT IN, AND-ed) blocks.

``Restriction`` is the parsed criteria tree the emitter walks to turn
criteria into a fragment plus an ordered binding plan.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from sqlbridge.core.enums import RestrictionType
from sqlbridge.core.errors import DataError, MissingPolicyError


@dataclass(frozen=True)
class CriteriaPolicy:
    """Base renderer. ``operand_count`` of None means any number (at least one)."""

    restriction: RestrictionType
    operator: str
    operand_count: int | None = 1

    def render(self, field_ref: str | None, operands: Sequence[str], max_clause_values: int = -1) -> str:
        self._check_operands(operands)
        return self._render(field_ref, list(operands), max_clause_values)

    def _render(self, field_ref: str | None, operands: list[str], max_clause_values: int) -> str:
        return f"{field_ref} {self.operator} {operands[0]}"

    def like_value(self, value: Any) -> Any:
        return value

    def _check_operands(self, operands: Sequence[str]) -> None:
        if self.operand_count is None:
            if not operands:
                raise DataError(f"{self.restriction.name} requires at least one operand")
        elif len(operands) != self.operand_count:
            raise DataError(
                f"{self.restriction.name} requires {self.operand_count} operand(s), got {len(operands)}"
            )


@dataclass(frozen=True)
class ComparisonPolicy(CriteriaPolicy):
    pass


@dataclass(frozen=True)
class LikePolicy(CriteriaPolicy):
    prefix: str = "%"
    suffix: str = "%"

    def like_value(self, value: Any) -> Any:
        return f"{self.prefix}{value}{self.suffix}"


@dataclass(frozen=True)
class RangePolicy(CriteriaPolicy):
    operand_count: int | None = 2

    def _render(self, field_ref: str | None, operands: list[str], max_clause_values: int) -> str:
        return f"{field_ref} {self.operator} {operands[0]} AND {operands[1]}"


@dataclass(frozen=True)
class CollectionPolicy(CriteriaPolicy):
    """IN / NOT IN, split into blocks of at most ``max_clause_values`` values."""

    operand_count: int | None = None
    joiner: str = "OR"

    def _render(self, field_ref: str | None, operands: list[str], max_clause_values: int) -> str:
        if max_clause_values <= 0 or len(operands) <= max_clause_values:
            return f"{field_ref} {self.operator} ({', '.join(operands)})"
        blocks = [
            f"{field_ref} {self.operator} ({', '.join(operands[i:i + max_clause_values])})"
            for i in range(0, len(operands), max_clause_values)
        ]
        return "(" + f" {self.joiner} ".join(blocks) + ")"


@dataclass(frozen=True)
class NullPolicy(CriteriaPolicy):
    operand_count: int | None = 0

    def _render(self, field_ref: str | None, operands: list[str], max_clause_values: int) -> str:
        return f"{field_ref} {self.operator}"


@dataclass(frozen=True)
class CompoundPolicy(CriteriaPolicy):
    """AND / OR over already-rendered sub-fragments; ``field_ref`` is ignored."""

    operand_count: int | None = None

    def _render(self, field_ref: str | None, operands: list[str], max_clause_values: int) -> str:
        if len(operands) == 1:
            return operands[0]
        return "(" + f" {self.operator} ".join(operands) + ")"


_R = RestrictionType

DEFAULT_CRITERIA_POLICIES: Mapping[RestrictionType, CriteriaPolicy] = MappingProxyType(
    {
        _R.EQUALS: ComparisonPolicy(_R.EQUALS, "="),
        _R.NOT_EQUALS: ComparisonPolicy(_R.NOT_EQUALS, "<>"),
        _R.LESS_THAN: ComparisonPolicy(_R.LESS_THAN, "<"),
        _R.LESS_OR_EQUAL: ComparisonPolicy(_R.LESS_OR_EQUAL, "<="),
        _R.GREATER: ComparisonPolicy(_R.GREATER, ">"),
        _R.GREATER_OR_EQUAL: ComparisonPolicy(_R.GREATER_OR_EQUAL, ">="),
        _R.LIKE: LikePolicy(_R.LIKE, "LIKE"),
        _R.NOT_LIKE: LikePolicy(_R.NOT_LIKE, "NOT LIKE"),
        _R.BEGINS_WITH: LikePolicy(_R.BEGINS_WITH, "LIKE", prefix=""),
        _R.NOT_BEGIN_WITH: LikePolicy(_R.NOT_BEGIN_WITH, "NOT LIKE", prefix=""),
        _R.ENDS_WITH: LikePolicy(_R.ENDS_WITH, "LIKE", suffix=""),
        _R.NOT_END_WITH: LikePolicy(_R.NOT_END_WITH, "NOT LIKE", suffix=""),
        _R.BETWEEN: RangePolicy(_R.BETWEEN, "BETWEEN"),
        _R.NOT_BETWEEN: RangePolicy(_R.NOT_BETWEEN, "NOT BETWEEN"),
        _R.IN: CollectionPolicy(_R.IN, "IN"),
        _R.NOT_IN: CollectionPolicy(_R.NOT_IN, "NOT IN", joiner="AND"),
        _R.IS_NULL: NullPolicy(_R.IS_NULL, "IS NULL"),
        _R.IS_NOT_NULL: NullPolicy(_R.IS_NOT_NULL, "IS NOT NULL"),
        _R.AND: CompoundPolicy(_R.AND, "AND"),
        _R.OR: CompoundPolicy(_R.OR, "OR"),
    }
)
del _R


def build_criteria_policies(
    overrides: Mapping[RestrictionType, CriteriaPolicy] | None = None,
    *,
    dialect: str | None = None,
) -> Mapping[RestrictionType, CriteriaPolicy]:
    """Merge overrides onto the default table, check completeness, freeze."""
    table = dict(DEFAULT_CRITERIA_POLICIES)
    table.update(overrides or {})
    for restriction in RestrictionType:
        if restriction not in table:
            raise MissingPolicyError("criteria", restriction, dialect)
    return MappingProxyType(table)


@dataclass(frozen=True)
class Restriction:
    """
    Node of a parsed criteria tree.

    Leaves carry a field name and operand values; AND/OR nodes carry children.

    >>> Restriction.all(
    ...     Restriction.of(RestrictionType.EQUALS, "status", "OPEN"),
    ...     Restriction.of(RestrictionType.IS_NULL, "closedOn"),
    ... ).type
    <RestrictionType.AND: 'and'>
    """

    type: RestrictionType
    field: str | None = None
    values: tuple[Any, ...] = ()
    children: tuple[Restriction, ...] = ()

    @classmethod
    def of(cls, restriction: RestrictionType, field: str, *values: Any) -> Restriction:
        if restriction.is_compound:
            raise DataError(f"{restriction.name} takes child restrictions, not a field")
        if restriction.is_collection and len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
            values = tuple(values[0])
        return cls(restriction, field, tuple(values))

    @classmethod
    def all(cls, *children: Restriction) -> Restriction:
        return cls(RestrictionType.AND, children=tuple(children))

    @classmethod
    def any(cls, *children: Restriction) -> Restriction:
        return cls(RestrictionType.OR, children=tuple(children))


__all__ = [
    "CriteriaPolicy",
    "ComparisonPolicy",
    "LikePolicy",
    "RangePolicy",
    "CollectionPolicy",
    "NullPolicy",
    "CompoundPolicy",
    "DEFAULT_CRITERIA_POLICIES",
    "build_criteria_policies",
    "Restriction",
]
