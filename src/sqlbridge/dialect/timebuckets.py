"""
Time-bucket expressions.

Bucketing needs two different expressions for the same unit: one that
truncates a timestamp to the bucket start (for ordering and equality)
and one that renders a sortable, zero-padded label (for display and
grouping keys). Engines spell these with different functions and do not
all support every unit, so each dialect supplies template tables and a
unit missing from either table raises UnsupportedTimeBucketError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Protocol, runtime_checkable

from sqlbridge.core.enums import TimeBucket
from sqlbridge.core.errors import UnsupportedTimeBucketError


@dataclass(frozen=True)
class TimeBucketExpression:
    truncate: str
    label: str


@runtime_checkable
class TimeBucketRenderer(Protocol):
    def truncate(self, column: str, unit: TimeBucket) -> str: ...

    def label(self, column: str, unit: TimeBucket) -> str: ...

    def supports(self, unit: TimeBucket) -> bool: ...


@dataclass(frozen=True)
class TemplateTimeBuckets:
    """Renderer driven by ``{column}`` templates keyed by unit."""

    dialect: str
    truncations: Mapping[TimeBucket, str] = field(default_factory=dict)
    labels: Mapping[TimeBucket, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "truncations", MappingProxyType(dict(self.truncations)))
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    def supports(self, unit: TimeBucket) -> bool:
        return unit in self.truncations and unit in self.labels

    def truncate(self, column: str, unit: TimeBucket) -> str:
        return self._render(self.truncations, column, unit)

    def label(self, column: str, unit: TimeBucket) -> str:
        return self._render(self.labels, column, unit)

    def _render(self, table: Mapping[TimeBucket, str], column: str, unit: TimeBucket) -> str:
        template = table.get(unit)
        if template is None:
            raise UnsupportedTimeBucketError(self.dialect, unit)
        return template.replace("{column}", column)


def pattern_labels(function: str, *, iso_week: bool = True) -> dict[TimeBucket, str]:
    """Label templates for engines with an Oracle-style ``FUNC(col, 'pattern')`` formatter."""
    patterns = {
        TimeBucket.HOUR: "YYYY-MM-DD HH24",
        TimeBucket.DAY: "YYYY-MM-DD",
        TimeBucket.DAY_OF_WEEK: "D",
        TimeBucket.DAY_OF_MONTH: "DD",
        TimeBucket.DAY_OF_YEAR: "DDD",
        TimeBucket.MONTH: "YYYY-MM",
        TimeBucket.YEAR: "YYYY",
    }
    if iso_week:
        patterns[TimeBucket.WEEK] = "IYYY-IW"
    return {unit: f"{function}({{column}}, '{pattern}')" for unit, pattern in patterns.items()}


def trunc_truncations(function: str, hour: str = "HH") -> dict[TimeBucket, str]:
    """Truncation templates for engines with a ``TRUNC(col, 'unit')`` style function."""
    units = {
        TimeBucket.HOUR: hour,
        TimeBucket.DAY: "DD",
        TimeBucket.WEEK: "IW",
        TimeBucket.MONTH: "MM",
        TimeBucket.YEAR: "YYYY",
    }
    return {unit: f"{function}({{column}}, '{code}')" for unit, code in units.items()}


__all__ = [
    "TimeBucketExpression",
    "TimeBucketRenderer",
    "TemplateTimeBuckets",
    "pattern_labels",
    "trunc_truncations",
]
