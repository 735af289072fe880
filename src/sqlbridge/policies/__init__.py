"""Type and criteria policy tables shared by every dialect."""

from .criteria import (
    DEFAULT_CRITERIA_POLICIES,
    CriteriaPolicy,
    Restriction,
    build_criteria_policies,
)
from .types import (
    DEFAULT_TYPE_POLICIES,
    LobStream,
    TypePolicy,
    build_type_policies,
    override,
)

__all__ = [
    "DEFAULT_CRITERIA_POLICIES",
    "DEFAULT_TYPE_POLICIES",
    "CriteriaPolicy",
    "LobStream",
    "Restriction",
    "TypePolicy",
    "build_criteria_policies",
    "build_type_policies",
    "override",
]
