"""
Default-value matching.

Catalogs hand defaults back in whatever shape the engine stored them:
SQL Server wraps them in parentheses (``((0))``, ``('abc')``), PostgreSQL
appends casts (``'abc'::character varying``), Oracle keeps the original
expression text with trailing whitespace (``TO_TIMESTAMP('...', '...') ``),
MySQL strips the quotes entirely. A matcher peels off the wrappers its
engine adds and compares what is left with the configured default
through the column's TypePolicy, so ``'0.00'`` matches ``"0"`` for a
DECIMAL and ``'Y'`` matches ``"true"`` for a CHAR(1) boolean.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from sqlbridge.policies.types import TypePolicy

_CAST_SUFFIX = re.compile(r"::\s*[a-z_][a-z0-9_ ]*(\(\s*\d+(\s*,\s*\d+)?\s*\))?(\[\])?\s*$", re.IGNORECASE)
_CALL = re.compile(r"^([a-z_][a-z0-9_]*)\s*\((.*)\)$", re.IGNORECASE | re.DOTALL)
_TYPED_LITERAL = re.compile(r"^(DATE|TIMESTAMP|X)\s*(?=')", re.IGNORECASE)
_NULL_TOKENS = frozenset({"NULL"})


@runtime_checkable
class DefaultMatcher(Protocol):
    """Decides whether a catalog default equals a configured default."""

    def matches(
        self,
        policy: TypePolicy,
        native_default: str | None,
        configured_default: str | None,
        enum_class: type[Enum] | None = None,
    ) -> bool: ...


def _wrapped_in_parentheses(text: str) -> bool:
    if not (text.startswith("(") and text.endswith(")")):
        return False
    depth = 0
    in_quote = False
    for i, ch in enumerate(text):
        if ch == "'":
            in_quote = not in_quote
        elif not in_quote:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0 and i != len(text) - 1:
                    return False
    return depth == 0


def _single_quoted(text: str) -> str | None:
    """Content of ``text`` if it is exactly one single-quoted literal."""
    if len(text) < 2 or text[0] != "'":
        return None
    i = 1
    while i < len(text):
        if text[i] == "'":
            if i + 1 < len(text) and text[i + 1] == "'":
                i += 2
                continue
            return text[1:i].replace("''", "'") if i == len(text) - 1 else None
        i += 1
    return None


def _first_argument(args: str) -> str:
    depth = 0
    in_quote = False
    for i, ch in enumerate(args):
        if ch == "'":
            in_quote = not in_quote
        elif not in_quote:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            elif ch == "," and depth == 0:
                return args[:i].strip()
    return args.strip()


@dataclass(frozen=True)
class LiteralDefaultMatcher:
    """
    Configurable unwrapping matcher.

    Attributes:
        strip_parentheses: Remove balanced outer parentheses (SQL Server, PostgreSQL)
        strip_casts: Remove trailing ``::type`` casts (PostgreSQL)
        national_prefix: Accept ``N'...'`` literals (SQL Server)
        function_wrappers: Literal-producing calls whose first argument is the value
    """

    strip_parentheses: bool = False
    strip_casts: bool = False
    national_prefix: bool = False
    function_wrappers: frozenset[str] = frozenset()

    def unwrap(self, native_default: str | None) -> str | None:
        """Reduce a catalog default to its bare value, or None for no default."""
        if native_default is None:
            return None
        text = native_default.strip()
        while True:
            before = text
            if self.strip_parentheses and _wrapped_in_parentheses(text):
                text = text[1:-1].strip()
            if self.strip_casts:
                text = _CAST_SUFFIX.sub("", text).strip()
            if self.function_wrappers:
                call = _CALL.match(text)
                if call and call.group(1).upper() in self.function_wrappers:
                    text = _first_argument(call.group(2))
            if self.national_prefix and text[:2] in ("N'", "n'"):
                text = text[1:]
            text = _TYPED_LITERAL.sub("", text)
            if text == before:
                break
        if text.upper() in _NULL_TOKENS:
            return None
        quoted = _single_quoted(text)
        return quoted if quoted is not None else text

    def matches(
        self,
        policy: TypePolicy,
        native_default: str | None,
        configured_default: str | None,
        enum_class: type[Enum] | None = None,
    ) -> bool:
        observed = self.unwrap(native_default)
        if observed is None or configured_default is None:
            return observed is None and configured_default is None
        return policy.canonical_default(observed, enum_class) == policy.canonical_default(
            configured_default, enum_class
        )


__all__ = ["DefaultMatcher", "LiteralDefaultMatcher"]
