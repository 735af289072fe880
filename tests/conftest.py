"""
Shared pytest fixtures for sqlbridge tests.

This module provides:
- A parametric ``dialect`` fixture that runs a test against every engine
- Per-engine fixtures (``pg``, ``mysql``, ``oracle``, ...)
- Sample entity schemas covering every column type
- Cache isolation for the dialect registry and settings
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import pytest

from sqlbridge.core.enums import ColumnType
from sqlbridge.core.settings import clear_settings_cache
from sqlbridge.dialect import Dialect, available_dialects, clear_dialect_cache, get_dialect
from sqlbridge.schema import (
    CheckConstraintSchemaInfo,
    EntitySchemaInfo,
    FieldSchemaInfo,
    ForeignKeyRef,
    IndexSchemaInfo,
    UniqueConstraintSchemaInfo,
)

ENGINES = ["hsqldb", "oracle", "mssql", "db2", "postgresql", "mysql"]


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark everything outside an ``integration`` directory as a unit test."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_caches():
    """Settings are read from the environment once; tests change it freely."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def fresh_registry():
    """Rebuild dialects on next lookup and drop test registrations afterwards."""
    clear_dialect_cache()
    before = set(available_dialects())
    yield
    from sqlbridge.dialect import registry

    for name in set(available_dialects()) - before:
        registry._FACTORIES.pop(name, None)
    clear_dialect_cache()


# =============================================================================
# Dialects
# =============================================================================


@pytest.fixture(params=ENGINES)
def dialect(request: pytest.FixtureRequest) -> Dialect:
    """Parametric fixture: run each test against every engine."""
    return get_dialect(request.param)


@pytest.fixture
def hsqldb() -> Dialect:
    return get_dialect("hsqldb")


@pytest.fixture
def oracle() -> Dialect:
    return get_dialect("oracle")


@pytest.fixture
def mssql() -> Dialect:
    return get_dialect("mssql")


@pytest.fixture
def db2() -> Dialect:
    return get_dialect("db2")


@pytest.fixture
def pg() -> Dialect:
    return get_dialect("postgresql")


@pytest.fixture
def mysql() -> Dialect:
    return get_dialect("mysql")


# =============================================================================
# Schemas
# =============================================================================


class Status(Enum):
    OPEN = "O"
    CLOSED = "C"


def make_account() -> EntitySchemaInfo:
    """An account table touching every column type.

    Built fresh per test: field schemas resolve once and entities are
    keyed by identity in resolver caches.
    """
    return EntitySchemaInfo(
        table="ACCOUNT",
        fields=(
            FieldSchemaInfo("id", ColumnType.LONG, primary_key=True),
            FieldSchemaInfo("name", ColumnType.STRING, length=64, nullable=False),
            FieldSchemaInfo("initial", ColumnType.CHARACTER),
            FieldSchemaInfo("status", ColumnType.ENUM_CONSTANT, enum_class=Status, default="O", nullable=False),
            FieldSchemaInfo("active", ColumnType.BOOLEAN, default="true", nullable=False),
            FieldSchemaInfo("rank", ColumnType.SHORT),
            FieldSchemaInfo("visits", ColumnType.INTEGER, default="0", nullable=False),
            FieldSchemaInfo("ratio", ColumnType.FLOAT),
            FieldSchemaInfo("score", ColumnType.DOUBLE),
            FieldSchemaInfo("balance", ColumnType.DECIMAL, precision=12, scale=2, default="0.00"),
            FieldSchemaInfo("openedOn", ColumnType.DATE),
            FieldSchemaInfo("updatedAt", ColumnType.TIMESTAMP),
            FieldSchemaInfo("createdAt", ColumnType.TIMESTAMP_UTC),
            FieldSchemaInfo("notes", ColumnType.CLOB),
            FieldSchemaInfo("avatar", ColumnType.BLOB),
            FieldSchemaInfo("ownerId", ColumnType.LONG, foreign_key=ForeignKeyRef("OWNER")),
            FieldSchemaInfo("label", ColumnType.STRING, list_only=True, expression="UPPER(NAME)"),
        ),
        view="ACCOUNT_VIEW",
        indexes=(IndexSchemaInfo("name", ("name",)),),
        unique_constraints=(UniqueConstraintSchemaInfo("owner_name", ("ownerId", "name")),),
        check_constraints=(CheckConstraintSchemaInfo("status", "status", ("O", "C")),),
    )


def make_simple(table: str = "ITEM") -> EntitySchemaInfo:
    return EntitySchemaInfo(
        table=table,
        fields=(
            FieldSchemaInfo("id", ColumnType.INTEGER, primary_key=True),
            FieldSchemaInfo("title", ColumnType.STRING, length=100),
            FieldSchemaInfo("quantity", ColumnType.INTEGER),
        ),
    )


@pytest.fixture
def account() -> EntitySchemaInfo:
    return make_account()


@pytest.fixture
def item() -> EntitySchemaInfo:
    return make_simple()
