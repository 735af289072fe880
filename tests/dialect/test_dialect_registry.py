"""Tests for the dialect registry."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest

from sqlbridge.core.errors import UnknownDialectError
from sqlbridge.dialect import available_dialects, clear_dialect_cache, get_dialect, register_dialect
from sqlbridge.dialect.postgresql import create_postgresql_dialect


class TestLookup:
    def test_all_engines_registered(self):
        assert set(available_dialects()) >= {
            "hsqldb", "oracle", "oracle11", "mssql", "db2", "postgresql", "mysql",
        }  # fmt: skip

    @pytest.mark.parametrize(
        "name, expected",
        [("Postgres", "postgresql"), (" SQLServer ", "mssql"), ("ORACLE", "oracle"), ("oracle11", "oracle11")],
    )
    def test_aliases_and_case(self, name, expected):
        assert get_dialect(name).name == expected

    def test_instances_are_shared(self):
        assert get_dialect("db2") is get_dialect("DB2")

    def test_unknown_name(self):
        with pytest.raises(UnknownDialectError) as exc:
            get_dialect("sybase")
        assert exc.value.name == "sybase"
        assert "mysql" in exc.value.available
        assert "Supported:" in str(exc.value)

    def test_concurrent_first_lookup(self, fresh_registry):
        with ThreadPoolExecutor(max_workers=8) as pool:
            dialects = list(pool.map(lambda _: get_dialect("mysql"), range(32)))
        assert all(d is dialects[0] for d in dialects)


class TestRegistration:
    def test_register_instance(self, fresh_registry):
        custom = replace(create_postgresql_dialect(), name="redshift")
        register_dialect("Redshift", custom)
        assert get_dialect("redshift") is custom
        assert "redshift" in available_dialects()

    def test_register_factory(self, fresh_registry):
        register_dialect("pg-strict", lambda: replace(create_postgresql_dialect(), name="pg-strict"))
        first = get_dialect("pg-strict")
        assert first.name == "pg-strict"
        assert get_dialect("pg-strict") is first

    def test_reregistering_replaces_cached_instance(self, fresh_registry):
        register_dialect("custom", lambda: replace(create_postgresql_dialect(), name="custom"))
        first = get_dialect("custom")
        register_dialect("custom", lambda: replace(create_postgresql_dialect(), name="custom"))
        assert get_dialect("custom") is not first

    def test_clear_cache_rebuilds(self, fresh_registry):
        before = get_dialect("hsqldb")
        clear_dialect_cache()
        assert get_dialect("hsqldb") is not before
