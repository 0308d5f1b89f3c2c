"""Tests for the registry table and the structural resolver."""

import pytest

from registry_router.lib.classifier import classify
from registry_router.lib.errors import ResolutionFailure
from registry_router.lib.registry import RegistryEndpoint, RegistryTable
from registry_router.lib.resolver import resolve
from registry_router.lib.settings import RegistryConfig

from fakes import PRIVATE, PUBLIC

MIRROR = "https://mirror.example.com/npm"


@pytest.fixture
def table() -> RegistryTable:
    return RegistryTable.from_config([
        RegistryConfig(url=PRIVATE, packages=["cdb", "@myorg/*"]),
        RegistryConfig(url=PUBLIC),
    ])


class TestRegistryTable:
    def test_empty_table_fails_at_construction(self):
        with pytest.raises(ResolutionFailure):
            RegistryTable([])

    def test_order_is_index(self, table):
        assert [e.index for e in table] == [0, 1]
        assert table.primary.base_url == PRIVATE
        assert table[1].base_url == PUBLIC

    def test_fallback_is_first_endpoint_without_rules(self):
        table = RegistryTable.from_config([
            RegistryConfig(url=PRIVATE, packages=["cdb"]),
            RegistryConfig(url=MIRROR),
            RegistryConfig(url=PUBLIC),
        ])
        assert table.fallback.base_url == MIRROR

    def test_fallback_is_last_when_every_endpoint_has_rules(self):
        table = RegistryTable.from_config([
            RegistryConfig(url=PRIVATE, packages=["cdb"]),
            RegistryConfig(url=PUBLIC, packages=["*"]),
        ])
        assert table.fallback.base_url == PUBLIC

    def test_identity_is_base_url(self):
        assert RegistryEndpoint(PUBLIC, 0) == RegistryEndpoint(PUBLIC, 3, ("x",))

    def test_trailing_slash_is_stripped(self):
        table = RegistryTable.from_config([RegistryConfig(url=PUBLIC + "/")])
        assert table.primary.base_url == PUBLIC


class TestResolve:
    def test_private_package(self, table):
        assert resolve(classify("/cdb"), "GET", table).base_url == PRIVATE

    def test_public_package(self, table):
        assert resolve(classify("/core-util-is"), "GET", table).base_url == PUBLIC

    def test_versioned_and_tarball_follow_the_package(self, table):
        assert resolve(classify("/cdb/0.0.1"), "HEAD", table).base_url == PRIVATE
        assert resolve(classify("/cdb/-/cdb-0.0.1.tgz"), "GET", table).base_url == PRIVATE

    def test_scope_rule(self, table):
        assert resolve(classify("/@myorg/widget"), "GET", table).base_url == PRIVATE
        assert resolve(classify("/@scope/module"), "GET", table).base_url == PUBLIC

    def test_name_rule_does_not_match_prefix(self, table):
        assert resolve(classify("/cdb-extra"), "GET", table).base_url == PUBLIC

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "put"])
    def test_writes_go_to_primary(self, table, method):
        assert resolve(classify("/core-util-is"), method, table).base_url == PRIVATE

    def test_non_package_read_goes_to_fallback(self, table):
        assert resolve(None, "GET", table).base_url == PUBLIC

    def test_non_package_write_goes_to_primary(self, table):
        assert resolve(None, "PUT", table).base_url == PRIVATE

    def test_lowest_index_wins(self):
        table = RegistryTable.from_config([
            RegistryConfig(url=PRIVATE, packages=["@myorg/*"]),
            RegistryConfig(url=MIRROR, packages=["@myorg/*", "left-pad"]),
            RegistryConfig(url=PUBLIC),
        ])
        assert resolve(classify("/@myorg/a"), "GET", table).base_url == PRIVATE
        assert resolve(classify("/left-pad"), "GET", table).base_url == MIRROR
