"""Tests for the package path classifier."""

import pytest

from registry_router.lib.classifier import PackageRef, classify
from registry_router.lib.errors import NotAPackagePath


class TestClassify:
    def test_unscoped_name(self):
        assert classify("/cdb") == PackageRef(name="cdb")

    def test_unscoped_version(self):
        ref = classify("/cdb/0.0.1")
        assert ref.name == "cdb"
        assert ref.version == "0.0.1"
        assert ref.rest == ()

    def test_unscoped_tarball(self):
        ref = classify("/cdb/-/cdb-0.0.1.tgz")
        assert ref.version is None
        assert ref.rest == ("-", "cdb-0.0.1.tgz")

    def test_scoped_literal_slash(self):
        ref = classify("/@scope/module")
        assert ref.scope == "scope"
        assert ref.name == "module"
        assert ref.version is None
        assert ref.full_name == "@scope/module"

    def test_scoped_slash_is_not_a_version_separator(self):
        ref = classify("/@scope/module/1.2.3")
        assert (ref.scope, ref.name, ref.version) == ("scope", "module", "1.2.3")

    @pytest.mark.parametrize("path", ["/@scope%2Fmodule", "/@scope%2fmodule", "/%40scope%2Fmodule"])
    def test_scoped_escaped_slash(self, path):
        ref = classify(path)
        assert ref.scope == "scope"
        assert ref.name == "module"

    def test_scoped_escaped_with_version(self):
        ref = classify("/@scope%2Fmodule/2.0.0")
        assert ref.version == "2.0.0"

    def test_scoped_tarball(self):
        ref = classify("/@scope/module/-/module-1.0.0.tgz")
        assert ref.full_name == "@scope/module"
        assert ref.rest == ("-", "module-1.0.0.tgz")

    def test_percent_decoded_name(self):
        assert classify("/%C3%A5").name == "å"

    def test_query_is_ignored(self):
        assert classify("/cdb?write=true") == PackageRef(name="cdb")

    def test_trailing_slash(self):
        assert classify("/cdb/") == PackageRef(name="cdb")

    @pytest.mark.parametrize(
        "path",
        [
            "/",
            "",
            "/-/by-field",
            "/-/v1/search",
            "/-/user/org.couchdb.user:bob",
            "/_utils/index.html",
            "/_session",
            "/.hidden",
            "/@scope",
            "/@scope/",
            "/@/module",
            "/foo%2Fbar",
            "/x/..",
            "/x/%2e%2e/_utils/index.html",
            "/cdb/./0.0.1",
            "/@scope/%2E%2E",
            "/@scope%2F..",
        ],
    )
    def test_not_a_package_path(self, path):
        with pytest.raises(NotAPackagePath):
            classify(path)


class TestToPath:
    @pytest.mark.parametrize(
        "path",
        [
            "/cdb",
            "/cdb/0.0.1",
            "/cdb/-/cdb-0.0.1.tgz",
            "/@scope/module",
            "/@scope/module/1.0.0",
            "/@scope/module/-/module-1.0.0.tgz",
            "/@my-org/my.pkg/latest",
            "/%C3%A5",
        ],
    )
    def test_round_trip_is_identity(self, path):
        assert classify(path).to_path() == path

    def test_escape_scope_for_upstream(self):
        assert classify("/@scope/module/1.0.0").to_path(escape_scope=True) == "/@scope%2Fmodule/1.0.0"

    def test_escape_scope_leaves_unscoped_alone(self):
        assert classify("/cdb/0.0.1").to_path(escape_scope=True) == "/cdb/0.0.1"

    def test_escaped_input_reconstructs_literal(self):
        assert classify("/@scope%2Fmodule").to_path() == "/@scope/module"
