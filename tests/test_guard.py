"""Tests for the administrative path guard."""

import pytest

from registry_router.lib.guard import AdminPathGuard, error_response, normalize_path, wants_json


@pytest.fixture
def guard() -> AdminPathGuard:
    return AdminPathGuard(["/_utils", "/_utils/*"])


class TestAdminPathGuard:
    @pytest.mark.parametrize("path", ["/_utils", "/_utils/", "/_utils/index.html", "/_utils/script/app.js"])
    def test_blocked(self, guard, path):
        assert guard.is_blocked(path)

    @pytest.mark.parametrize("path", ["/", "/cdb", "/_session", "/-/by-field", "/utils", "/cdb/_utils"])
    def test_allowed(self, guard, path):
        assert not guard.is_blocked(path)

    @pytest.mark.parametrize("path", ["/x/../_utils/index.html", "/_utils/./", "//_utils", "/-/../_utils/a/../b"])
    def test_dot_segments_resolved_before_matching(self, guard, path):
        assert guard.is_blocked(path)

    @pytest.mark.parametrize("path, expected", [
        ("/x/../_utils/index.html", "/_utils/index.html"),
        ("/_utils/", "/_utils/"),
        ("/../..", "/"),
        ("", "/"),
        ("/cdb//0.0.1", "/cdb/0.0.1"),
    ])
    def test_normalize_path(self, path, expected):
        assert normalize_path(path) == expected

    def test_no_patterns_blocks_nothing(self):
        assert not AdminPathGuard([]).is_blocked("/_utils")

    def test_blocked_response_html_by_default(self, guard):
        res = guard.blocked_response("/_utils", {"accept": "text/html,*/*"})
        assert res.status_code == 403
        assert res.media_type == "text/html"
        assert b"403 Forbidden" in res.body

    def test_blocked_response_json_for_json_clients(self, guard):
        res = guard.blocked_response("/_utils", {"accept": "application/json"})
        assert res.status_code == 403
        assert res.media_type == "application/json"
        assert b'"statusCode":403' in res.body


class TestNegotiation:
    @pytest.mark.parametrize(
        "headers",
        [
            {"accept": "application/json"},
            {"accept": "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8"},
            {"content-type": "application/json"},
        ],
    )
    def test_wants_json(self, headers):
        assert wants_json(headers)

    @pytest.mark.parametrize("headers", [{}, {"accept": "*/*"}, {"accept": "text/html"}])
    def test_wants_html(self, headers):
        assert not wants_json(headers)

    def test_error_response_escapes_message(self):
        res = error_response(500, "<script>", {})
        assert b"<script>" not in res.body
        assert b"500 Internal Server Error" in res.body
