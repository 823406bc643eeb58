"""Tests for cURL rendering."""

from __future__ import annotations

import httpx

from routerkit.curl import to_curl


class TestToCurl:
    def test_get_has_no_method_flag(self):
        command = to_curl(httpx.Request("GET", "https://api.example.com/me"))
        assert command.startswith("curl ")
        assert "-X" not in command
        assert command.endswith("https://api.example.com/me")

    def test_host_header_skipped(self):
        command = to_curl(httpx.Request("GET", "https://api.example.com/me"))
        assert "host:" not in command.lower()

    def test_post_with_headers_and_body(self):
        request = httpx.Request(
            "POST",
            "https://api.example.com/items",
            headers={"Authorization": "Bearer A1", "Content-Type": "application/json"},
            content=b'{"name":"x"}',
        )
        command = to_curl(request)
        assert "-X POST" in command
        assert "-H 'authorization: Bearer A1'" in command
        assert "-H 'content-type: application/json'" in command
        assert "content-length" not in command
        assert """-d '{"name":"x"}'""" in command

    def test_query_string_is_quoted(self):
        request = httpx.Request("GET", "https://api.example.com/items?page=2&tag=a")
        assert to_curl(request).endswith("'https://api.example.com/items?page=2&tag=a'")

    def test_pretty_uses_continuation_lines(self):
        request = httpx.Request(
            "DELETE", "https://api.example.com/items/1", headers={"Accept": "application/json"}
        )
        lines = to_curl(request, pretty=True).split(" \\\n\t")
        assert lines[0] == "curl"
        assert lines[1] == "-X DELETE"
        assert lines[-1] == "https://api.example.com/items/1"
