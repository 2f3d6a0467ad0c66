"""
Hostname cleaning and resolution tests
"""

import asyncio
import socket

import pytest

from binding_validator.bindings.hostname import clean_hostname, is_ip_address, resolve_hostname


class TestCleanHostname:

    @pytest.mark.parametrize("raw_host", [
        "h/<unresolved>:5678",
        "h/<unresolved>",
        "h",
        "  h  ",
        "h/anything/else",
    ])
    def test_strips_platform_annotations(self, raw_host):
        assert clean_hostname(raw_host) == "h"

    def test_removes_marker_without_slash(self):
        assert clean_hostname("db.internal<unresolved>") == "db.internal"

    @pytest.mark.parametrize("raw_host", [None, "", "   ", "/<unresolved>:5678", "<unresolved>", " /x"])
    def test_empty_result_is_none(self, raw_host):
        assert clean_hostname(raw_host) is None

    def test_keeps_ip_addresses(self):
        assert clean_hostname("10.0.0.12") == "10.0.0.12"


class TestResolveHostname:

    @pytest.mark.parametrize("value,expected", [
        ("10.0.0.1", True),
        ("::1", True),
        ("redis.example.com", False),
        ("10.0.0", False),
    ])
    def test_is_ip_address(self, value, expected):
        assert is_ip_address(value) is expected

    @pytest.mark.asyncio
    async def test_ip_address_returned_unchanged(self, monkeypatch):
        loop = asyncio.get_running_loop()

        async def fail_lookup(*args, **kwargs):
            raise AssertionError("IP addresses must not be looked up")

        monkeypatch.setattr(loop, "getaddrinfo", fail_lookup)
        assert await resolve_hostname("192.168.1.20") == "192.168.1.20"

    @pytest.mark.asyncio
    async def test_returns_first_ipv4_address(self, monkeypatch):
        loop = asyncio.get_running_loop()

        async def lookup(host, port, **kwargs):
            assert kwargs["family"] == socket.AF_INET
            return [
                (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.1.2.3", 0)),
                (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.1.2.4", 0)),
            ]

        monkeypatch.setattr(loop, "getaddrinfo", lookup)
        assert await resolve_hostname("redis.example.com") == "10.1.2.3"

    @pytest.mark.asyncio
    async def test_lookup_failure_falls_back_to_hostname(self, monkeypatch):
        loop = asyncio.get_running_loop()

        async def lookup(*args, **kwargs):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(loop, "getaddrinfo", lookup)
        assert await resolve_hostname("missing.example.com") == "missing.example.com"

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_hostname(self, monkeypatch):
        loop = asyncio.get_running_loop()

        async def slow_lookup(*args, **kwargs):
            await asyncio.sleep(5)
            return []

        monkeypatch.setattr(loop, "getaddrinfo", slow_lookup)
        assert await resolve_hostname("slow.example.com", timeout=0.01) == "slow.example.com"

    @pytest.mark.asyncio
    async def test_empty_lookup_result_falls_back_to_hostname(self, monkeypatch):
        loop = asyncio.get_running_loop()

        async def lookup(*args, **kwargs):
            return []

        monkeypatch.setattr(loop, "getaddrinfo", lookup)
        assert await resolve_hostname("empty.example.com") == "empty.example.com"
