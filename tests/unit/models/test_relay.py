"""
Unit tests for models.relay module.

Tests:
- RelayTarget accepts wss:// URLs only
- Host and port extraction
- Rejection of queries, fragments, null bytes and non-strings
"""

import pytest

from shrine.models import RelayTarget


class TestRelayTarget:
    """RelayTarget construction and validation."""

    def test_valid(self):
        target = RelayTarget("wss://relay.damus.io")
        assert target.url == "wss://relay.damus.io"
        assert target.host == "relay.damus.io"
        assert target.port is None
        assert str(target) == "wss://relay.damus.io"

    def test_port_and_path(self):
        target = RelayTarget("wss://relay.example.com:7447/nostr")
        assert target.port == 7447
        assert target.host == "relay.example.com"

    def test_ipv6_host(self):
        assert RelayTarget("wss://[::1]:7777").host == "::1"

    def test_strips_whitespace(self):
        assert RelayTarget("  wss://relay.example.com ").url == "wss://relay.example.com"

    @pytest.mark.parametrize(
        "url",
        [
            "ws://relay.example.com",
            "http://relay.example.com",
            "https://relay.example.com",
            "relay.example.com",
            "WSS://relay.example.com",
        ],
    )
    def test_rejects_other_schemes(self, url):
        with pytest.raises(ValueError, match="wss://"):
            RelayTarget(url)

    def test_rejects_missing_host(self):
        with pytest.raises(ValueError):
            RelayTarget("wss://")

    def test_rejects_query(self):
        with pytest.raises(ValueError, match="query"):
            RelayTarget("wss://relay.example.com/?token=1")

    def test_rejects_fragment(self):
        with pytest.raises(ValueError, match="fragment"):
            RelayTarget("wss://relay.example.com/#top")

    def test_rejects_null_bytes(self):
        with pytest.raises(ValueError, match="null"):
            RelayTarget("wss://relay.example.com\x00")

    @pytest.mark.parametrize("url", [None, 42, ["wss://relay.example.com"]])
    def test_rejects_non_strings(self, url):
        with pytest.raises(ValueError, match="string"):
            RelayTarget(url)  # type: ignore[arg-type]

    def test_equality(self):
        assert RelayTarget("wss://a.example.com") == RelayTarget("wss://a.example.com")
