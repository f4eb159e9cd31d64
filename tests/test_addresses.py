"""
Tests for client address resolution.
"""

import pytest
from werkzeug.datastructures import Headers

from visit_analytics.addresses import LOCAL_SENTINEL, normalize_address, resolve_client_address


class TestHeaderPriority:

    def test_cdn_header_wins(self):
        headers = {"cf-connecting-ip": "A", "x-real-ip": "B", "x-forwarded-for": "C,D"}
        assert resolve_client_address(headers, "E") == "A"

    def test_real_ip_without_cdn_header(self):
        headers = {"x-real-ip": "B", "x-forwarded-for": "C,D"}
        assert resolve_client_address(headers, "E") == "B"

    def test_first_forwarded_for_entry(self):
        headers = {"x-forwarded-for": " C , D"}
        assert resolve_client_address(headers, "E") == "C"

    def test_peer_address_fallback(self):
        assert resolve_client_address({}, "203.0.113.9") == "203.0.113.9"

    def test_nothing_at_all(self):
        assert resolve_client_address({}, None) == ""

    def test_header_names_are_case_insensitive(self):
        headers = Headers([("CF-Connecting-IP", "198.51.100.4"), ("X-Real-IP", "B")])
        assert resolve_client_address(headers, None) == "198.51.100.4"

    def test_blank_headers_are_skipped(self):
        headers = {"cf-connecting-ip": "  ", "x-real-ip": "", "x-forwarded-for": "198.51.100.4"}
        assert resolve_client_address(headers, None) == "198.51.100.4"


class TestNormalization:

    @pytest.mark.parametrize("ip", ["::1", "127.0.0.1", "localhost"])
    def test_loopback_becomes_sentinel(self, ip):
        assert normalize_address(ip) == LOCAL_SENTINEL

    def test_strips_ipv4_mapped_prefix(self):
        assert normalize_address("::ffff:203.0.113.7") == "203.0.113.7"

    def test_mapped_loopback(self):
        assert normalize_address("::ffff:127.0.0.1") == LOCAL_SENTINEL

    def test_resolver_normalizes_peer(self):
        assert resolve_client_address({}, "::1") == LOCAL_SENTINEL

    def test_plain_ipv6_untouched(self):
        assert normalize_address("2001:db8::1") == "2001:db8::1"
