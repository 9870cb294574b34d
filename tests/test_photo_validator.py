"""
Tests for photo evidence validation
"""
import asyncio

import pytest

import sys
sys.path.insert(0, '.')

from conftest import FakeResolver, make_photo_validator
from src.crowdsource.photo_validator import (
    PhotoRejectReason,
    is_blocked_address,
    is_localhost,
    is_valid_image_content_type,
    validate_photo_urls,
)


class TestAddressChecks:
    """Test suite for host and address classification."""

    def test_localhost_aliases(self):
        for host in ["localhost", "LOCALHOST", "127.0.0.1", "127.8.9.10", "::1"]:
            assert is_localhost(host)
        assert not is_localhost("example.com")

    def test_blocked_ipv4(self):
        for address in ["10.1.2.3", "172.16.0.1", "172.31.255.255", "192.168.1.1",
                        "169.254.169.254", "127.0.0.1", "0.0.0.0", "100.64.0.1"]:
            assert is_blocked_address(address), address

    def test_blocked_ipv6(self):
        for address in ["::1", "fe80::1", "fe80::1%eth0", "fd00::1", "ff02::1", "::ffff:10.0.0.1"]:
            assert is_blocked_address(address), address

    def test_public_addresses(self):
        for address in ["93.184.216.34", "8.8.8.8", "172.32.0.1", "2606:4700::1111"]:
            assert not is_blocked_address(address), address

    def test_unparseable_address_blocked(self):
        assert is_blocked_address("not-an-ip")

    def test_content_types(self):
        assert is_valid_image_content_type("image/jpeg")
        assert is_valid_image_content_type("IMAGE/PNG")
        assert is_valid_image_content_type("image/png; charset=binary")
        assert is_valid_image_content_type("image/webp")
        assert not is_valid_image_content_type("text/html")
        assert not is_valid_image_content_type("image/gif")
        assert not is_valid_image_content_type(None)


class TestPhotoEvidenceValidator:
    """Test suite for PhotoEvidenceValidator."""

    def setup_method(self):
        self.resolver = FakeResolver()
        self.validator = make_photo_validator(self.resolver)

    def validate(self, url):
        return asyncio.run(self.validator.validate_url(url))

    def test_valid_image(self):
        result = self.validate("https://photos.example.com/a.jpg")
        assert result.valid
        assert result.content_type == "image/jpeg"
        assert result.size_bytes == 2048

    def test_ssrf_rejection_set(self):
        for url in [
            "http://127.0.0.1/a.jpg",
            "http://10.1.2.3/a.jpg",
            "http://192.168.1.1/a.jpg",
            "http://169.254.169.254/latest/meta-data",
        ]:
            result = self.validate(url)
            assert not result.valid, url
            assert result.reason in (PhotoRejectReason.BLOCKED_HOST, PhotoRejectReason.BLOCKED_ADDRESS)

    def test_hostname_resolving_to_private_address(self):
        result = self.validate("https://internal.example.com/a.jpg")
        assert result.reason == PhotoRejectReason.BLOCKED_ADDRESS
        assert "10.0.0.5" in result.error

    def test_any_private_address_rejects(self):
        result = self.validate("https://mixed.example.com/a.jpg")
        assert result.reason == PhotoRejectReason.BLOCKED_ADDRESS

    def test_ftp_rejected_before_dns(self):
        result = self.validate("ftp://photos.example.com/a.jpg")
        assert result.reason == PhotoRejectReason.BAD_SCHEME
        assert "invalid protocol: ftp" in result.error
        assert self.resolver.calls == []

    def test_scheme_case_insensitive(self):
        assert self.validate("HTTPS://photos.example.com/a.jpg").valid

    def test_localhost_rejected_before_dns(self):
        result = self.validate("http://localhost:8080/a.jpg")
        assert result.reason == PhotoRejectReason.BLOCKED_HOST
        assert self.resolver.calls == []

    def test_missing_hostname(self):
        result = self.validate("http:///a.jpg")
        assert not result.valid
        assert result.reason == PhotoRejectReason.BLOCKED_HOST

    def test_dns_failure(self):
        result = self.validate("https://no-such-host.invalid/a.jpg")
        assert result.reason == PhotoRejectReason.DNS_FAILURE

    def test_html_rejected(self):
        result = self.validate("https://photos.example.com/page.html")
        assert result.reason == PhotoRejectReason.CONTENT_TYPE
        assert "text/html" in result.error

    def test_content_type_parameter_ignored(self):
        result = self.validate("https://photos.example.com/typed.png")
        assert result.valid
        assert result.size_bytes is None

    def test_http_error_status(self):
        result = self.validate("https://photos.example.com/missing.jpg")
        assert result.reason == PhotoRejectReason.HTTP_STATUS
        assert result.error == "HTTP 404: URL not accessible"

    def test_connection_error(self):
        result = self.validate("https://photos.example.com/reset.jpg")
        assert result.reason == PhotoRejectReason.CONNECTION_ERROR

    def test_timeout(self):
        validator = make_photo_validator(self.resolver, timeout=0.05)
        result = asyncio.run(validator.validate_url("https://photos.example.com/slow.jpg"))
        assert result.reason == PhotoRejectReason.TIMEOUT

    def test_redirects_within_cap(self):
        assert self.validate("https://photos.example.com/hop/3").valid

    def test_too_many_redirects(self):
        result = self.validate("https://photos.example.com/hop/4")
        assert result.reason == PhotoRejectReason.TOO_MANY_REDIRECTS

    def test_redirect_to_metadata_endpoint(self):
        result = self.validate("https://photos.example.com/to-metadata")
        assert result.reason == PhotoRejectReason.UNSAFE_REDIRECT
        assert "169.254.169.254" in result.error

    def test_batch_independence(self):
        urls = [
            "https://photos.example.com/1.jpg",
            "http://10.1.2.3/2.jpg",
            "https://cdn.example.org/3.jpg",
        ]
        results = asyncio.run(self.validator.validate_all(urls))

        assert [r.url for r in results] == urls
        assert [r.valid for r in results] == [True, False, True]
        assert results[1].reason == PhotoRejectReason.BLOCKED_ADDRESS

    def test_batch_reports_every_failure(self):
        urls = [
            "ftp://photos.example.com/1.jpg",
            "https://photos.example.com/page.html",
            "https://photos.example.com/missing.jpg",
        ]
        results = asyncio.run(self.validator.validate_all(urls))
        assert [r.reason for r in results] == [
            PhotoRejectReason.BAD_SCHEME,
            PhotoRejectReason.CONTENT_TYPE,
            PhotoRejectReason.HTTP_STATUS,
        ]

    def test_batch_concurrency(self):
        """Slow probes overlap instead of running back to back."""
        validator = make_photo_validator(self.resolver, timeout=0.3, max_concurrency=5)
        urls = [f"https://photos.example.com/slow.jpg?n={i}" for i in range(5)]

        async def run():
            loop = asyncio.get_running_loop()
            started = loop.time()
            results = await validator.validate_all(urls)
            return results, loop.time() - started

        results, elapsed = asyncio.run(run())
        assert all(r.reason == PhotoRejectReason.TIMEOUT for r in results)
        assert elapsed < 1.0

    def test_empty_batch(self):
        assert asyncio.run(self.validator.validate_all([])) == []

    def test_result_to_dict(self):
        result = self.validate("http://10.1.2.3/a.jpg")
        data = result.to_dict()
        assert data["valid"] is False
        assert data["reason"] == "blocked_address"


class TestValidatePhotoUrls:
    """Test suite for the synchronous convenience wrapper."""

    def test_rejections_without_network(self):
        results = validate_photo_urls(["ftp://example.com/a.jpg", "http://localhost/b.jpg"])
        assert [r.reason for r in results] == [
            PhotoRejectReason.BAD_SCHEME,
            PhotoRejectReason.BLOCKED_HOST,
        ]
