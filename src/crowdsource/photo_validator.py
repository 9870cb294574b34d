"""
Photo evidence validation with SSRF protection

A photo URL is trusted only after it passes, in order:
scheme check, host check, DNS resolution, private-address check, a HEAD
probe (redirect targets re-checked), and an image content-type check.
"""

import asyncio
import ipaddress
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence
from urllib.parse import urljoin, urlsplit

import httpx

from src.core.constants import (
    ALLOWED_IMAGE_CONTENT_TYPES,
    ALLOWED_PHOTO_SCHEMES,
    BLOCKED_IPV4_NETWORKS,
    BLOCKED_IPV6_NETWORKS,
    LOCALHOST_ALIASES,
    REDIRECT_STATUS_CODES,
)

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[List[str]]]

_BLOCKED_V4 = [ipaddress.ip_network(cidr) for cidr in BLOCKED_IPV4_NETWORKS]
_BLOCKED_V6 = [ipaddress.ip_network(cidr) for cidr in BLOCKED_IPV6_NETWORKS]


class PhotoRejectReason(str, Enum):
    """Why a photo URL was rejected."""
    INVALID_URL = "invalid_url"
    BAD_SCHEME = "bad_scheme"
    BLOCKED_HOST = "blocked_host"
    DNS_FAILURE = "dns_failure"
    BLOCKED_ADDRESS = "blocked_address"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_STATUS = "http_status"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    UNSAFE_REDIRECT = "unsafe_redirect"
    CONTENT_TYPE = "content_type"


@dataclass
class PhotoValidationResult:
    """Verdict for a single photo URL. Never persisted."""
    url: str
    valid: bool
    error: Optional[str] = None
    reason: Optional[PhotoRejectReason] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "url": self.url,
            "valid": self.valid,
            "error": self.error,
            "reason": self.reason.value if self.reason else None,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
        }


class PhotoRejected(Exception):
    """Raised internally when a URL fails a check."""

    def __init__(self, reason: PhotoRejectReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


async def resolve_host(hostname: str) -> List[str]:
    """Resolve a hostname to every IPv4/IPv6 address it maps to."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return list(dict.fromkeys(info[4][0] for info in infos))


def is_localhost(hostname: str) -> bool:
    """Check if hostname is localhost or a loopback literal."""
    hostname = hostname.lower()
    return hostname in LOCALHOST_ALIASES or hostname.startswith("127.")


def is_blocked_address(address: str) -> bool:
    """
    Check if an IP address is private, reserved, loopback or link-local.

    Unparseable addresses are treated as blocked.
    """
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return True

    if ip.version == 4:
        return any(ip in network for network in _BLOCKED_V4)
    return any(ip in network for network in _BLOCKED_V6)


def is_valid_image_content_type(content_type: Optional[str]) -> bool:
    """Accept jpeg/png/webp, ignoring case and any ;parameter suffix."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in ALLOWED_IMAGE_CONTENT_TYPES


class PhotoEvidenceValidator:
    """
    Vets user-supplied photo URLs before a report may reference them.

    Usage:
        validator = PhotoEvidenceValidator()
        results = await validator.validate_all(urls)
    """

    def __init__(
        self,
        timeout: float = 5.0,
        max_redirects: int = 3,
        max_concurrency: int = 5,
        user_agent: str = "JalanRusak-PhotoValidator/1.0",
        resolver: Optional[Resolver] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize validator.

        Args:
            timeout: Hard timeout in seconds for each HEAD probe
            max_redirects: Number of redirects that may be followed
            max_concurrency: URLs probed in parallel by validate_all
            user_agent: User-Agent header sent with probes
            resolver: Async hostname -> IP list function (default: system DNS)
            client: Shared HTTP client; when None a client is opened per batch
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.max_concurrency = max_concurrency
        self.user_agent = user_agent
        self.resolver = resolver or resolve_host
        self._client = client

        logger.info(
            f"PhotoEvidenceValidator initialized (timeout={timeout}s, "
            f"max_redirects={max_redirects}, concurrency={max_concurrency})"
        )

    async def check_url_security(self, url: str) -> None:
        """
        Run the static and DNS-based SSRF checks on a URL.

        Raises:
            PhotoRejected: if the URL fails scheme, host or address checks
        """
        try:
            parsed = urlsplit(url)
            hostname = parsed.hostname
        except ValueError as e:
            raise PhotoRejected(PhotoRejectReason.INVALID_URL, f"invalid URL format: {e}") from e

        scheme = parsed.scheme.lower()
        if scheme not in ALLOWED_PHOTO_SCHEMES:
            raise PhotoRejected(
                PhotoRejectReason.BAD_SCHEME,
                f"invalid protocol: {parsed.scheme or '(none)'} (only HTTP and HTTPS allowed)",
            )

        if not hostname:
            raise PhotoRejected(PhotoRejectReason.BLOCKED_HOST, "missing hostname")

        if is_localhost(hostname):
            raise PhotoRejected(
                PhotoRejectReason.BLOCKED_HOST,
                "localhost and loopback addresses are not allowed (SSRF protection)",
            )

        try:
            addresses = await self.resolver(hostname)
        except (OSError, UnicodeError) as e:
            raise PhotoRejected(
                PhotoRejectReason.DNS_FAILURE, f"failed to resolve hostname: {e}"
            ) from e

        if not addresses:
            raise PhotoRejected(PhotoRejectReason.DNS_FAILURE, "hostname resolved to no addresses")

        for address in addresses:
            if is_blocked_address(address):
                raise PhotoRejected(
                    PhotoRejectReason.BLOCKED_ADDRESS,
                    f"private, reserved, or link-local IP addresses are not allowed: "
                    f"{address} (SSRF protection)",
                )

    async def validate_url(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None
    ) -> PhotoValidationResult:
        """
        Validate a single photo URL.

        Args:
            url: Photo URL supplied by the user
            client: HTTP client to probe with (default: the shared one)

        Returns:
            PhotoValidationResult; rejections are reported, not raised
        """
        client = client or self._client
        if client is None:
            async with self._open_client() as own_client:
                return await self.validate_url(url, own_client)

        try:
            await self.check_url_security(url)
            response = await self._probe(url, client)
        except PhotoRejected as rejection:
            logger.warning(f"Photo URL rejected ({rejection.reason.value}): {url}")
            return PhotoValidationResult(
                url=url,
                valid=False,
                error=rejection.message,
                reason=rejection.reason,
            )

        content_type = response.headers.get("content-type")
        if not is_valid_image_content_type(content_type):
            logger.warning(f"Photo URL has non-image content type {content_type!r}: {url}")
            return PhotoValidationResult(
                url=url,
                valid=False,
                error=(
                    f"invalid content type: {content_type or '(none)'} "
                    f"(expected image/jpeg, image/png, or image/webp)"
                ),
                reason=PhotoRejectReason.CONTENT_TYPE,
            )

        return PhotoValidationResult(
            url=url,
            valid=True,
            content_type=content_type,
            size_bytes=self._content_length(response),
        )

    async def validate_all(self, urls: Sequence[str]) -> List[PhotoValidationResult]:
        """
        Validate every URL independently.

        Results keep the input order. One failure does not stop the others.
        Cancelling the caller cancels every in-flight probe.
        """
        if not urls:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(url: str, client: httpx.AsyncClient) -> PhotoValidationResult:
            async with semaphore:
                return await self.validate_url(url, client)

        if self._client is not None:
            results = await asyncio.gather(*(bounded(u, self._client) for u in urls))
        else:
            async with self._open_client() as client:
                results = await asyncio.gather(*(bounded(u, client) for u in urls))

        invalid = sum(1 for r in results if not r.valid)
        logger.info(f"Validated {len(results)} photo URLs ({invalid} invalid)")
        return list(results)

    async def _probe(self, url: str, client: httpx.AsyncClient) -> httpx.Response:
        """
        HEAD the URL, following at most max_redirects re-validated redirects.

        Raises:
            PhotoRejected: on timeout, connection failure, non-2xx status
                or an unsafe/excessive redirect
        """
        current = url
        redirects = 0

        while True:
            response = await self._head(current, client)

            if response.status_code in REDIRECT_STATUS_CODES and "location" in response.headers:
                if redirects >= self.max_redirects:
                    raise PhotoRejected(
                        PhotoRejectReason.TOO_MANY_REDIRECTS,
                        f"stopped after {self.max_redirects} redirects",
                    )
                target = urljoin(current, response.headers["location"])
                try:
                    await self.check_url_security(target)
                except PhotoRejected as e:
                    raise PhotoRejected(
                        PhotoRejectReason.UNSAFE_REDIRECT,
                        f"unsafe redirect target: {e.message}",
                    ) from e
                redirects += 1
                current = target
                continue

            if not 200 <= response.status_code < 300:
                raise PhotoRejected(
                    PhotoRejectReason.HTTP_STATUS,
                    f"HTTP {response.status_code}: URL not accessible",
                )
            return response

    async def _head(self, url: str, client: httpx.AsyncClient) -> httpx.Response:
        try:
            return await asyncio.wait_for(
                client.head(
                    url,
                    headers={"User-Agent": self.user_agent},
                    follow_redirects=False,
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise PhotoRejected(
                PhotoRejectReason.TIMEOUT,
                f"URL not accessible: timed out after {self.timeout:g}s",
            ) from e
        except httpx.HTTPError as e:
            raise PhotoRejected(
                PhotoRejectReason.CONNECTION_ERROR, f"URL not accessible: {e}"
            ) from e

    def _open_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
            trust_env=False,
        )

    @staticmethod
    def _content_length(response: httpx.Response) -> Optional[int]:
        raw = response.headers.get("content-length")
        if raw is None:
            return None
        try:
            size = int(raw)
        except ValueError:
            return None
        return size if size > 0 else None


def validate_photo_urls(urls: Sequence[str], **kwargs) -> List[PhotoValidationResult]:
    """
    Convenience function to validate photo URLs from synchronous code.

    Args:
        urls: Photo URLs
        **kwargs: PhotoEvidenceValidator options

    Returns:
        One PhotoValidationResult per URL, in input order
    """
    validator = PhotoEvidenceValidator(**kwargs)
    return asyncio.run(validator.validate_all(urls))
