"""HTTP client construction for provider transports.

This module centralizes how httpx clients are configured so every transport
gets the same timeout, connection-limit and compression policy.
"""

import os
from typing import Any, Protocol

import httpx

from corethink._version import __version__
from corethink.config.core import HTTPSettings
from corethink.core.logging import get_logger


logger = get_logger(__name__)

USER_AGENT = f"corethink-transport/{__version__}"


class ClientFactory(Protocol):
    """Callable building an httpx client bound to one endpoint."""

    def __call__(
        self,
        *,
        base_url: str,
        headers: dict[str, str],
        settings: HTTPSettings,
    ) -> httpx.AsyncClient: ...


def validate_base_url(base_url: str) -> httpx.URL:
    """Parse ``base_url`` and require an absolute http(s) URL.

    Raises:
        ValueError: If the URL is malformed or not absolute http(s)
    """
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as e:
        raise ValueError(f"Invalid base URL: {base_url!r}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"Invalid base URL: {base_url!r}")
    return url


class HTTPClientFactory:
    """Factory for httpx clients used by provider transports.

    Provides centralized configuration for:
    - Connect/read timeouts (read is long, responses are streamed)
    - Connection limits
    - Compression (Accept-Encoding)
    - Proxy pickup from the environment
    """

    @staticmethod
    def create_client(
        *,
        base_url: str,
        headers: dict[str, str],
        settings: HTTPSettings,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create a client for one provider endpoint.

        Args:
            base_url: Absolute endpoint URL; request paths are resolved under it
            headers: Default headers (authorization included) for every request
            settings: HTTP settings controlling timeouts, limits and compression
            **kwargs: Additional httpx.AsyncClient arguments

        Returns:
            Configured httpx.AsyncClient instance

        Raises:
            ValueError: If ``base_url`` is not an absolute http(s) URL
        """
        url = validate_base_url(base_url)

        timeout = httpx.Timeout(
            connect=settings.connect_timeout,
            read=settings.read_timeout,
            write=30.0,
            pool=30.0,
        )
        limits = httpx.Limits(
            max_keepalive_connections=settings.max_keepalive_connections,
            max_connections=settings.max_connections,
        )

        default_headers = {"user-agent": USER_AGENT}
        if not settings.compression_enabled:
            default_headers["accept-encoding"] = "identity"
        elif settings.accept_encoding:
            default_headers["accept-encoding"] = settings.accept_encoding
        default_headers.update(headers)

        if "transport" not in kwargs:
            kwargs["transport"] = httpx.AsyncHTTPTransport(
                limits=limits,
                http2=settings.http2,
                proxy=_get_proxy_url(url.scheme),
            )

        logger.info(
            "http_client_created",
            host=url.host,
            timeout_connect=settings.connect_timeout,
            timeout_read=settings.read_timeout,
            http2=settings.http2,
            has_authorization="authorization" in {k.lower() for k in headers},
        )

        return httpx.AsyncClient(
            base_url=url,
            headers=default_headers,
            timeout=timeout,
            **kwargs,
        )


def _get_proxy_url(scheme: str) -> str | None:
    """Proxy URL from the environment for the given scheme, if any."""
    if scheme == "https":
        return os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy") or os.environ.get(
            "ALL_PROXY"
        )
    return os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy") or os.environ.get(
        "ALL_PROXY"
    )
