"""Provider transport: an httpx client bound to one resolved configuration."""

import math
from collections.abc import Mapping
from typing import Any

import httpx

from corethink.config.core import HTTPSettings
from corethink.core.logging import get_logger

from .client import ClientFactory, HTTPClientFactory


logger = get_logger(__name__)

CHAT_COMPLETIONS_PATH = "chat/completions"


class ProviderTransport:
    """Reusable client for one provider configuration.

    Shared by every request whose effective options hash to the same
    fingerprint. Holds no per-request state.
    """

    def __init__(
        self,
        provider_id: str,
        library: str,
        client: httpx.AsyncClient,
        *,
        timeout: float | None = None,
        include_usage: bool = False,
    ) -> None:
        self.provider_id = provider_id
        self.library = library
        self.client = client
        self.timeout = timeout
        self.include_usage = include_usage

    def __repr__(self) -> str:
        return (
            f"ProviderTransport(provider_id={self.provider_id!r}, "
            f"base_url={str(self.client.base_url)!r})"
        )

    def build_request(self, payload: Mapping[str, Any]) -> httpx.Request:
        """Build a chat-completions POST carrying ``payload`` as JSON."""
        return self.client.build_request("POST", CHAT_COMPLETIONS_PATH, json=dict(payload))

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` without reading the body."""
        return await self.client.send(request, stream=True)

    async def aclose(self) -> None:
        await self.client.aclose()


def _resolve_timeout(value: Any) -> float | None:
    """Interpret the ``timeout`` option: seconds, or None/False for no deadline.

    Numeric strings are accepted since option overrides read from the
    environment arrive untyped.
    """
    if value is None or value is False:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError as e:
            raise ValueError(f"Invalid timeout option: {value!r}") from e
    if isinstance(value, bool) or not isinstance(value, int | float) or not 0 < value < math.inf:
        raise ValueError(f"Invalid timeout option: {value!r}")
    return float(value)


def build_transport(
    provider_id: str,
    library: str,
    options: Mapping[str, Any],
    settings: HTTPSettings,
    client_factory: ClientFactory | None = None,
) -> ProviderTransport:
    """Construct a transport from a resolved option bag.

    Recognized options: ``base_url`` (required), ``api_key``, ``headers``,
    ``timeout`` and ``include_usage``. Other keys are vendor options carried
    only in the fingerprint.

    Raises:
        ValueError: If the base URL or timeout option is invalid
    """
    base_url = options.get("base_url")
    if not base_url or not isinstance(base_url, str):
        raise ValueError("Missing base_url option")

    headers = {str(k): str(v) for k, v in (options.get("headers") or {}).items()}
    api_key = options.get("api_key")
    if api_key:
        headers["authorization"] = f"Bearer {api_key}"

    timeout = _resolve_timeout(options.get("timeout"))
    factory = client_factory or HTTPClientFactory.create_client
    client = factory(base_url=base_url, headers=headers, settings=settings)

    logger.info(
        "provider_transport_created",
        provider_id=provider_id,
        library=library,
        has_api_key=bool(api_key),
        timeout=timeout,
    )
    return ProviderTransport(
        provider_id,
        library,
        client,
        timeout=timeout,
        include_usage=bool(options.get("include_usage")),
    )
