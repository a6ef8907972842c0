"""Test doubles shared across the suite."""

import asyncio
from collections.abc import Callable, Iterable
from typing import Any

import httpx

from corethink.auth.storage import CredentialStore, StoredCredential
from corethink.config.core import HTTPSettings
from corethink.http.client import HTTPClientFactory


Handler = Callable[[httpx.Request], Any]


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks.

    With ``hang`` set, the stream blocks forever after the last chunk, like
    an upstream that stopped sending without closing the connection.
    """

    def __init__(self, chunks: Iterable[bytes], *, hang: bool = False) -> None:
        self.chunks = list(chunks)
        self.hang = hang
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.hang:
            await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


def event_stream_response(stream: ChunkStream) -> httpx.Response:
    return httpx.Response(
        200,
        headers={"content-type": "text/event-stream"},
        stream=stream,
    )


class MemoryCredentialStore(CredentialStore):
    """In-memory credential store counting reads."""

    def __init__(self, credentials: dict[str, StoredCredential] | None = None) -> None:
        self.credentials = dict(credentials or {})
        self.reads = 0

    async def get(self, provider_id: str) -> StoredCredential | None:
        self.reads += 1
        return self.credentials.get(provider_id)

    async def all(self) -> dict[str, StoredCredential]:
        return dict(self.credentials)

    async def set(self, provider_id: str, credential: StoredCredential) -> None:
        self.credentials[provider_id] = credential

    async def remove(self, provider_id: str) -> bool:
        return self.credentials.pop(provider_id, None) is not None

    def get_location(self) -> str:
        return "memory"


class MockClientFactory:
    """Client factory routing every request to ``handler``.

    Clients are still built by ``HTTPClientFactory`` so base URL validation
    and default headers are exercised; only the network layer is replaced.
    """

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.calls = 0
        self.clients: list[httpx.AsyncClient] = []

    def __call__(
        self,
        *,
        base_url: str,
        headers: dict[str, str],
        settings: HTTPSettings,
    ) -> httpx.AsyncClient:
        self.calls += 1
        client = HTTPClientFactory.create_client(
            base_url=base_url,
            headers=headers,
            settings=settings,
            transport=httpx.MockTransport(self.handler),
        )
        self.clients.append(client)
        return client
