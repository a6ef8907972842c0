"""Transport cache keyed by configuration fingerprint.

Every distinct effective configuration (implementation tag plus resolved
option bag) maps to exactly one transport client for the lifetime of the
owning provider state. Clients are built lazily on first use and closed on
``dispose``.
"""

import asyncio
import hashlib
import inspect
import json
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, Protocol, TypeVar

from corethink.core.errors import ProviderInitError
from corethink.core.logging import get_logger


logger = get_logger(__name__)


class SupportsAclose(Protocol):
    async def aclose(self) -> None: ...


TransportT = TypeVar("TransportT", bound=SupportsAclose)


def fingerprint(library: str, options: Mapping[str, Any]) -> str:
    """Deterministic digest of an effective transport configuration.

    Keys are sorted at every nesting level before hashing, so option bags
    that differ only in insertion order share a fingerprint. Values that are
    not JSON types are hashed by their ``str()`` form.
    """
    payload = json.dumps(
        {"library": library, "options": options},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class TransportCache(Generic[TransportT]):
    """Get-or-build store of transport clients.

    Builds for the same fingerprint are serialized by a per-key lock, so
    concurrent first use constructs one client and every caller receives
    it. Builds for different fingerprints run concurrently.
    """

    def __init__(self) -> None:
        self._entries: dict[str, TransportT] = {}
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

        logger.debug("transport_cache_initialized")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> TransportT | None:
        """Return the cached transport for ``key`` without building one."""
        return self._entries.get(key)

    async def resolve(
        self,
        key: str,
        build: Callable[[], TransportT | Awaitable[TransportT]],
        *,
        provider_id: str,
    ) -> TransportT:
        """Return the transport for ``key``, building it on first use.

        Args:
            key: Configuration fingerprint
            build: Zero-argument callable (sync or async) returning a transport
            provider_id: Provider the transport belongs to, for error reporting

        Returns:
            The cached or freshly built transport

        Raises:
            ProviderInitError: If ``build`` fails. Nothing is cached.
        """
        existing = self._entries.get(key)
        if existing is not None:
            logger.debug("transport_cache_hit", provider_id=provider_id, key=key[:12])
            return existing

        async with self._lock:
            key_lock = self._key_locks.setdefault(key, asyncio.Lock())

        try:
            async with key_lock:
                # Another caller may have finished the build while we waited.
                existing = self._entries.get(key)
                if existing is not None:
                    logger.debug("transport_cache_hit", provider_id=provider_id, key=key[:12])
                    return existing

                logger.info("transport_building", provider_id=provider_id, key=key[:12])
                try:
                    result = build()
                    if inspect.isawaitable(result):
                        result = await result
                except Exception as e:
                    logger.error(
                        "transport_build_failed",
                        provider_id=provider_id,
                        error_type=type(e).__name__,
                    )
                    raise ProviderInitError(provider_id) from e

                transport: TransportT = result  # type: ignore[assignment]
                self._entries[key] = transport
        finally:
            async with self._lock:
                if self._key_locks.get(key) is key_lock:
                    del self._key_locks[key]

        return transport

    async def dispose(self) -> None:
        """Close every cached transport and empty the cache."""
        async with self._lock:
            entries = list(self._entries.items())
            self._entries.clear()
            self._key_locks.clear()

        for key, transport in entries:
            try:
                await transport.aclose()
            except Exception as e:
                logger.warning(
                    "transport_close_failed",
                    key=key[:12],
                    error=str(e),
                )

        logger.info("transport_cache_disposed", closed=len(entries))
