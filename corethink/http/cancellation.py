"""Merged cancellation for in-flight requests.

A request is abandoned when either the caller's cancel event fires or the
per-request deadline passes, whichever comes first. Every awaited step of a
request (the send and each body read) goes through ``CancelScope.guard``.
"""

import asyncio
from collections.abc import AsyncIterable, AsyncIterator, Awaitable
from typing import Any, TypeVar

from corethink.core.errors import RequestCancelledError, RequestTimeoutError


T = TypeVar("T")


class CancelScope:
    """Caller cancel event and optional timeout, merged into one signal."""

    def __init__(
        self,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        self.cancel_event = cancel_event
        self.timeout = timeout
        self.deadline = (
            asyncio.get_running_loop().time() + timeout if timeout is not None else None
        )

    @property
    def active(self) -> bool:
        """Whether there is anything to observe at all."""
        return self.cancel_event is not None or self.deadline is not None

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - asyncio.get_running_loop().time())

    def check(self) -> None:
        """Raise if the scope has already fired."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RequestCancelledError()
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise RequestTimeoutError(self.timeout or 0.0)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the scope fires first.

        Raises:
            RequestCancelledError: The cancel event fired
            RequestTimeoutError: The deadline passed
        """
        if not self.active:
            return await awaitable

        work: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        waiter: asyncio.Future[Any] | None = None
        if self.cancel_event is not None:
            waiter = asyncio.ensure_future(self.cancel_event.wait())

        try:
            self.check()
            pending: set[asyncio.Future[Any]] = {work}
            if waiter is not None:
                pending.add(waiter)
            done, _ = await asyncio.wait(
                pending,
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
            if work in done:
                return work.result()
        finally:
            if waiter is not None:
                waiter.cancel()
            if not work.done():
                work.cancel()
                # Let the cancelled step unwind before the caller closes
                # the resources it was using.
                await asyncio.gather(work, return_exceptions=True)

        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RequestCancelledError()
        raise RequestTimeoutError(self.timeout or 0.0)

    async def iterate(self, source: AsyncIterable[T]) -> AsyncIterator[T]:
        """Yield from ``source``, guarding every read."""
        iterator = source.__aiter__()
        while True:
            has_item, item = await self.guard(_next_item(iterator))
            if not has_item:
                return
            yield item


async def _next_item(iterator: AsyncIterator[T]) -> tuple[bool, T | None]:
    try:
        return True, await iterator.__anext__()
    except StopAsyncIteration:
        return False, None
