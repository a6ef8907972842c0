"""Request dispatch.

``RequestDispatcher.dispatch`` resolves the transport for a model, sanitizes
the outgoing messages, sends the request under a merged cancel/timeout
scope, and wraps event-stream bodies with the stream rewriter. Any other
body is returned unmodified.
"""

import asyncio
import json
from collections.abc import AsyncGenerator, AsyncIterator, Sequence
from types import TracebackType
from typing import Any

import httpx

from corethink.core.logging import get_logger
from corethink.http.cancellation import CancelScope
from corethink.http.transport import ProviderTransport
from corethink.models.provider import ModelDescriptor, ProviderInfo
from corethink.providers.state import ProviderState
from corethink.streaming.rewriter import rewrite_event_stream

from .transform import Message, clean_schema, max_output_tokens, sanitize_messages


logger = get_logger(__name__)

EVENT_STREAM = "text/event-stream"


def is_event_stream(headers: httpx.Headers) -> bool:
    return EVENT_STREAM in headers.get("content-type", "").lower()


class UpstreamResponse:
    """Response handed back to the caller.

    Event-stream bodies are consumed incrementally through ``aiter_bytes``;
    other bodies are read eagerly. Closing releases the connection.
    """

    def __init__(
        self,
        response: httpx.Response,
        *,
        body: AsyncGenerator[bytes, None] | None = None,
        content: bytes | None = None,
    ) -> None:
        self._response = response
        self._body = body
        self._content = content
        self._consumed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def is_event_stream(self) -> bool:
        return self._body is not None

    def raise_for_status(self) -> None:
        self._response.raise_for_status()

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        if self._body is None:
            if self._content:
                yield self._content
            return
        if self._consumed:
            raise RuntimeError("Response stream has already been consumed")
        self._consumed = True
        async for chunk in self._body:
            yield chunk

    async def aread(self) -> bytes:
        if self._content is None:
            self._content = b"".join([chunk async for chunk in self.aiter_bytes()])
        return self._content

    async def json(self) -> Any:
        return json.loads(await self.aread())

    async def aclose(self) -> None:
        if self._body is not None:
            await self._body.aclose()
        await self._response.aclose()

    async def __aenter__(self) -> "UpstreamResponse":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


async def _guarded_body(
    response: httpx.Response,
    scope: CancelScope,
) -> AsyncGenerator[bytes, None]:
    try:
        async for chunk in rewrite_event_stream(scope.iterate(response.aiter_bytes())):
            yield chunk
    finally:
        await response.aclose()


class RequestDispatcher:
    """Caller-facing entry point: model lookup and request dispatch."""

    def __init__(self, state: ProviderState) -> None:
        self.state = state

    async def list_providers(self) -> dict[str, ProviderInfo]:
        return await self.state.list_providers()

    async def resolve_model(self, provider_id: str, model_id: str) -> ModelDescriptor:
        return await self.state.resolve_model(provider_id, model_id)

    def build_payload(
        self,
        model: ModelDescriptor,
        messages: Sequence[Message],
        transport: ProviderTransport,
        options: dict[str, Any],
    ) -> dict[str, Any]:
        """Assemble the JSON body ``{model, messages, ...options}``."""
        payload: dict[str, Any] = {
            "model": model.api.id,
            "messages": sanitize_messages(messages, model),
            **options,
        }

        if payload.get("stream") and transport.include_usage:
            payload["stream_options"] = {
                "include_usage": True,
                **(payload.get("stream_options") or {}),
            }

        max_tokens = payload.get("max_tokens")
        if isinstance(max_tokens, int):
            payload["max_tokens"] = min(
                max_tokens,
                max_output_tokens(model.limit.output, self.state.settings.output_token_max),
            )

        response_format = payload.get("response_format")
        if isinstance(response_format, dict) and isinstance(
            response_format.get("json_schema"), dict
        ):
            json_schema = dict(response_format["json_schema"])
            if isinstance(json_schema.get("schema"), dict):
                json_schema["schema"] = clean_schema(json_schema["schema"])
            payload["response_format"] = {**response_format, "json_schema": json_schema}

        return payload

    async def dispatch(
        self,
        model: ModelDescriptor,
        messages: Sequence[Message],
        *,
        stream: bool = True,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
        **options: Any,
    ) -> UpstreamResponse:
        """Send a chat-completion request for ``model``.

        Args:
            model: Resolved model descriptor
            messages: Chat messages; never mutated
            stream: Ask the upstream for an event stream
            cancel: Caller cancel event; setting it abandons the request
            timeout: Deadline in seconds for the whole request, body included.
                Defaults to the provider's ``timeout`` option.
            **options: Extra payload fields (temperature, tools, ...)

        Returns:
            The upstream response, event streams already rewritten

        Raises:
            ProviderInitError: The transport could not be built
            RequestCancelledError: ``cancel`` fired
            RequestTimeoutError: The deadline passed
            httpx.TransportError: Connection failures, propagated unchanged
        """
        transport = await self.state.get_transport(model)
        payload = self.build_payload(model, messages, transport, {"stream": stream, **options})
        scope = CancelScope(cancel, timeout if timeout is not None else transport.timeout)

        logger.debug(
            "dispatch_started",
            provider_id=model.provider_id,
            model_id=model.id,
            stream=stream,
            messages=len(payload["messages"]),
            timeout=scope.timeout,
        )

        request = transport.build_request(payload)
        response = await scope.guard(transport.send(request))

        try:
            if is_event_stream(response.headers):
                logger.debug(
                    "dispatch_streaming",
                    provider_id=model.provider_id,
                    status_code=response.status_code,
                )
                return UpstreamResponse(response, body=_guarded_body(response, scope))

            content = await scope.guard(response.aread())
        except BaseException:
            await response.aclose()
            raise

        await response.aclose()
        logger.debug(
            "dispatch_completed",
            provider_id=model.provider_id,
            status_code=response.status_code,
            size=len(content),
        )
        return UpstreamResponse(response, content=content)

    async def aclose(self) -> None:
        await self.state.dispose()

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
