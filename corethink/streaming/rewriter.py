"""Line-oriented rewriting of chat-completion event streams.

Upstream streams are ``data: <json>`` lines separated by blank lines and
terminated by ``data: [DONE]``. Two kinds of events are corrected before the
stream reaches the consumer:

- usage-only events (a ``usage`` field and no ``choices``) are dropped;
- deltas carrying text in ``reasoning`` instead of ``content`` have the
  value moved to ``content``.

Every other line is emitted byte-for-byte as received, line terminator
included. Lines are split on raw bytes at ``\\n``; UTF-8 continuation bytes
never equal ``\\n``, so a chunk boundary inside a multi-byte character is
harmless and no decode/encode round trip touches pass-through lines.
"""

import json
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from corethink.core.logging import get_logger


logger = get_logger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def _first_delta(event: dict[str, Any]) -> dict[str, Any] | None:
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    return delta if isinstance(delta, dict) else None


def rewrite_event_line(line: bytes) -> bytes | None:
    """Rewrite one complete line (terminator included).

    Returns:
        The line to emit (the input object itself when unchanged), or None
        to drop it.
    """
    body = line.rstrip(b"\r\n")
    terminator = line[len(body):]
    text = body.strip()
    if not text.startswith(b"data:"):
        return line

    try:
        data = text[len(DATA_PREFIX):].strip().decode("utf-8")
        if data == DONE_SENTINEL:
            return line
        event = json.loads(data)
    except (ValueError, RecursionError):
        # Malformed or pathologically nested events pass through untouched.
        return line

    if not isinstance(event, dict):
        return line

    if event.get("usage") is not None and event.get("choices") is None:
        return None

    delta = _first_delta(event)
    if delta is not None and delta.get("reasoning") and not delta.get("content"):
        delta["content"] = delta.pop("reasoning")
        try:
            return _encode_event(event) + terminator
        except (ValueError, RecursionError):
            return line

    return line


def _encode_event(event: dict[str, Any]) -> bytes:
    encoded = json.dumps(event, separators=(",", ":"), ensure_ascii=False)
    try:
        return f"{DATA_PREFIX} {encoded}".encode()
    except UnicodeEncodeError:
        # Lone surrogates (an emoji split across deltas) only survive as
        # \u escapes.
        encoded = json.dumps(event, separators=(",", ":"), ensure_ascii=True)
        return f"{DATA_PREFIX} {encoded}".encode()


class EventStreamRewriter:
    """Incremental line buffer applying ``rewrite_event_line``.

    ``feed`` accepts chunks split at arbitrary byte offsets and returns the
    output for every line completed so far; the trailing partial line stays
    buffered. At end of stream an unterminated remainder is discarded,
    unless ``flush_partial`` is set, in which case it is emitted unchanged.
    """

    def __init__(self, *, flush_partial: bool = False) -> None:
        self.flush_partial = flush_partial
        self._buffer = bytearray()
        self.lines = 0
        self.dropped = 0
        self.renamed = 0

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete line currently buffered."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> bytes:
        self._buffer += chunk
        end = self._buffer.rfind(b"\n")
        if end < 0:
            return b""

        complete = bytes(self._buffer[: end + 1])
        del self._buffer[: end + 1]

        out = bytearray()
        # split() leaves an empty tail after the final "\n"
        for piece in complete.split(b"\n")[:-1]:
            line = piece + b"\n"
            self.lines += 1
            rewritten = rewrite_event_line(line)
            if rewritten is None:
                self.dropped += 1
                continue
            if rewritten is not line:
                self.renamed += 1
            out += rewritten
        return bytes(out)

    def close(self) -> bytes:
        """Finish the stream and return whatever should still be emitted."""
        remainder = bytes(self._buffer)
        self._buffer.clear()
        if not remainder:
            return b""
        if self.flush_partial:
            return remainder
        logger.debug("event_stream_partial_line_discarded", size=len(remainder))
        return b""


async def rewrite_event_stream(
    source: AsyncIterable[bytes],
    *,
    flush_partial: bool = False,
) -> AsyncIterator[bytes]:
    """Pull chunks from ``source`` and yield the rewritten stream.

    Empty outputs are not yielded, so a chunk holding only part of a line
    produces nothing until the line completes.
    """
    rewriter = EventStreamRewriter(flush_partial=flush_partial)
    async for chunk in source:
        out = rewriter.feed(chunk)
        if out:
            yield out
    tail = rewriter.close()
    if tail:
        yield tail

    logger.debug(
        "event_stream_rewritten",
        lines=rewriter.lines,
        dropped=rewriter.dropped,
        renamed=rewriter.renamed,
    )
