"""Event-stream rewriting."""

from .rewriter import EventStreamRewriter, rewrite_event_line, rewrite_event_stream


__all__ = ["EventStreamRewriter", "rewrite_event_line", "rewrite_event_stream"]
