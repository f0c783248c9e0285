"""
SSE Module - Black Box Interface

Purpose: Decode Server-Sent Events from a byte stream
Interface: stream_sse_response(), iter_sse_response(), SseEvent
Hidden: Line splitting, pending event state, producer/consumer hand-off

Each `data:` line yields one event carrying the most recent `event:` type.
"""

from .decoder import (
    DEFAULT_MAX_LINE_BYTES,
    LineSplitter,
    SseDecoder,
    SseError,
    SseEvent,
    StreamClosed,
    StreamReadError,
    decode_lines,
)
from .stream import EventStream, stream_sse_response
from .threaded import ThreadedEventStream, iter_sse_response

__all__ = [
    "DEFAULT_MAX_LINE_BYTES",
    "EventStream",
    "LineSplitter",
    "SseDecoder",
    "SseError",
    "SseEvent",
    "StreamClosed",
    "StreamReadError",
    "ThreadedEventStream",
    "decode_lines",
    "iter_sse_response",
    "stream_sse_response",
]
