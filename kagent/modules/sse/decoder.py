"""
Line-oriented SSE decoding.

Only the `event:` and `data:` fields are understood. Every `data:` line
flushes the pending event immediately; there is no multi-line data folding
and no trimming of the space after the colon.
"""

import json
from dataclasses import dataclass
from typing import Any, List, Optional

EVENT_PREFIX = b"event:"
DATA_PREFIX = b"data:"

# Same limit as a default bufio scanner token
DEFAULT_MAX_LINE_BYTES = 64 * 1024


class SseError(Exception):
    """Base class for SSE stream errors."""


class StreamReadError(SseError):
    """Reading the underlying stream failed before it ended cleanly."""


class StreamClosed(SseError):
    """Operation attempted on an event stream that was already closed."""


@dataclass
class SseEvent:
    """One decoded event."""

    event_type: str = ""
    data: bytes = b""

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parse the payload as JSON."""
        return json.loads(self.data)


class LineSplitter:
    """
    Split a chunked byte stream into lines.

    Accepts `\\n`, `\\r\\n` and bare `\\r` terminators. A trailing `\\r` is
    held back until the next chunk arrives since it may be the first half
    of a `\\r\\n` pair.
    """

    def __init__(self, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES):
        self.max_line_bytes = max_line_bytes
        self._buffer = b""
        self._error: Optional[StreamReadError] = None

    def feed(self, chunk: bytes) -> List[bytes]:
        """
        Add a chunk and return every line it completed.

        When the chunk holds an over-long line, the lines before it are
        returned first and the error is raised by the next call to feed(),
        flush() or check().
        """
        self.check()
        if not chunk:
            return []

        data = self._buffer + chunk
        self._buffer = b""
        pieces = data.splitlines(keepends=True)
        lines = []

        for index, piece in enumerate(pieces):
            is_last = index == len(pieces) - 1
            if piece.endswith(b"\n") or (piece.endswith(b"\r") and not is_last):
                line = piece.rstrip(b"\r\n")
                if self._too_long(line):
                    break
                lines.append(line)
            else:
                self._buffer = piece
                self._too_long(piece.rstrip(b"\r"))

        if not lines:
            self.check()
        return lines

    def flush(self) -> List[bytes]:
        """Return the unterminated tail, if any, at end of stream."""
        self.check()
        tail, self._buffer = self._buffer, b""
        if not tail:
            return []
        return [tail.rstrip(b"\r\n")]

    def check(self) -> None:
        """Raise the line-limit error held back by feed(), if any."""
        if self._error is not None:
            raise self._error

    def _too_long(self, line: bytes) -> bool:
        if self.max_line_bytes and len(line) > self.max_line_bytes:
            self._error = StreamReadError(
                f"SSE line exceeds {self.max_line_bytes} bytes"
            )
            self._buffer = b""
            return True
        return False


class SseDecoder:
    """
    Turns lines into events.

    Holds the pending event between calls; feed_line() returns the event
    completed by a `data:` line, or None.
    """

    def __init__(self):
        self._pending = SseEvent()

    def feed_line(self, line: bytes) -> Optional[SseEvent]:
        if line.startswith(EVENT_PREFIX):
            self._pending.event_type = line[len(EVENT_PREFIX):].decode(
                "utf-8", errors="replace"
            )
            return None

        if line.startswith(DATA_PREFIX):
            self._pending.data = bytes(line[len(DATA_PREFIX):])
            event, self._pending = self._pending, SseEvent()
            return event

        return None

    def reset(self) -> None:
        """Drop any half-built event."""
        self._pending = SseEvent()


def decode_lines(lines) -> List[SseEvent]:
    """Decode an in-memory sequence of lines in one go."""
    decoder = SseDecoder()
    events = []
    for line in lines:
        if isinstance(line, str):
            line = line.encode("utf-8")
        event = decoder.feed_line(line)
        if event is not None:
            events.append(event)
    return events
