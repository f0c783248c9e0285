"""
Thread-based event stream for blocking sources.

Same contract as the asyncio stream: one producer thread, a single-slot
hand-off queue, source closed exactly once.
"""

import logging
import threading
import time
from queue import Empty, Full, Queue
from typing import Iterator, Optional

from .decoder import (
    DEFAULT_MAX_LINE_BYTES,
    LineSplitter,
    SseDecoder,
    SseEvent,
    StreamClosed,
    StreamReadError,
)

logger = logging.getLogger("kagent.sse")

_DONE = object()
_POLL_INTERVAL = 0.1
_READ_SIZE = 4096


class ThreadedEventStream:
    """
    Iterator over the events of a blocking byte source.

    The source needs read(size) and close(), e.g. a file object or the
    `raw` attribute of a requests response opened with stream=True.
    close() unblocks the producer both when it waits on the hand-off and
    when it waits inside read(), since closing the source ends the read.
    A buffered file object only lets go once its pending read returns, so
    close(timeout) gives up waiting after the timeout and the source is
    closed as soon as that read comes back.
    """

    def __init__(
        self,
        source,
        raise_errors: bool = True,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        read_size: int = _READ_SIZE,
    ):
        self._source = source
        self._raise_errors = raise_errors
        self._max_line_bytes = max_line_bytes
        self._read_size = read_size
        self._queue: Queue = Queue(maxsize=1)
        self._stop = threading.Event()
        self._close_lock = threading.Lock()
        self._source_closed = False
        self._finished = False
        self.error: Optional[StreamReadError] = None
        self._thread = threading.Thread(
            target=self._produce, name="sse-producer", daemon=True
        )
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._source_closed

    def _hand_off(self, item) -> bool:
        """Block until a consumer takes item; False if stopped meanwhile."""
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=_POLL_INTERVAL)
                return True
            except Full:
                continue
        return False

    def _produce(self) -> None:
        splitter = LineSplitter(self._max_line_bytes)
        decoder = SseDecoder()
        terminal = _DONE

        # read1 returns as soon as some bytes are available
        read = getattr(self._source, "read1", None) or self._source.read

        try:
            try:
                while not self._stop.is_set():
                    chunk = read(self._read_size)
                    if not chunk:
                        lines = splitter.flush()
                    else:
                        lines = splitter.feed(chunk)
                    for line in lines:
                        event = decoder.feed_line(line)
                        if event is not None and not self._hand_off(event):
                            return
                    splitter.check()
                    if not chunk:
                        break
            except StreamReadError as e:
                terminal = e
            except Exception as e:
                if self._stop.is_set():
                    # Source closed under us by close()
                    return
                terminal = StreamReadError(f"Failed to read SSE stream: {e}")
                terminal.__cause__ = e

            if terminal is not _DONE:
                logger.warning(f"SSE stream ended with error: {terminal}")
                self.error = terminal
                if not self._raise_errors:
                    terminal = _DONE

            self._hand_off(terminal)
        finally:
            self._release()

    def _release(self) -> None:
        with self._close_lock:
            if self._source_closed:
                return
            self._source_closed = True
        try:
            self._source.close()
        except Exception as e:
            logger.warning(f"Failed to close SSE source: {e}")

    def __iter__(self) -> Iterator[SseEvent]:
        return self

    def __next__(self) -> SseEvent:
        while True:
            if self._finished or self._stop.is_set():
                raise StopIteration
            try:
                item = self._queue.get(timeout=_POLL_INTERVAL)
                break
            except Empty:
                continue

        if isinstance(item, SseEvent):
            return item

        self._finished = True
        try:
            self._queue.put_nowait(item)
        except Full:
            pass
        if isinstance(item, StreamReadError):
            raise item
        raise StopIteration

    def receive(self) -> SseEvent:
        """Pull one event; raises StreamClosed once the stream is over."""
        try:
            return next(self)
        except StopIteration:
            raise StreamClosed("SSE stream is closed") from None

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop consuming and wait up to `timeout` for the source to be released."""
        self._stop.set()
        if self._thread is threading.current_thread():
            self._release()
            return

        # Closing a buffered reader waits on the lock held by a pending read
        closer = threading.Thread(target=self._release, name="sse-source-close", daemon=True)
        closer.start()

        deadline = None if timeout is None else time.monotonic() + timeout
        self._thread.join(timeout)
        closer.join(None if deadline is None else max(0.0, deadline - time.monotonic()))

    def __enter__(self) -> "ThreadedEventStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def iter_sse_response(
    source,
    raise_errors: bool = True,
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
) -> ThreadedEventStream:
    """Start decoding a blocking `source` on a background thread."""
    return ThreadedEventStream(source, raise_errors=raise_errors, max_line_bytes=max_line_bytes)
