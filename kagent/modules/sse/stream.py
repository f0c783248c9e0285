"""
asyncio event stream.

A producer task reads the source, decodes lines and hands events over a
single-slot queue, so decoding pauses whenever no consumer is pulling.
"""

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Optional

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


def _byte_chunks(source) -> AsyncIterable[bytes]:
    """Iterate an httpx response's decoded body bytes, or use the source as-is."""
    if hasattr(source, "aiter_raw") and hasattr(source, "aiter_bytes"):
        return source.aiter_bytes()
    return source


async def _close_source(source) -> None:
    close = getattr(source, "aclose", None)
    if close is not None:
        await close()
        return
    close = getattr(source, "close", None)
    if close is not None:
        result = close()
        if asyncio.iscoroutine(result):
            await result


class EventStream:
    """
    Async iterator over the events of one SSE source.

    Usage:
        async with stream_sse_response(response) as events:
            async for event in events:
                ...

    Several tasks may pull from the same stream; each event goes to exactly
    one of them and all of them see the end of the stream.
    """

    def __init__(
        self,
        source,
        raise_errors: bool = True,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    ):
        self._source = source
        self._raise_errors = raise_errors
        self._max_line_bytes = max_line_bytes
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._source_closed = False
        self._finished = False
        self._closed = False
        self.error: Optional[StreamReadError] = None
        self._task = asyncio.create_task(self._produce())

    @property
    def closed(self) -> bool:
        """True once the underlying source has been released."""
        return self._source_closed

    async def _produce(self) -> None:
        splitter = LineSplitter(self._max_line_bytes)
        decoder = SseDecoder()
        terminal = _DONE
        count = 0

        try:
            try:
                async for chunk in _byte_chunks(self._source):
                    for line in splitter.feed(chunk):
                        event = decoder.feed_line(line)
                        if event is not None:
                            await self._queue.put(event)
                            count += 1
                    splitter.check()
                for line in splitter.flush():
                    event = decoder.feed_line(line)
                    if event is not None:
                        await self._queue.put(event)
                        count += 1
            except StreamReadError as e:
                terminal = e
            except Exception as e:
                terminal = StreamReadError(f"Failed to read SSE stream: {e}")
                terminal.__cause__ = e

            if terminal is not _DONE:
                logger.warning(f"SSE stream ended with error after {count} events: {terminal}")
                self.error = terminal
                if not self._raise_errors:
                    terminal = _DONE
            else:
                logger.debug(f"SSE stream finished after {count} events")

            await self._queue.put(terminal)
        finally:
            await self._release()

    async def _release(self) -> None:
        if self._source_closed:
            return
        self._source_closed = True
        try:
            await _close_source(self._source)
        except Exception as e:
            logger.warning(f"Failed to close SSE source: {e}")

    def __aiter__(self) -> AsyncIterator[SseEvent]:
        return self

    async def __anext__(self) -> SseEvent:
        if self._finished or self._closed:
            raise StopAsyncIteration

        item = await self._queue.get()

        if isinstance(item, SseEvent):
            return item

        # Terminal marker: leave it in place for any other waiting consumer
        self._finished = True
        self._queue.put_nowait(item)
        if isinstance(item, StreamReadError):
            raise item
        raise StopAsyncIteration

    async def receive(self) -> SseEvent:
        """Pull one event; raises StreamClosed once the stream is over."""
        try:
            return await self.__anext__()
        except StopAsyncIteration:
            raise StreamClosed("SSE stream is closed") from None

    async def aclose(self) -> None:
        """
        Stop consuming.

        Cancels the producer wherever it is blocked (reading or handing off)
        and waits until it has released the source.
        """
        if self._closed:
            return
        self._closed = True

        if not self._task.done():
            self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        # A task cancelled before its first step never runs its finally
        await self._release()

        # Wake any consumer still parked on the queue
        if self._queue.empty():
            self._queue.put_nowait(_DONE)

    async def wait_closed(self) -> None:
        """Wait for the producer to finish on its own."""
        await asyncio.shield(self._task)

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def stream_sse_response(
    source,
    raise_errors: bool = True,
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
) -> EventStream:
    """
    Start decoding `source` in the background.

    Args:
        source: httpx.Response opened with stream=True, or any async
            iterable of bytes exposing aclose()/close()
        raise_errors: surface read failures as StreamReadError after the
            events decoded before the failure; when False the stream just
            ends
        max_line_bytes: longest accepted line, 0 for no limit

    Must be called from a running event loop.
    """
    return EventStream(source, raise_errors=raise_errors, max_line_bytes=max_line_bytes)
