"""Ordered, backpressured event delivery from a producer task to an HTTP stream.

A producer coroutine writes events with :meth:`EventChannel.send`; the
response body is :meth:`EventChannel.stream`, which runs the producer as
a task and yields one NDJSON line per event.  The queue holds a single
event, so the producer suspends until the client has taken the previous
one.  If the client disconnects, the producer task is cancelled and any
later ``send`` raises :class:`ChannelClosed`.

Producers wrap their work in :meth:`EventChannel.terminal` so that every
stream ends with exactly one terminal event (success or error) and is
then closed::

    async with channel.terminal(success={"percentage": 100}):
        await channel.send({"percentage": 50})
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator, Coroutine
from typing import Any

from context_rag.errors import ContextRAGError

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised by :meth:`EventChannel.send` once the stream has ended."""


def error_message(exc: BaseException) -> str:
    """Client-facing message for *exc*."""
    if isinstance(exc, ContextRAGError):
        return exc.message
    return str(exc) or type(exc).__name__


def encode_event(event: dict[str, Any]) -> str:
    return json.dumps(event, ensure_ascii=False) + "\n"


class EventChannel:
    """Single-producer, single-consumer event stream.

    Parameters
    ----------
    maxsize:
        Number of events that may be buffered ahead of the consumer.
    """

    def __init__(self, maxsize: int = 1) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._aborted = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: dict[str, Any]) -> None:
        """Deliver *event*, waiting until the consumer has room for it."""
        if self._closed:
            raise ChannelClosed("event channel is closed")
        await self._queue.put(event)

    async def close(self) -> None:
        """End the stream.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        if not self._aborted:
            await self._queue.put(_CLOSED)

    def abort(self) -> None:
        """Mark the consumer as gone; nothing more will be delivered."""
        self._aborted = True
        self._closed = True

    @contextlib.asynccontextmanager
    async def terminal(self, success: dict[str, Any] | None = None) -> AsyncIterator[EventChannel]:
        """Guarantee one terminal event and a closed channel.

        On normal exit *success* (if any) is sent; on an exception a
        single ``{"error": message}`` event is sent instead.  Either way
        the channel is closed afterwards.
        """
        try:
            yield self
        except ChannelClosed:
            logger.info("Client disconnected; stopping producer")
        except Exception as exc:
            logger.exception("Stream failed: %s", exc)
            if not self._closed:
                await self._queue.put({"error": error_message(exc)})
        else:
            if success is not None and not self._closed:
                await self._queue.put(success)
        finally:
            await self.close()

    async def stream(self, producer: Coroutine[Any, Any, None]) -> AsyncIterator[str]:
        """Run *producer* and yield its events as NDJSON lines."""
        task = asyncio.create_task(self._run(producer))
        try:
            while True:
                event = await self._queue.get()
                if event is _CLOSED:
                    break
                yield encode_event(event)
            await task
        finally:
            if not task.done():
                self.abort()
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def _run(self, producer: Coroutine[Any, Any, None]) -> None:
        # Backstop for producers that fail outside their own terminal() block.
        async with self.terminal():
            await producer
