# ai_router/engine/stream.py
"""
Pull-based streaming state machine.

State machine
-------------
IDLE       → nothing pulled yet.
STREAMING  → at least one chunk requested from the provider.
DONE       → the terminal chunk (content="", done=True) has been emitted.
FAILED     → the provider raised; the error was re-raised to the caller.

Whatever the provider sends, the consumer sees content chunks followed by
exactly one terminal chunk, and nothing after DONE or FAILED:
  - empty non-terminal chunks are dropped;
  - a done=True chunk that still carries text is split into a content chunk
    and the terminal chunk;
  - a provider that ends without a done chunk gets one synthesised.

A stream is not resumable. After FAILED the caller restarts the request
from the beginning with RoutingEngine.stream().
"""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterator
from enum import Enum

from ..models import StreamChunk


class StreamState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


class ChunkStream:
    """
    Wraps a provider's chunk iterator and enforces the terminal-chunk contract.

    Use ``await stream.next_chunk()`` (returns None once finished) or
    ``async for chunk in stream``.
    """

    def __init__(self, source: AsyncIterator[StreamChunk], provider: str = "") -> None:
        self._source = source
        self.provider = provider
        self._state = StreamState.IDLE
        self._pending: deque[StreamChunk] = deque()

    @property
    def state(self) -> StreamState:
        return self._state

    async def next_chunk(self) -> StreamChunk | None:
        """Produce the next chunk, or None once the stream is DONE or FAILED."""
        if self._pending:
            chunk = self._pending.popleft()
            if chunk.done:
                await self._finish()
            return chunk

        if self._state in (StreamState.DONE, StreamState.FAILED):
            return None

        self._state = StreamState.STREAMING
        while True:
            try:
                chunk = await self._source.__anext__()
            except StopAsyncIteration:
                await self._finish()
                return StreamChunk(content="", done=True)
            except Exception:
                self._state = StreamState.FAILED
                await self._close_source()
                raise

            if chunk.done:
                terminal = StreamChunk(content="", done=True)
                if chunk.content:
                    self._pending.append(terminal)
                    return StreamChunk(content=chunk.content, done=False)
                await self._finish()
                return terminal

            if chunk.content:
                return chunk

    async def _finish(self) -> None:
        self._state = StreamState.DONE
        await self._close_source()

    async def _close_source(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    def __aiter__(self) -> "ChunkStream":
        return self

    async def __anext__(self) -> StreamChunk:
        chunk = await self.next_chunk()
        if chunk is None:
            raise StopAsyncIteration
        return chunk
