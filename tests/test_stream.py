# tests/test_stream.py
"""
Tests for the ChunkStream state machine.
"""

from __future__ import annotations

from typing import AsyncIterator

import pytest

from ai_router.engine.stream import ChunkStream, StreamState
from ai_router.models import StreamChunk


async def source(*chunks: StreamChunk, error: Exception | None = None) -> AsyncIterator[StreamChunk]:
    for chunk in chunks:
        yield chunk
    if error is not None:
        raise error


async def drain(stream: ChunkStream) -> list[StreamChunk]:
    return [chunk async for chunk in stream]


@pytest.mark.asyncio
class TestChunkStream:
    async def test_starts_idle(self):
        stream = ChunkStream(source())
        assert stream.state is StreamState.IDLE

    async def test_streaming_after_first_pull(self):
        stream = ChunkStream(source(StreamChunk(content="a"), StreamChunk(done=True)))
        await stream.next_chunk()
        assert stream.state is StreamState.STREAMING

    async def test_exactly_one_terminal_chunk(self):
        stream = ChunkStream(
            source(StreamChunk(content="a"), StreamChunk(content="b"), StreamChunk(done=True))
        )
        chunks = await drain(stream)
        assert [(c.content, c.done) for c in chunks] == [("a", False), ("b", False), ("", True)]
        assert stream.state is StreamState.DONE
        assert await stream.next_chunk() is None

    async def test_terminal_synthesised_when_source_ends(self):
        stream = ChunkStream(source(StreamChunk(content="a")))
        chunks = await drain(stream)
        assert chunks[-1] == StreamChunk(content="", done=True)
        assert sum(c.done for c in chunks) == 1

    async def test_done_chunk_with_content_is_split(self):
        stream = ChunkStream(source(StreamChunk(content="tail", done=True)))
        chunks = await drain(stream)
        assert [(c.content, c.done) for c in chunks] == [("tail", False), ("", True)]

    async def test_empty_content_chunks_are_dropped(self):
        stream = ChunkStream(
            source(StreamChunk(content=""), StreamChunk(content="x"), StreamChunk(done=True))
        )
        chunks = await drain(stream)
        assert [c.content for c in chunks] == ["x", ""]

    async def test_nothing_after_terminal(self):
        stream = ChunkStream(
            source(StreamChunk(done=True), StreamChunk(content="late"), StreamChunk(done=True))
        )
        chunks = await drain(stream)
        assert chunks == [StreamChunk(content="", done=True)]

    async def test_failure_reraised_and_terminal(self):
        stream = ChunkStream(source(StreamChunk(content="a"), error=ValueError("boom")))
        assert (await stream.next_chunk()).content == "a"
        with pytest.raises(ValueError, match="boom"):
            await stream.next_chunk()
        assert stream.state is StreamState.FAILED
        assert await stream.next_chunk() is None

    async def test_provider_label(self):
        stream = ChunkStream(source(), provider="ollama")
        assert stream.provider == "ollama"
