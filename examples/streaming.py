# examples/streaming.py
"""
Streaming chat completion.

Run with:
  OLLAMA_ENABLED=true python examples/streaming.py
"""

import asyncio

from ai_router import LLMRequest, Message, RoutingEngine


async def main():
    async with RoutingEngine.from_env() as engine:
        print("Streaming response:\n")
        stream = engine.stream(LLMRequest(
            messages=[Message(role="user", content="Tell me a short story about a robot.")],
        ))
        async for chunk in stream:
            print(chunk.content, end="", flush=True)
        print(f"\n\nDone ({stream.state.value}).")


if __name__ == "__main__":
    asyncio.run(main())
