# examples/quickstart.py
"""
Quickstart — RoutingEngine via dict config.

Run with:
  OPENROUTER_API_KEY=... python examples/quickstart.py
"""

import asyncio
import os

from ai_router import LLMRequest, Message, RoutingEngine, TaskType


async def main():
    engine = RoutingEngine.from_dict({
        "providers": [
            {"type": "openrouter", "api_key": os.environ["OPENROUTER_API_KEY"]},
            {"type": "ollama", "base_url": "http://localhost:11434"},
        ],
        "default_provider": "openrouter",
        "fallback_chain": ["ollama"],
        "logging": True,
    })

    async with engine:
        response = await engine.complete(LLMRequest(
            messages=[Message(role="user", content="Summarise the benefits of functional programming.")],
            task_type=TaskType.SUMMARIZATION,
        ))

        print(f"Content:    {response.content[:200]}...")
        print(f"Provider:   {response.provider}")
        print(f"Model:      {response.model}")
        print(f"Latency:    {response.latency_ms:.1f}ms")
        if response.usage:
            print(f"Tokens:     {response.usage.total_tokens}")

        availability = await engine.check_availability()
        for provider, available in availability.items():
            print(f"{provider}: {'UP' if available else 'DOWN'}")


if __name__ == "__main__":
    asyncio.run(main())
