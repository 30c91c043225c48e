# examples/gateway_client.py
"""
Calling a running gateway over HTTP.

Start the gateway first:
  OPENROUTER_API_KEY=... ai-router serve

Then run:
  python examples/gateway_client.py
"""

import asyncio

from ai_router.client import AIRouterClient
from ai_router.exceptions import GatewayError


async def main():
    async with AIRouterClient("http://localhost:5181", client_id="example") as ai:
        for provider in await ai.list_providers():
            print(f"{provider['type']}: {'UP' if provider['available'] else 'DOWN'}")

        try:
            summary = await ai.summarize("The quick brown fox jumps over the lazy dog. " * 20)
        except GatewayError as exc:
            print(f"Gateway error ({exc.status_code}): {exc}")
            return
        print(f"\nSummary: {summary}")

        code = await ai.generate_code("reverse a linked list")
        print(f"\nCode:\n{code}")

        logs = await ai.get_logs(limit=5)
        print(f"\nStats: {logs['stats']}")


if __name__ == "__main__":
    asyncio.run(main())
