# tests/test_client.py
"""
AIRouterClient tests, run in-process against the real gateway app through
httpx.ASGITransport.
"""

from __future__ import annotations

import json

import httpx
import pytest

from ai_router.client import AIRouterClient
from ai_router.exceptions import GatewayError
from ai_router.models import TaskType
from ai_router.server import create_app
from ai_router.store import GatewayState

from conftest import MockProvider, make_engine


def make_sdk(*providers: MockProvider, client_id: str | None = None, **kwargs) -> AIRouterClient:
    providers = providers or (MockProvider("openrouter"),)
    app = create_app(GatewayState(engine=make_engine(list(providers), **kwargs)))
    transport = httpx.ASGITransport(app=app)
    return AIRouterClient(
        "http://testserver/",
        client_id=client_id,
        client=httpx.AsyncClient(transport=transport),
    )


@pytest.mark.asyncio
class TestAIRouterClient:
    async def test_health(self):
        async with make_sdk() as sdk:
            assert (await sdk.health())["status"] == "ok"

    async def test_complete(self):
        async with make_sdk() as sdk:
            data = await sdk.complete(
                [{"role": "user", "content": "Hi"}], model="x/y", task_type="general"
            )
        assert data["provider"] == "openrouter"
        assert data["model"] == "x/y"

    async def test_route_and_helpers(self):
        async with make_sdk() as sdk:
            data = await sdk.route(TaskType.REASONING, "why?")
            assert data["task_type"] == "reasoning"
            assert await sdk.summarize("long text") == "Response from openrouter"
            assert await sdk.generate_code("fizzbuzz") == "Response from openrouter"

            logs = await sdk.get_logs()
            assert logs["stats"]["total"] == 3
            log = await sdk.get_log(logs["logs"][0]["id"])
            assert log["method"] == "route"

            await sdk.clear_logs()
            assert (await sdk.get_logs())["logs"] == []

    async def test_failure_raises_gateway_error(self):
        async with make_sdk(MockProvider("openrouter", should_fail=True)) as sdk:
            with pytest.raises(GatewayError) as exc_info:
                await sdk.complete([{"role": "user", "content": "Hi"}])
        assert exc_info.value.status_code == 500

    async def test_missing_log_raises_404(self):
        async with make_sdk() as sdk:
            with pytest.raises(GatewayError, match="Log not found") as exc_info:
                await sdk.get_log("log_nope")
        assert exc_info.value.status_code == 404

    async def test_config_roundtrip(self):
        async with make_sdk() as sdk:
            updated = await sdk.update_config({"default_provider": "ollama"})
            assert updated["default_provider"] == "ollama"
            assert (await sdk.get_config())["default_provider"] == "ollama"

    async def test_provider_discovery(self):
        async with make_sdk(MockProvider("openrouter", models=["a", "b:free"])) as sdk:
            providers = await sdk.list_providers()
            assert providers[0]["type"] == "openrouter"
            models = await sdk.list_models("openrouter")
            assert models["free_models"] == ["b:free"]
            status = await sdk.provider_status("openrouter")
            assert status["available"] is True

    async def test_configure_rejection(self):
        async with make_sdk() as sdk:
            with pytest.raises(GatewayError) as exc_info:
                await sdk.configure({"providers": [], "default_provider": "ollama"})
        assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_client_id_header_and_body_shape():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["client_id"] = request.headers.get("X-Client-ID")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": {"content": "ok"}})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with AIRouterClient("http://gw", client_id="svc-a", client=client) as sdk:
        await sdk.complete([{"role": "user", "content": "Hi"}], temperature=0.1)

    assert seen["client_id"] == "svc-a"
    assert seen["body"] == {"messages": [{"role": "user", "content": "Hi"}], "temperature": 0.1}
