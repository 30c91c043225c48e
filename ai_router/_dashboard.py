# ai_router/_dashboard.py
"""
Streamlit admin dashboard for ai-router.

Launch via:
  ai-router dashboard --url http://localhost:5181

Or directly:
  streamlit run ai_router/_dashboard.py -- --url http://localhost:5181

Reads everything through the gateway's HTTP API (AIRouterClient): provider
availability, task routes, request log stats, and a prompt tester.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

try:
    import streamlit as st
except ImportError:  # pragma: no cover
    print(
        "Dashboard dependencies missing. Install with: pip install 'ai-router[dashboard]'",
        file=sys.stderr,
    )
    sys.exit(1)

from ai_router.client import AIRouterClient
from ai_router.constants import DEFAULT_PORT
from ai_router.exceptions import GatewayError
from ai_router.models import TaskType


def _gateway_url() -> str:
    args = sys.argv[1:]
    if "--url" in args:
        return args[args.index("--url") + 1]
    return f"http://localhost:{DEFAULT_PORT}"


async def _call(method: str, *args: Any, **kwargs: Any) -> Any:
    async with AIRouterClient(_gateway_url(), client_id="dashboard") as client:
        return await getattr(client, method)(*args, **kwargs)


def _run(method: str, *args: Any, **kwargs: Any) -> Any:
    return asyncio.run(_call(method, *args, **kwargs))


def render_providers() -> None:
    status = _run("status")
    if not status.get("configured"):
        st.error(status.get("error", "Router not configured"))
        return

    stats = status["stats"]
    cols = st.columns(4)
    cols[0].metric("Requests", stats["total"])
    cols[1].metric("Succeeded", stats["success"])
    cols[2].metric("Failed", stats["failed"])
    cols[3].metric("Avg latency", f"{stats['avg_latency_ms']} ms")

    for provider in status["providers"]:
        marker = "🟢" if provider["available"] else "🔴"
        st.markdown(f"{marker} **{provider['type']}**")


def render_routing() -> None:
    config = _run("get_config")
    st.markdown(f"**Default provider:** `{config['default_provider']}`")
    st.markdown(f"**Fallback chain:** {' → '.join(config['fallback_chain']) or '(none)'}")
    st.dataframe(config["task_routes"], use_container_width=True)


def render_logs() -> None:
    data = _run("get_logs", 50)
    rows = [
        {
            "id": log["id"],
            "time": log["timestamp"],
            "method": log["method"],
            "provider": (log.get("response") or {}).get("provider"),
            "model": (log.get("response") or {}).get("model"),
            "duration_ms": log["duration_ms"],
            "error": log.get("error"),
        }
        for log in data["logs"]
    ]
    st.dataframe(rows, use_container_width=True)
    if st.button("Clear logs"):
        _run("clear_logs")
        st.rerun()


def render_tester() -> None:
    task = st.selectbox("Task type", [t.value for t in TaskType])
    prompt = st.text_area("Prompt")
    if st.button("Send") and prompt:
        try:
            result = _run("route", task, prompt)
        except GatewayError as exc:
            st.error(str(exc))
            return
        st.caption(f"{result['provider']} / {result['model']} — {result['latency_ms']:.0f} ms")
        st.write(result["content"])


def render_dashboard() -> None:
    st.set_page_config(page_title="AI Router", page_icon="🤖", layout="wide")
    st.title("🤖 AI Router")
    st.caption(f"Gateway: {_gateway_url()}")

    providers, routing, logs, tester = st.tabs(["Providers", "Routing", "Logs", "Test"])
    with providers:
        render_providers()
    with routing:
        render_routing()
    with logs:
        render_logs()
    with tester:
        render_tester()


if __name__ == "__main__":
    render_dashboard()
