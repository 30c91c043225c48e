# ai_router/cli.py
"""
CLI entry point for ai-router.

Available commands:
  ai-router serve [--host 0.0.0.0] [--port 5181]
  ai-router status [--config router.yaml]
  ai-router models [--config router.yaml]
  ai-router dashboard [--url http://localhost:5181] [--port 8501]
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .constants import DEFAULT_PORT
from .exceptions import ConfigurationError
from .log import setup_logging
from .router import RoutingEngine

app = typer.Typer(
    name="ai-router",
    help="Multi-provider LLM gateway with task routing and fallback.",
    add_completion=False,
)
console = Console()


def _load_engine(config_path: Optional[str]) -> RoutingEngine:
    if config_path:
        return RoutingEngine.from_yaml(config_path)
    return RoutingEngine.from_env()


def _build_status_table(engine: RoutingEngine, availability: dict[str, bool]) -> Table:
    """Render provider availability as a Rich table."""
    table = Table(title="AI Router — Provider Status", show_lines=True)
    table.add_column("Provider", style="bold cyan", no_wrap=True)
    table.add_column("Adapter")
    table.add_column("Default model")
    table.add_column("Role")
    table.add_column("Available")

    chain = engine.config.fallback_chain
    for provider_id, available in availability.items():
        provider = engine.get_provider(provider_id)
        if provider_id == engine.config.default_provider:
            role = "default"
        elif provider_id in chain:
            role = f"fallback #{chain.index(provider_id) + 1}"
        else:
            role = "-"
        table.add_row(
            provider_id,
            provider.name if provider else "?",
            provider.model if provider else "?",
            role,
            "[green]UP ✓[/green]" if available else "[red]DOWN ✗[/red]",
        )
    return table


async def _fetch_status(config_path: Optional[str]) -> Table:
    async with _load_engine(config_path) as engine:
        availability = await engine.check_availability()
        return _build_status_table(engine, availability)


async def _fetch_models(config_path: Optional[str]) -> dict[str, list[str]]:
    async with _load_engine(config_path) as engine:
        return await engine.list_all_models()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: AI_ROUTER_PORT or 5181)"),
) -> None:
    """Run the HTTP gateway."""
    import uvicorn

    from .config import RateLimitConfig
    from .limiter.token_bucket import RateLimiter
    from .server import create_app
    from .store import GatewayState

    setup_logging()
    port = port or int(os.environ.get("AI_ROUTER_PORT", DEFAULT_PORT))
    state = GatewayState(limiter=RateLimiter(RateLimitConfig.from_env()))
    console.print(f"🤖 ai-router API starting on http://{host}:{port}")
    uvicorn.run(create_app(state), host=host, port=port, log_config=None)


@app.command()
def status(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to router.yaml"),
) -> None:
    """Show which configured providers are reachable."""
    setup_logging("WARNING")
    try:
        table = asyncio.run(_fetch_status(config))
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    console.print(table)


@app.command()
def models(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to router.yaml"),
) -> None:
    """List the models every configured provider can serve."""
    setup_logging("WARNING")
    try:
        all_models = asyncio.run(_fetch_models(config))
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    table = Table(title="AI Router — Models")
    table.add_column("Provider", style="bold cyan")
    table.add_column("Model")
    for provider_id, names in all_models.items():
        if not names:
            table.add_row(provider_id, "[dim](none)[/dim]")
        for name in names:
            table.add_row(provider_id, name)
    console.print(table)


@app.command()
def dashboard(
    url: str = typer.Option(
        f"http://localhost:{DEFAULT_PORT}", "--url", "-u", help="Gateway base URL"
    ),
    port: int = typer.Option(8501, "--port", "-p", help="Port for Streamlit dashboard"),
) -> None:
    """Launch the Streamlit admin dashboard against a running gateway."""
    try:
        import streamlit  # noqa: F401  type: ignore[import]
    except ImportError:
        typer.echo(
            "Streamlit is required for the dashboard. "
            "Install with: pip install 'ai-router[dashboard]'",
            err=True,
        )
        raise typer.Exit(1)

    import subprocess
    import sys

    dashboard_script = Path(__file__).parent / "_dashboard.py"
    subprocess.run(
        [
            sys.executable, "-m", "streamlit", "run", str(dashboard_script),
            "--server.port", str(port), "--", "--url", url,
        ],
        check=True,
    )


if __name__ == "__main__":
    app()
