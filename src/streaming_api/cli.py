"""Typer CLI for the streaming API client."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx
import structlog
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from streaming_api.client import StreamingApiClient
from streaming_api.config.loader import load_client_config, load_yaml
from streaming_api.config.models import ClientConfig, ProcessorType
from streaming_api.errors import StreamingApiError, SubscriptionError
from streaming_api.models import Subscription
from streaming_api.observability.health import Status, check_client_health
from streaming_api.processors.factory import create_processor
from streaming_api.streaming.monitor import SignalMonitor

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="stream-api", help="Streaming API client CLI")


@app.callback()
def main(
    log_level: str = typer.Option("info", "--log-level", help="Minimum log level"),
) -> None:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        console.print(f"[red]Unknown log level: {log_level}[/red]")
        raise typer.Exit(2)
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _load(
    config_path: str | None, overrides: dict[str, Any] | None = None
) -> ClientConfig:
    if config_path is not None and not Path(config_path).exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    try:
        return load_client_config(
            Path(config_path) if config_path else None, overrides=overrides
        )
    except (TypeError, ValueError) as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        raise typer.Exit(1) from exc


def _api_key(config: ClientConfig, api_key: str | None) -> str:
    if api_key:
        return api_key
    configured = config.api.api_key
    if configured is not None and configured.get_secret_value():
        return configured.get_secret_value()
    console.print(
        "[red]No API key:[/red] pass --api-key or set STREAMING_API_KEY / api.api_key"
    )
    raise typer.Exit(1)


@app.command()
def validate(
    config_path: str | None = typer.Option(None, "--config", help="Client YAML"),
) -> None:
    """Validate a client configuration file."""
    config = _load(config_path)
    console.print(f"[green]Valid[/green]: {config_path or '(defaults)'}")
    console.print(f"  api:       {config.api.subscriptions_url}")
    console.print(f"  stream id: {config.api.stream_id_header}")
    console.print(
        f"  batching:  flush={config.stream.batch_flush_timeout}s "
        f"limit={config.stream.batch_limit} commit={config.stream.commit_timeout}s"
    )
    console.print(f"  backoff:   {config.stream.backoff_seconds}s")
    console.print(f"  processor: {config.processor.processor_type}")


@app.command()
def health(
    config_path: str | None = typer.Option(None, "--config", help="Client YAML"),
    api_key: str | None = typer.Option(None, "--api-key", help="Streaming API key"),
) -> None:
    """Check that the streaming API is reachable."""
    config = _load(config_path)
    key = api_key
    if key is None and config.api.api_key is not None:
        key = config.api.api_key.get_secret_value() or None
    result = check_client_health(config.api, key)

    table = Table(title="Streaming API Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")

    for c in result.components:
        style = "green" if c.status == Status.HEALTHY else "red"
        table.add_row(c.name, f"[{style}]{c.status}[/{style}]", c.detail)

    console.print(table)
    if not result.healthy:
        raise typer.Exit(1)


@app.command("create-subscription")
def create_subscription(
    definition_path: str = typer.Argument(..., help="Subscription YAML/JSON"),
    config_path: str | None = typer.Option(None, "--config", help="Client YAML"),
    api_key: str | None = typer.Option(None, "--api-key", help="Streaming API key"),
) -> None:
    """Create a subscription from a definition file."""
    config = _load(config_path)
    key = _api_key(config, api_key)
    try:
        subscription = Subscription.model_validate(load_yaml(definition_path))
    except (FileNotFoundError, TypeError, ValueError, ValidationError) as exc:
        console.print(f"[red]Invalid subscription definition:[/red] {exc}")
        raise typer.Exit(1) from exc

    async def _create() -> Subscription:
        async with StreamingApiClient(config) as client:
            return await client.create_subscription(subscription, key)

    try:
        created = asyncio.run(_create())
    except SubscriptionError as exc:
        if exc.status_code is None:
            console.print(f"[red]Subscription request failed:[/red] {exc}")
        else:
            console.print(f"[red]Subscription rejected ({exc.status_code}):[/red]")
            console.print(exc.body, markup=False)
        raise typer.Exit(1) from exc

    console.print(f"[green]Subscription created:[/green] {created.id}")
    console.print(json.dumps(created.to_payload(), indent=2), markup=False)


@app.command("delete-subscription")
def delete_subscription(
    subscription_id: str = typer.Argument(..., help="Subscription id"),
    config_path: str | None = typer.Option(None, "--config", help="Client YAML"),
    api_key: str | None = typer.Option(None, "--api-key", help="Streaming API key"),
) -> None:
    """Delete a subscription and print the server's response."""
    config = _load(config_path)
    key = _api_key(config, api_key)

    async def _delete() -> tuple[int, str]:
        async with StreamingApiClient(config) as client:
            response = await client.delete_subscription(subscription_id, key)
            return response.status_code, response.body

    try:
        status_code, body = asyncio.run(_delete())
    except SubscriptionError as exc:
        console.print(f"[red]Delete failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    style = "green" if status_code < 300 else "red"
    console.print(f"[{style}]{status_code}[/{style}]")
    if body:
        console.print(body, markup=False)


@app.command()
def consume(
    subscription_id: str = typer.Argument(..., help="Subscription id"),
    config_path: str | None = typer.Option(None, "--config", help="Client YAML"),
    api_key: str | None = typer.Option(None, "--api-key", help="Streaming API key"),
    processor: ProcessorType | None = typer.Option(
        None, "--processor", help="Built-in processor (overrides config)"
    ),
    wait: bool = typer.Option(
        True, "--wait/--no-wait", help="Wait for the API before connecting"
    ),
) -> None:
    """Consume a subscription until interrupted (Ctrl-C / SIGTERM)."""
    overrides: dict[str, Any] | None = None
    if processor is not None:
        overrides = {"processor": {"processor_type": processor.value}}
    config = _load(config_path, overrides)
    key = _api_key(config, api_key)
    processor_config = config.processor

    console.print(f"[yellow]Consuming subscription:[/yellow] {subscription_id}")
    console.print(f"  processor: {processor_config.processor_type}")

    async def _consume() -> None:
        monitor = SignalMonitor().install()
        async with StreamingApiClient(
            config,
            processor=create_processor(processor_config),
            monitor=monitor,
        ) as client:
            if wait:
                await client.wait_until_ready()
            await client.consume_events(subscription_id, key)

    try:
        asyncio.run(_consume())
    except StreamingApiError as exc:
        console.print(f"[red]Consumer stopped ({exc.kind}):[/red] {exc}")
        raise typer.Exit(1) from exc
    except httpx.HTTPError as exc:
        console.print(f"[red]Streaming API unreachable:[/red] {exc}")
        raise typer.Exit(1) from exc
