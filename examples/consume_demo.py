#!/usr/bin/env python3
"""Runnable demo: create a subscription, consume it, then delete it.

Prerequisites:
    export STREAMING_API_URL=https://tenant.example.com
    export STREAMING_API_KEY=...
    python examples/consume_demo.py
"""

from __future__ import annotations

import asyncio
import os
import sys

from rich.console import Console

from streaming_api.client import StreamingApiClient
from streaming_api.config.loader import load_client_config
from streaming_api.models import Subscription
from streaming_api.observability.health import Status, check_client_health
from streaming_api.processors.printer import PrintEventsProcessor
from streaming_api.streaming.monitor import SignalMonitor

console = Console()


async def run(api_key: str) -> None:
    config = load_client_config()
    monitor = SignalMonitor().install()

    async with StreamingApiClient(
        config, processor=PrintEventsProcessor(console), monitor=monitor
    ) as client:
        subscription = await client.create_subscription(
            Subscription(
                owning_application="consume-demo",
                consumer_group="consume-demo",
                event_types=[
                    os.environ.get("EVENT_TYPE", "mambu.streaming.loan.created")
                ],
            ),
            api_key,
        )
        console.print(f"[green]Subscription created:[/green] {subscription.id}")
        assert subscription.id is not None

        try:
            console.print("[yellow]Consuming, Ctrl-C to stop[/yellow]")
            await client.consume_events(subscription.id, api_key)
        finally:
            response = await client.delete_subscription(subscription.id, api_key)
            console.print(f"Subscription deleted: {response.status_code}")


def main() -> None:
    api_key = os.environ.get("STREAMING_API_KEY")
    if not api_key:
        console.print("[red]STREAMING_API_KEY is not set[/red]")
        sys.exit(1)

    health = check_client_health(load_client_config().api, api_key)
    for c in health.components:
        style = "green" if c.status == Status.HEALTHY else "red"
        console.print(f"  {c.name}: [{style}]{c.status}[/{style}] {c.detail}")
    if not health.healthy:
        sys.exit(1)

    asyncio.run(run(api_key))


if __name__ == "__main__":
    main()
