"""Processor that prints received events to the console."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from rich.console import Console

from streaming_api.models import Event


class PrintEventsProcessor:
    def __init__(self, console: Console | None = None, *, show_body: bool = True) -> None:
        self._console = console or Console()
        self._show_body = show_body

    async def process(self, events: Sequence[Any]) -> None:
        for event in map(Event.from_raw, events):
            self._console.rule("[cyan]event received[/cyan]")
            self._console.print(f"topic:         {event.metadata.event_type}")
            self._console.print(f"template name: {event.template_name}")
            if self._show_body:
                self._console.print(
                    f"template body: {json.dumps(event.body, default=str)}",
                    markup=False,
                )
