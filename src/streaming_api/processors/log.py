"""Processor that emits one structured log line per event."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from streaming_api.models import Event

logger = structlog.get_logger()


class LogEventsProcessor:
    def __init__(self, *, show_body: bool = False) -> None:
        self._show_body = show_body

    async def process(self, events: Sequence[Any]) -> None:
        for event in map(Event.from_raw, events):
            logger.info(
                "processor.event",
                eid=event.metadata.eid,
                event_type=event.metadata.event_type,
                template_name=event.template_name,
                body=event.body if self._show_body else None,
            )
