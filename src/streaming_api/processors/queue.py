"""Processor that forwards each batch to an ``asyncio.Queue``."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any


class QueueEventsProcessor:
    """Hands batches to a downstream consumer task.

    With a bounded queue, ``process`` waits for room, so a slow consumer
    holds back the stream (and the commit) instead of buffering without
    limit.  A batch counts as processed once it is enqueued.
    """

    def __init__(self, queue: asyncio.Queue[list[Any]] | None = None) -> None:
        self.queue: asyncio.Queue[list[Any]] = queue or asyncio.Queue()

    async def process(self, events: Sequence[Any]) -> None:
        await self.queue.put(list(events))
