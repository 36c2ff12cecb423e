"""Event processor protocol.

A processor receives the events of one batch.  Returning normally means the
batch may be committed; raising aborts the current stream session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class EventsProcessor(Protocol):
    """Protocol that every event processor must satisfy."""

    async def process(self, events: Sequence[Any]) -> None:
        """Handle the events of one batch, in order.

        Events are the raw JSON values from the stream; use
        :meth:`streaming_api.models.Event.from_raw` for a typed view.
        """
        ...
