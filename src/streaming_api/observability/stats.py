"""In-process consume-loop counters."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from streaming_api.errors import ErrorKind


@dataclass
class ConsumerStats:
    sessions_opened: int = 0
    clean_disconnects: int = 0
    batches_processed: int = 0
    events_processed: int = 0
    heartbeats: int = 0
    skipped_lines: int = 0
    commits: int = 0
    consecutive_failures: int = 0
    errors: Counter[ErrorKind] = field(default_factory=Counter)
    last_error: str | None = None
    last_stream_id: str | None = None
    last_cursor: dict[str, Any] | None = None

    def record_error(self, kind: ErrorKind, error: Exception) -> None:
        self.errors[kind] += 1
        self.consecutive_failures += 1
        self.last_error = str(error)

    def as_dict(self) -> dict[str, Any]:
        return {
            "sessions_opened": self.sessions_opened,
            "clean_disconnects": self.clean_disconnects,
            "batches_processed": self.batches_processed,
            "events_processed": self.events_processed,
            "heartbeats": self.heartbeats,
            "skipped_lines": self.skipped_lines,
            "commits": self.commits,
            "errors": {kind.value: count for kind, count in self.errors.items()},
            "last_error": self.last_error,
            "last_stream_id": self.last_stream_id,
            "last_cursor": self.last_cursor,
        }
