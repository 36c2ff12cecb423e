"""Wire models for subscriptions, stream batches and cursors.

All models keep unknown fields so that server payloads (cursors in
particular) survive a decode/encode round trip unchanged.  Events stay raw
JSON values on :class:`Batch`; :class:`Event` is an optional typed view for
processors that want one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class Subscription(BaseModel):
    """Consumer-group registration over one or more event types."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    owning_application: str | None = None
    event_types: list[str] = Field(default_factory=list)
    consumer_group: str | None = None
    read_from: str | None = None
    created_at: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class Cursor(BaseModel):
    """Opaque position marker; echoed back verbatim on commit."""

    model_config = ConfigDict(extra="allow")

    partition: str | int | None = None
    offset: str | int | None = None
    event_type: str | None = None
    cursor_token: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class EventMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    eid: str | None = None
    event_type: str | None = None
    occurred_at: str | None = None


class Event(BaseModel):
    """Typed view of one delivered event, for display-oriented processors."""

    model_config = ConfigDict(extra="allow")

    metadata: EventMetadata = Field(default_factory=EventMetadata)
    template_name: str | None = None
    body: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> Event:
        """Best-effort view of a raw event.

        Anything that does not fit the usual ``metadata`` / ``template_name``
        / ``body`` shape is exposed unchanged as ``body`` with empty metadata.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, dict):
            try:
                return cls.model_validate(raw)
            except ValidationError:
                return cls(body=raw)
        return cls(body=raw)


class Batch(BaseModel):
    """One stream record: a cursor plus zero or more events.

    Events are opaque JSON values and are handed to the processor as received.
    """

    model_config = ConfigDict(extra="allow")

    cursor: Cursor
    events: list[Any] | None = None

    @property
    def has_events(self) -> bool:
        # A batch without events is a keep-alive.
        return bool(self.events)


class CursorCommit(BaseModel):
    """Request body of the cursors endpoint."""

    items: list[Cursor]

    def to_payload(self) -> dict[str, Any]:
        return {"items": [c.to_payload() for c in self.items]}


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Raw status + body of a server response, passed through uninterpreted."""

    status_code: int
    body: str

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> ApiResponse:
        return cls(status_code=response.status_code, body=response.text)
