"""Error taxonomy for the streaming API client.

Every failure the consume loop knows how to recover from is a subclass of
:class:`StreamingApiError` tagged with an :class:`ErrorKind`.  The loop
reconnects on these and lets anything else propagate.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    TRANSPORT = "transport"
    DECODE = "decode"
    PROCESSING = "processing"
    COMMIT = "commit"
    CREATION = "creation"


class StreamingApiError(Exception):
    """Base class for recognised streaming API failures."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class StreamTransportError(StreamingApiError):
    """Connection could not be opened, or failed mid-read."""

    kind = ErrorKind.TRANSPORT


class StreamDecodeError(StreamingApiError):
    """The response body could not be decoded at the transport layer."""

    kind = ErrorKind.DECODE


class EventProcessingError(StreamingApiError):
    """The event processor raised while handling a batch."""

    kind = ErrorKind.PROCESSING


class CommitCursorError(StreamingApiError):
    """A cursor commit was rejected or could not be sent."""

    kind = ErrorKind.COMMIT

    def __init__(
        self, message: str, *, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SubscriptionError(StreamingApiError):
    """A subscription request was rejected or could not be completed.

    ``body`` holds the raw response text, verbatim; ``status_code`` is
    ``None`` when no response was received.
    """

    kind = ErrorKind.CREATION

    def __init__(
        self, status_code: int | None, body: str = "", message: str | None = None
    ) -> None:
        if message is None:
            message = f"Subscription creation failed ({status_code}): {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body
