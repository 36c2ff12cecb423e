"""One streaming connection attempt and the stream id the server issued for it."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import httpx
import structlog

from streaming_api.config.models import ApiConfig, StreamConfig
from streaming_api.errors import StreamDecodeError, StreamTransportError

logger = structlog.get_logger()


@dataclass
class StreamSession:
    """Open events stream.  Valid only inside :func:`open_session`."""

    subscription_id: str
    stream_id: str
    response: httpx.Response = field(repr=False)

    async def lines(self) -> AsyncIterator[str]:
        """Yield raw body lines lazily until the server closes the stream.

        Not restartable.  Transport failures while reading are re-raised as
        :class:`StreamTransportError` (or :class:`StreamDecodeError`).
        """
        try:
            async for line in self.response.aiter_lines():
                yield line
        except httpx.DecodingError as exc:
            msg = f"Failed to decode stream {self.stream_id}: {exc}"
            raise StreamDecodeError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Stream {self.stream_id} failed while reading: {exc}"
            raise StreamTransportError(msg) from exc


@asynccontextmanager
async def open_session(
    client: httpx.AsyncClient,
    api: ApiConfig,
    stream: StreamConfig,
    subscription_id: str,
    api_key: str,
) -> AsyncIterator[StreamSession]:
    """Open the subscription's events stream; the response is closed on exit."""
    timeout = httpx.Timeout(api.timeout_seconds, read=stream.read_timeout_seconds)
    request = client.build_request(
        "GET",
        api.events_url(subscription_id),
        params=stream.query_params,
        headers={api.api_key_header: api_key},
        timeout=timeout,
    )
    try:
        response = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        msg = f"Failed to open events stream for subscription {subscription_id}: {exc}"
        raise StreamTransportError(msg) from exc

    try:
        if not response.is_success:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = ""
            msg = (
                f"Events stream for subscription {subscription_id} refused: "
                f"{response.status_code} {body}"
            )
            raise StreamTransportError(msg)

        stream_id = response.headers.get(api.stream_id_header)
        if not stream_id:
            msg = f"Events stream response is missing the {api.stream_id_header} header"
            raise StreamTransportError(msg)

        logger.info(
            "session.opened", subscription_id=subscription_id, stream_id=stream_id
        )
        yield StreamSession(
            subscription_id=subscription_id, stream_id=stream_id, response=response
        )
    finally:
        await response.aclose()
