"""Consume loop: stream → decode → process → commit, reconnecting on failure."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import aclosing

import httpx
import structlog

from streaming_api.config.models import ClientConfig
from streaming_api.errors import EventProcessingError, StreamingApiError
from streaming_api.models import Batch
from streaming_api.observability.stats import ConsumerStats
from streaming_api.processors.base import EventsProcessor
from streaming_api.streaming.committer import CursorCommitter
from streaming_api.streaming.decoder import decode_batch
from streaming_api.streaming.monitor import ExecutionMonitor
from streaming_api.streaming.session import StreamSession, open_session

logger = structlog.get_logger()

SleepFunc = Callable[[float], Awaitable[None]]


class StreamController:
    """Sequential at-least-once consumer for one subscription.

    Each connection attempt is an independent session.  Within a session,
    batches are processed and committed strictly in arrival order, and a
    batch is only committed after the processor returned for it.  Any
    recognised failure discards the session, waits
    ``commit_timeout + reconnect_margin_seconds`` and reconnects.  The
    monitor is consulted between sessions only.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: ClientConfig,
        processor: EventsProcessor,
        monitor: ExecutionMonitor,
        *,
        committer: CursorCommitter | None = None,
        sleep: SleepFunc = asyncio.sleep,
        stats: ConsumerStats | None = None,
    ) -> None:
        self._client = client
        self._api = config.api
        self._stream = config.stream
        self._processor = processor
        self._monitor = monitor
        self._committer = committer or CursorCommitter(client, config.api)
        self._sleep = sleep
        self._stats = stats or ConsumerStats()

    @property
    def stats(self) -> ConsumerStats:
        return self._stats

    async def consume(self, subscription_id: str, api_key: str) -> None:
        """Run sessions until the monitor says stop."""
        backoff = self._stream.backoff_seconds
        limit = self._stream.max_consecutive_failures
        logger.info(
            "consumer.started",
            subscription_id=subscription_id,
            backoff_seconds=backoff,
        )

        while self._monitor.should_continue():
            try:
                await self._run_session(subscription_id, api_key)
            except StreamingApiError as exc:
                self._stats.record_error(exc.kind, exc)
                logger.warning(
                    "consumer.session_failed",
                    subscription_id=subscription_id,
                    kind=exc.kind.value,
                    error=str(exc),
                    consecutive_failures=self._stats.consecutive_failures,
                    retry_in_seconds=backoff,
                )
                if limit is not None and self._stats.consecutive_failures >= limit:
                    logger.error(
                        "consumer.giving_up",
                        subscription_id=subscription_id,
                        consecutive_failures=self._stats.consecutive_failures,
                    )
                    raise
                await self._sleep(backoff)

            logger.debug("consumer.reconnecting", subscription_id=subscription_id)

        logger.info(
            "consumer.stopped", subscription_id=subscription_id, **self._stats.as_dict()
        )

    async def _run_session(self, subscription_id: str, api_key: str) -> None:
        async with open_session(
            self._client, self._api, self._stream, subscription_id, api_key
        ) as session:
            self._stats.sessions_opened += 1
            self._stats.last_stream_id = session.stream_id

            async with aclosing(session.lines()) as lines:
                async for line in lines:
                    batch = decode_batch(line)
                    if batch is None:
                        if line.strip():
                            self._stats.skipped_lines += 1
                        continue
                    if not batch.has_events:
                        self._stats.heartbeats += 1
                        continue
                    await self._handle_batch(batch, session, api_key)

        self._stats.clean_disconnects += 1
        self._stats.consecutive_failures = 0
        logger.info(
            "consumer.stream_closed",
            subscription_id=subscription_id,
            stream_id=session.stream_id,
        )

    async def _handle_batch(
        self, batch: Batch, session: StreamSession, api_key: str
    ) -> None:
        events = batch.events or []
        try:
            await self._processor.process(events)
        except Exception as exc:
            msg = (
                f"Event processor failed on batch at cursor "
                f"{batch.cursor.to_payload()}: {exc}"
            )
            raise EventProcessingError(msg) from exc

        # Stream id must come from the session that delivered this batch.
        await self._committer.commit_or_raise(
            batch.cursor, session.stream_id, session.subscription_id, api_key
        )

        self._stats.batches_processed += 1
        self._stats.events_processed += len(events)
        self._stats.commits += 1
        self._stats.consecutive_failures = 0
        self._stats.last_cursor = batch.cursor.to_payload()
        logger.debug(
            "consumer.batch_committed",
            subscription_id=session.subscription_id,
            stream_id=session.stream_id,
            events=len(events),
            cursor=self._stats.last_cursor,
        )
