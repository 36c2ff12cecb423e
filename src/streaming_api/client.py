"""Streaming API client: subscription lifecycle and event consumption."""

from __future__ import annotations

import asyncio
from http import HTTPStatus

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from streaming_api.config.models import ClientConfig
from streaming_api.errors import SubscriptionError
from streaming_api.models import ApiResponse, Subscription
from streaming_api.processors.base import EventsProcessor
from streaming_api.streaming.controller import SleepFunc, StreamController
from streaming_api.streaming.monitor import ExecutionMonitor, StopFlagMonitor

logger = structlog.get_logger()

_CREATE_SUCCESS = frozenset({HTTPStatus.OK, HTTPStatus.CREATED})


class StreamingApiClient:
    """Async client for the subscriptions API.

    - ``create_subscription``: register a consumer over one or more event types.
    - ``consume_events``: stream events of a subscription, hand every batch to
      the processor and commit its cursor; reconnects until the monitor stops it.
    - ``delete_subscription``: remove a subscription, returning the raw response.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        processor: EventsProcessor | None = None,
        monitor: ExecutionMonitor | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._processor = processor
        self._monitor = monitor or StopFlagMonitor()
        self._sleep = sleep
        self._own_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.api.timeout_seconds,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def monitor(self) -> ExecutionMonitor:
        return self._monitor

    async def close(self) -> None:
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> StreamingApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- Health ----------------------------------------------------------------

    @retry(
        retry=retry_if_exception_type(httpx.HTTPError),
        stop=stop_after_attempt(10),
        wait=wait_exponential(multiplier=2, max=30),
        reraise=True,
    )
    async def wait_until_ready(self) -> None:
        """Block until the subscriptions endpoint answers at all."""
        await self._client.get(self._config.api.subscriptions_url)
        logger.info("streaming_api.ready", url=self._config.api.base_url)

    # -- Subscriptions ---------------------------------------------------------

    async def create_subscription(
        self, subscription: Subscription, api_key: str
    ) -> Subscription:
        """POST a subscription definition and return the server's version of it."""
        api = self._config.api
        try:
            response = await self._client.post(
                api.subscriptions_url,
                json=subscription.to_payload(),
                headers={
                    "Content-Type": "application/json",
                    api.api_key_header: api_key,
                },
            )
        except httpx.HTTPError as exc:
            msg = f"Failed to send subscription request: {exc}"
            raise SubscriptionError(None, message=msg) from exc
        if response.status_code not in _CREATE_SUCCESS:
            raise SubscriptionError(response.status_code, response.text)

        try:
            created = Subscription.model_validate_json(response.content)
        except ValidationError as exc:
            msg = (
                f"Subscription created ({response.status_code}) but the response "
                f"is not a subscription: {response.text}"
            )
            raise SubscriptionError(
                response.status_code, response.text, message=msg
            ) from exc

        logger.info(
            "subscription.created",
            subscription_id=created.id,
            event_types=created.event_types,
        )
        return created

    async def delete_subscription(
        self, subscription_id: str, api_key: str
    ) -> ApiResponse:
        """DELETE a subscription; the response is returned as-is for any status."""
        api = self._config.api
        try:
            response = await self._client.delete(
                api.subscription_url(subscription_id),
                headers={api.api_key_header: api_key},
            )
        except httpx.HTTPError as exc:
            msg = f"Failed to delete subscription {subscription_id}: {exc}"
            raise SubscriptionError(None, message=msg) from exc
        logger.info(
            "subscription.deleted",
            subscription_id=subscription_id,
            status_code=response.status_code,
        )
        return ApiResponse.from_httpx(response)

    # -- Consumption -----------------------------------------------------------

    def controller(self) -> StreamController:
        if self._processor is None:
            msg = "StreamingApiClient needs an events processor to consume events"
            raise RuntimeError(msg)
        return StreamController(
            self._client,
            self._config,
            self._processor,
            self._monitor,
            sleep=self._sleep or asyncio.sleep,
        )

    async def consume_events(self, subscription_id: str, api_key: str) -> None:
        """Consume events until the monitor stops the loop.

        Lost connections (server idle timeout, network errors, processing or
        commit failures) are retried after a fixed delay.
        """
        await self.controller().consume(subscription_id, api_key)
