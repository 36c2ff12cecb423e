"""Unit tests for the streaming API client using respx to mock httpx."""

import json

import httpx
import pytest
import respx

from streaming_api.client import StreamingApiClient
from streaming_api.config.models import ApiConfig, ClientConfig
from streaming_api.errors import SubscriptionError
from streaming_api.models import ApiResponse, Subscription
from streaming_api.processors.queue import QueueEventsProcessor
from streaming_api.streaming.monitor import BoundedMonitor

BASE_URL = "http://streaming.test"
SUBSCRIPTIONS_URL = f"{BASE_URL}/api/v1/subscriptions"


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(api=ApiConfig(base_url=BASE_URL))


@pytest.fixture
def subscription() -> Subscription:
    return Subscription(
        owning_application="loan-service",
        event_types=["loan.created", "loan.updated"],
        consumer_group="reporting",
    )


class TestCreateSubscription:
    @pytest.mark.asyncio
    @respx.mock
    async def test_created_returns_server_subscription(
        self, config: ClientConfig, subscription: Subscription
    ):
        route = respx.post(SUBSCRIPTIONS_URL).mock(
            return_value=httpx.Response(
                201,
                json={
                    "id": "sub-42",
                    "owning_application": "loan-service",
                    "event_types": ["loan.created", "loan.updated"],
                    "consumer_group": "reporting",
                    "read_from": "end",
                    "created_at": "2024-01-01T00:00:00Z",
                    "authorization": {"admins": []},
                },
            )
        )
        async with StreamingApiClient(config) as client:
            created = await client.create_subscription(subscription, "key-1")

        assert created.id == "sub-42"
        assert created.read_from == "end"
        assert created.model_extra == {"authorization": {"admins": []}}

        request = route.calls.last.request
        assert request.headers["apikey"] == "key-1"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "owning_application": "loan-service",
            "event_types": ["loan.created", "loan.updated"],
            "consumer_group": "reporting",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_ok_status_is_success(
        self, config: ClientConfig, subscription: Subscription
    ):
        respx.post(SUBSCRIPTIONS_URL).mock(
            return_value=httpx.Response(200, json={"id": "existing", "event_types": []})
        )
        async with StreamingApiClient(config) as client:
            created = await client.create_subscription(subscription, "key-1")
        assert created.id == "existing"

    @pytest.mark.asyncio
    @respx.mock
    async def test_failure_raises_with_raw_body(
        self, config: ClientConfig, subscription: Subscription
    ):
        body = '{"title":"Unprocessable Entity","detail":"event type not found"}'
        respx.post(SUBSCRIPTIONS_URL).mock(
            return_value=httpx.Response(422, text=body)
        )
        async with StreamingApiClient(config) as client:
            with pytest.raises(SubscriptionError) as exc_info:
                await client.create_subscription(subscription, "key-1")

        assert exc_info.value.status_code == 422
        assert exc_info.value.body == body
        assert exc_info.value.kind == "creation"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201])
    async def test_unreadable_success_body_raises(
        self,
        respx_mock: respx.MockRouter,
        config: ClientConfig,
        subscription: Subscription,
        status: int,
    ):
        respx_mock.post(SUBSCRIPTIONS_URL).mock(
            return_value=httpx.Response(status, text="ok")
        )
        async with StreamingApiClient(config) as client:
            with pytest.raises(SubscriptionError) as exc_info:
                await client.create_subscription(subscription, "key-1")

        assert exc_info.value.status_code == status
        assert exc_info.value.body == "ok"

    @pytest.mark.asyncio
    async def test_transport_failure_raises(
        self,
        respx_mock: respx.MockRouter,
        config: ClientConfig,
        subscription: Subscription,
    ):
        respx_mock.post(SUBSCRIPTIONS_URL).mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        async with StreamingApiClient(config) as client:
            with pytest.raises(
                SubscriptionError, match="connection refused"
            ) as exc_info:
                await client.create_subscription(subscription, "key-1")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestDeleteSubscription:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "body"),
        [(204, ""), (404, '{"detail":"not found"}'), (500, "boom")],
    )
    async def test_returns_raw_response(
        self,
        respx_mock: respx.MockRouter,
        config: ClientConfig,
        status: int,
        body: str,
    ):
        route = respx_mock.delete(f"{SUBSCRIPTIONS_URL}/sub-42").mock(
            return_value=httpx.Response(status, text=body)
        )
        async with StreamingApiClient(config) as client:
            response = await client.delete_subscription("sub-42", "key-1")

        assert response == ApiResponse(status_code=status, body=body)
        assert route.calls.last.request.headers["apikey"] == "key-1"

    @pytest.mark.asyncio
    async def test_transport_failure_raises(
        self, respx_mock: respx.MockRouter, config: ClientConfig
    ):
        respx_mock.delete(f"{SUBSCRIPTIONS_URL}/sub-42").mock(
            side_effect=httpx.ReadTimeout("timed out")
        )
        async with StreamingApiClient(config) as client:
            with pytest.raises(SubscriptionError, match="sub-42") as exc_info:
                await client.delete_subscription("sub-42", "key-1")

        assert exc_info.value.status_code is None


class TestConsumeEvents:
    @pytest.mark.asyncio
    async def test_requires_processor(self, config: ClientConfig):
        async with StreamingApiClient(config) as client:
            with pytest.raises(RuntimeError, match="processor"):
                await client.consume_events("sub-42", "key-1")

    @pytest.mark.asyncio
    async def test_consumes_into_processor(
        self, respx_mock: respx.MockRouter, config: ClientConfig
    ):
        line = json.dumps(
            {
                "cursor": {"partition": "0", "offset": "7"},
                "events": [{"metadata": {"eid": "e-1"}, "body": {"amount": 10}}],
            }
        )
        respx_mock.get(f"{SUBSCRIPTIONS_URL}/sub-42/events").mock(
            return_value=httpx.Response(
                200,
                headers={"X-Mambu-StreamId": "stream-1"},
                content=f"{line}\n".encode(),
            )
        )
        respx_mock.post(f"{SUBSCRIPTIONS_URL}/sub-42/cursors").mock(
            return_value=httpx.Response(204)
        )
        processor = QueueEventsProcessor()

        async with StreamingApiClient(
            config, processor=processor, monitor=BoundedMonitor(1)
        ) as client:
            await client.consume_events("sub-42", "key-1")

        batch = processor.queue.get_nowait()
        assert batch == [{"metadata": {"eid": "e-1"}, "body": {"amount": 10}}]
        assert processor.queue.empty()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_external_http_client_not_closed(self, config: ClientConfig):
        http_client = httpx.AsyncClient()
        async with StreamingApiClient(config, http_client=http_client):
            pass
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    @respx.mock
    async def test_wait_until_ready(self, config: ClientConfig):
        route = respx.get(SUBSCRIPTIONS_URL).mock(return_value=httpx.Response(401))
        async with StreamingApiClient(config) as client:
            await client.wait_until_ready()
        assert route.called
