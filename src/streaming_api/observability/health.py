"""Health probes for the streaming API."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

import httpx
import structlog

from streaming_api.config.models import ApiConfig

logger = structlog.get_logger()


class Status(StrEnum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class ComponentHealth:
    name: str
    status: Status = Status.UNKNOWN
    detail: str = ""


@dataclass
class ClientHealth:
    components: list[ComponentHealth] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return all(c.status == Status.HEALTHY for c in self.components)

    @property
    def summary(self) -> dict[str, str]:
        return {c.name: c.status.value for c in self.components}


def check_subscriptions_endpoint(
    api: ApiConfig, api_key: str | None = None
) -> ComponentHealth:
    """Probe the subscriptions endpoint.

    Any answer below 500 counts as reachable; 401/403 are reported
    as unhealthy since streaming would fail with the same key.
    """
    headers = {api.api_key_header: api_key} if api_key else {}
    try:
        resp = httpx.get(api.subscriptions_url, headers=headers, timeout=5)
    except httpx.HTTPError as exc:
        return ComponentHealth(
            name="streaming-api", status=Status.UNHEALTHY, detail=str(exc)
        )
    if resp.status_code >= 500 or resp.status_code in (401, 403):
        return ComponentHealth(
            name="streaming-api",
            status=Status.UNHEALTHY,
            detail=f"{resp.status_code} from {api.subscriptions_url}",
        )
    return ComponentHealth(
        name="streaming-api",
        status=Status.HEALTHY,
        detail=f"{resp.status_code} from {api.subscriptions_url}",
    )


def check_client_health(api: ApiConfig, api_key: str | None = None) -> ClientHealth:
    """Run all health checks and return aggregated result."""
    components = [check_subscriptions_endpoint(api, api_key)]
    if not api_key:
        components.append(
            ComponentHealth(
                name="api-key",
                status=Status.UNHEALTHY,
                detail="no API key configured",
            )
        )
    else:
        components.append(
            ComponentHealth(name="api-key", status=Status.HEALTHY, detail="configured")
        )
    result = ClientHealth(components=components)
    logger.debug("health.checked", **result.summary)
    return result
