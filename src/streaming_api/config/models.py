"""Pydantic configuration models for the streaming API client."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class ProcessorType(StrEnum):
    """Built-in event processor variants."""

    PRINT = "print"
    LOG = "log"


class ApiConfig(BaseModel):
    """Streaming API endpoint, authentication and request settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://localhost:8080"
    subscriptions_path: str = "/api/v1/subscriptions"
    api_key_header: str = "apikey"
    stream_id_header: str = "X-Mambu-StreamId"
    api_key: SecretStr | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = f"base_url '{v}' must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")

    @field_validator("subscriptions_path")
    @classmethod
    def normalize_path(cls, v: str) -> str:
        return "/" + v.strip("/")

    @property
    def subscriptions_url(self) -> str:
        return f"{self.base_url}{self.subscriptions_path}"

    def subscription_url(self, subscription_id: str) -> str:
        return f"{self.subscriptions_url}/{subscription_id}"

    def events_url(self, subscription_id: str) -> str:
        return f"{self.subscription_url(subscription_id)}/events"

    def cursors_url(self, subscription_id: str) -> str:
        return f"{self.subscription_url(subscription_id)}/cursors"


class StreamConfig(BaseModel):
    """Consume-loop tuning: server batching parameters and reconnect policy."""

    model_config = ConfigDict(frozen=True)

    batch_flush_timeout: int = Field(default=5, ge=1)
    batch_limit: int = Field(default=1, ge=1)
    commit_timeout: int = Field(default=60, ge=1)
    # Added to commit_timeout to get the fixed delay before reconnecting.
    reconnect_margin_seconds: float = Field(default=5.0, ge=0.0)
    read_timeout_seconds: float = Field(default=90.0, gt=0)
    # None retries forever; otherwise re-raise after N failed sessions in a row.
    max_consecutive_failures: int | None = Field(default=None, ge=1)

    @property
    def backoff_seconds(self) -> float:
        return self.commit_timeout + self.reconnect_margin_seconds

    @property
    def query_params(self) -> dict[str, int]:
        return {
            "batch_flush_timeout": self.batch_flush_timeout,
            "batch_limit": self.batch_limit,
            "commit_timeout": self.commit_timeout,
        }


class ProcessorConfig(BaseModel):
    """Selects which built-in processor the CLI wires into the consume loop."""

    model_config = ConfigDict(frozen=True)

    processor_type: ProcessorType = ProcessorType.PRINT
    show_body: bool = True


class ClientConfig(BaseModel):
    """Top-level client configuration, built once at startup."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    api: ApiConfig = ApiConfig()
    stream: StreamConfig = StreamConfig()
    processor: ProcessorConfig = ProcessorConfig()
