"""Wire models for the chat endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising field names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChatRequest(CamelModel):
    """Inbound chat payload."""

    message: str | None = Field(default=None, description="Free text sent to the assistant")
    conversation_id: str | None = Field(
        default=None, description="Opaque identifier echoed back to the caller"
    )


class UsagePayload(CamelModel):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatResponse(CamelModel):
    """Successful chat completion."""

    content: str
    conversation_id: str | None = None
    usage: UsagePayload | None = None
    model: str | None = None
    provider: str | None = None


class ErrorResponse(CamelModel):
    """Structured error returned for every failed request."""

    error: str = Field(..., description="Stable error category")
    message: str = Field(..., description="Human readable, non-leaking explanation")
    code: str | None = Field(default=None, description="Provider supplied or failure kind code")
    reset_time: int | None = Field(default=None, description="Epoch seconds when the quota resets")
    limit: str | None = Field(default=None, description="Exhausted rate limit window")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthResponse(CamelModel):
    status: str
    provider: str | None = None
    model: str | None = None
    configured: bool | None = None
    rate_limiting: bool | None = None
    fallback: bool | None = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


__all__ = (
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "HealthResponse",
    "UsagePayload",
)
