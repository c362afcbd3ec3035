"""Custom exceptions for AI provider orchestration."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..rate_limiter import WindowKind
    from .types import ProviderName


class FailureKind(str, Enum):
    """Structured classification of a provider failure."""

    RATE_LIMITED = "rate_limited"
    AUTHENTICATION = "authentication"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UPSTREAM = "upstream"
    INVALID_RESPONSE = "invalid_response"


class AIServiceError(RuntimeError):
    """Base exception for AI service failures."""


class MessageValidationError(AIServiceError):
    """Raised when an inbound chat message fails content validation."""


class ProviderConfigurationError(AIServiceError):
    """Raised when a provider is not correctly configured for use."""


class AIProviderError(AIServiceError):
    """Raised when a provider adapter encounters a request/response issue."""

    def __init__(
        self,
        message: str,
        *,
        provider: "ProviderName",
        kind: FailureKind = FailureKind.UPSTREAM,
        status_code: int | None = None,
        upstream_message: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.kind = kind
        self.status_code = status_code
        self.upstream_message = upstream_message
        self.code = code


class ProviderTimeoutError(AIProviderError):
    """Raised when a provider call exceeds its configured timeout."""

    def __init__(self, message: str, *, provider: "ProviderName") -> None:
        super().__init__(message, provider=provider, kind=FailureKind.TIMEOUT)


class RateLimitExceeded(AIServiceError):
    """Raised by the gateway when a client has exhausted a quota window."""

    def __init__(self, limit_kind: "WindowKind", reset_time: float, limit: int, retry_after: int) -> None:
        super().__init__(
            f"Too many requests. Please wait {retry_after} seconds before trying again."
        )
        self.limit_kind = limit_kind
        self.reset_time = reset_time
        self.limit = limit
        self.retry_after = retry_after


__all__ = (
    "AIProviderError",
    "AIServiceError",
    "FailureKind",
    "MessageValidationError",
    "ProviderConfigurationError",
    "ProviderTimeoutError",
    "RateLimitExceeded",
)
