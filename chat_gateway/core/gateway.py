"""Request gateway for the chat endpoint.

The gateway is transport agnostic: it receives the raw request body and a
client identifier and returns a status code, a JSON body and headers. It is
the only layer that picks status codes and rewrites error messages for users.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ..models.chat import ChatRequest, ChatResponse, ErrorResponse, HealthResponse, UsagePayload
from .ai.config import GatewayConfig
from .ai.exceptions import (
    AIProviderError,
    FailureKind,
    MessageValidationError,
    ProviderConfigurationError,
    RateLimitExceeded,
)
from .ai.service import AIService
from .ai.validation import validate_user_input
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

_STATUS_BY_FAILURE: dict[FailureKind, int] = {
    FailureKind.RATE_LIMITED: 429,
    FailureKind.AUTHENTICATION: 503,
    FailureKind.TIMEOUT: 504,
}

RATE_LIMIT_MESSAGE = "I'm receiving too many requests right now. Please wait a moment and try again."
CONFIGURATION_MESSAGE = "There's an issue with the AI service configuration. Please contact support."
CONNECTIVITY_MESSAGE = (
    "I'm having trouble connecting to the AI service. "
    "Please check your internet connection and try again."
)
QUOTA_MESSAGE = "The AI service is temporarily unavailable due to usage limits. Please try again later."
CONTENT_MESSAGE = (
    "I couldn't process your request due to content restrictions. Please try rephrasing your message."
)
GENERIC_MESSAGE = "I'm experiencing technical difficulties right now. Please try again in a few moments."
UNAVAILABLE_MESSAGE = "AI service is temporarily unavailable. Please try again later."
INTERNAL_MESSAGE = "An unexpected error occurred. Please try again later."

_QUOTA_MARKERS = ("quota", "billing", "insufficient")
_CONTENT_MARKERS = ("content", "filter", "policy")


@dataclass(slots=True)
class GatewayResult:
    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


def status_for(error: Exception) -> int:
    """Transport status for an error propagated out of the dispatch service."""

    if isinstance(error, AIProviderError):
        return _STATUS_BY_FAILURE.get(error.kind, 500)
    if isinstance(error, ProviderConfigurationError):
        return 503
    if isinstance(error, MessageValidationError):
        return 400
    if isinstance(error, RateLimitExceeded):
        return 429
    return 500


def friendly_message(error: AIProviderError) -> str:
    """Map a provider failure to one of a small set of user facing sentences."""

    code = (error.code or "").lower()
    if any(marker in code for marker in _QUOTA_MARKERS):
        return QUOTA_MESSAGE
    if error.kind is FailureKind.RATE_LIMITED:
        return RATE_LIMIT_MESSAGE
    if error.kind is FailureKind.AUTHENTICATION:
        return CONFIGURATION_MESSAGE
    if error.kind in (FailureKind.TIMEOUT, FailureKind.NETWORK):
        return CONNECTIVITY_MESSAGE
    if any(marker in code for marker in _CONTENT_MARKERS):
        return CONTENT_MESSAGE
    return GENERIC_MESSAGE


def _error(status_code: int, error: str, message: str, **extra: Any) -> GatewayResult:
    payload = ErrorResponse(error=error, message=message, **extra)
    return GatewayResult(status_code=status_code, body=payload.to_payload())


class ChatGateway:
    """Validate, rate limit and dispatch chat messages."""

    def __init__(
        self,
        config: GatewayConfig,
        service: AIService,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._config = config
        self._service = service
        self._rate_limiter = rate_limiter if config.rate_limit.enabled else None

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def rate_limiter(self) -> RateLimiter | None:
        return self._rate_limiter

    async def handle_chat(self, raw_body: bytes | str, identifier: str) -> GatewayResult:
        """Process one chat request and never raise."""

        try:
            return await self._handle_chat(raw_body, identifier)
        except Exception:
            logger.exception("gateway.unexpected_error")
            return _error(500, "Internal server error", INTERNAL_MESSAGE)

    async def _handle_chat(self, raw_body: bytes | str, identifier: str) -> GatewayResult:
        try:
            body = json.loads(raw_body)
        except ValueError:
            return _error(400, "Invalid JSON", "Request body must be valid JSON")
        if not isinstance(body, dict):
            return _error(400, "Invalid JSON", "Request body must be a JSON object")

        try:
            request = ChatRequest.model_validate(body)
        except ValidationError:
            return _error(400, "Invalid input", "Request fields have an invalid type")

        if not request.message:
            return _error(400, "Missing message", "Message field is required")

        try:
            self._validate(request.message)
        except MessageValidationError as exc:
            return _error(400, "Invalid input", str(exc))
        except ProviderConfigurationError:
            logger.error("gateway.provider_unconfigured", extra={"provider": self._config.provider.value})
            return _error(503, "Service unavailable", UNAVAILABLE_MESSAGE)

        try:
            self._admit(identifier)
        except RateLimitExceeded as exc:
            logger.info(
                "gateway.rate_limited",
                extra={"identifier": identifier, "limit_kind": exc.limit_kind.value},
            )
            return self._rate_limited(exc)

        result = await self._dispatch(request)
        result.headers.update(self._usage_headers(identifier))
        return result

    def health(self) -> GatewayResult:
        """Report configuration state without contacting any provider."""

        try:
            config = self._config
            primary = config.primary
            payload = HealthResponse(
                status="healthy",
                provider=config.provider.value,
                model=config.resolved_model,
                configured=primary is not None and primary.has_credential,
                rate_limiting=config.rate_limit.enabled,
                fallback=config.fallback.enabled,
            )
        except Exception:
            logger.exception("gateway.health_error")
            payload = HealthResponse(status="unhealthy", error="Configuration error")
            return GatewayResult(status_code=503, body=payload.to_payload())
        return GatewayResult(status_code=200, body=payload.to_payload())

    def _validate(self, message: str) -> None:
        validate_user_input(message)
        if not self._config.is_available:
            raise ProviderConfigurationError(
                f"AI provider {self._config.provider.value} not configured"
            )

    def _admit(self, identifier: str) -> None:
        limiter = self._rate_limiter
        if limiter is None:
            return
        decision = limiter.is_allowed(identifier)
        if not decision.allowed:
            reset_time = decision.reset_time if decision.reset_time is not None else limiter.now() + 60
            retry_after = max(math.ceil(reset_time - limiter.now()), 1)
            raise RateLimitExceeded(
                limit_kind=decision.limit_kind,
                reset_time=reset_time,
                limit=limiter.limit_for(decision.limit_kind),
                retry_after=retry_after,
            )
        limiter.record_request(identifier)

    async def _dispatch(self, request: ChatRequest) -> GatewayResult:
        try:
            response = await self._service.call_ai(request.message)
        except AIProviderError as exc:
            logger.error(
                "gateway.provider_error",
                extra={
                    "provider": exc.provider.value,
                    "failure_kind": exc.kind.value,
                    "status_code": exc.status_code,
                },
            )
            return _error(
                status_for(exc),
                "AI service error",
                friendly_message(exc),
                code=exc.code or exc.kind.value.upper(),
            )
        except ProviderConfigurationError:
            logger.error("gateway.provider_unconfigured", extra={"provider": self._config.provider.value})
            return _error(503, "Service unavailable", UNAVAILABLE_MESSAGE)

        usage = None
        if response.usage is not None:
            usage = UsagePayload(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        payload = ChatResponse(
            content=response.content,
            conversation_id=request.conversation_id,
            usage=usage,
            model=response.model,
            provider=response.provider.value,
        )
        return GatewayResult(status_code=200, body=payload.to_payload())

    def _rate_limited(self, exc: RateLimitExceeded) -> GatewayResult:
        result = _error(
            429,
            "Rate limit exceeded",
            str(exc),
            reset_time=int(exc.reset_time),
            limit=exc.limit_kind.value,
        )
        result.headers.update(
            {
                "Retry-After": str(exc.retry_after),
                "X-RateLimit-Limit": str(exc.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(exc.reset_time)),
                "X-RateLimit-Scope": exc.limit_kind.value,
            }
        )
        return result

    def _usage_headers(self, identifier: str) -> dict[str, str]:
        limiter = self._rate_limiter
        if limiter is None:
            return {}
        remaining = limiter.remaining(identifier)
        return {
            "X-RateLimit-Limit-Minute": str(limiter.max_requests_per_minute),
            "X-RateLimit-Limit-Hour": str(limiter.max_requests_per_hour),
            "X-RateLimit-Remaining-Minute": str(remaining.minute_count),
            "X-RateLimit-Remaining-Hour": str(remaining.hour_count),
        }


__all__ = ("ChatGateway", "GatewayResult", "friendly_message", "status_for")
