"""AI provider adapters and dispatch exports."""

from __future__ import annotations

from .config import GatewayConfig, ProviderDescriptor, load_gateway_config
from .exceptions import (
    AIProviderError,
    AIServiceError,
    FailureKind,
    MessageValidationError,
    ProviderConfigurationError,
    ProviderTimeoutError,
    RateLimitExceeded,
)
from .service import AIService
from .types import AIResponse, ChatMessage, ProviderName, TokenUsage

__all__ = (
    "AIProviderError",
    "AIResponse",
    "AIService",
    "AIServiceError",
    "ChatMessage",
    "FailureKind",
    "GatewayConfig",
    "MessageValidationError",
    "ProviderConfigurationError",
    "ProviderDescriptor",
    "ProviderName",
    "ProviderTimeoutError",
    "RateLimitExceeded",
    "TokenUsage",
    "load_gateway_config",
)
