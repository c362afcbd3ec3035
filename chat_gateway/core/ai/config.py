"""Configuration models for the AI gateway and its provider adapters."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..settings import ProviderEnvironment, Settings
from .exceptions import ProviderConfigurationError
from .types import ProviderName

logger = logging.getLogger(__name__)

DEMO_API_KEY = "demo-key-for-testing"
DEMO_MODEL = "demo-gpt-4"
DEFAULT_PROVIDER = ProviderName.OPENAI
MAX_TIMEOUT_SECONDS = 600.0


class ProviderDescriptor(BaseModel):
    """Immutable description of a single network provider."""

    model_config = ConfigDict(frozen=True)

    kind: ProviderName
    name: str = Field(..., description="Human readable provider name")
    base_url: str = Field(default="", description="Base URL for the provider API")
    api_key: str = Field(default="", repr=False, description="Credential used to authenticate")
    models: tuple[str, ...] = Field(default=(), description="Models offered by the provider")
    default_model: str = Field(default="", description="Model invoked for every request")
    max_tokens: int = Field(default=2000, description="Completion token ceiling")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    api_version: str | None = Field(default=None, description="API version query parameter")

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)


class FallbackPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    providers: tuple[ProviderName, ...] = (ProviderName.OPENAI,)


class RateLimitPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    max_requests_per_minute: int = 20
    max_requests_per_hour: int = 100
    sweep_interval: float = 300.0


class CachingPolicy(BaseModel):
    """Response caching switches. Declared for configuration parity only."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    ttl_minutes: int = 10


class ContextPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_length: int = 8000
    file_path: Path = Path("context/prompt-context.txt")


class GatewayConfig(BaseModel):
    """Aggregate configuration for the chat gateway, read-only once loaded."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderName = DEFAULT_PROVIDER
    providers: dict[ProviderName, ProviderDescriptor] = Field(default_factory=dict)
    fallback: FallbackPolicy = Field(default_factory=FallbackPolicy)
    rate_limit: RateLimitPolicy = Field(default_factory=RateLimitPolicy)
    caching: CachingPolicy = Field(default_factory=CachingPolicy)
    context: ContextPolicy = Field(default_factory=ContextPolicy)
    demo_fallback: bool = True
    demo_delay: float = 0.0

    @property
    def primary(self) -> ProviderDescriptor | None:
        """Descriptor of the selected provider, ``None`` in explicit demo mode."""

        return self.providers.get(self.provider)

    def descriptor_for(self, kind: ProviderName) -> ProviderDescriptor:
        try:
            return self.providers[kind]
        except KeyError as exc:
            raise ProviderConfigurationError(f"Provider '{kind.value}' is not configured") from exc

    @property
    def uses_demo(self) -> bool:
        """Whether requests are answered by the demo generator instead of a provider."""

        if self.provider is ProviderName.DEMO:
            return True
        primary = self.primary
        if primary is not None and primary.api_key == DEMO_API_KEY:
            return True
        return self.demo_fallback and (primary is None or not primary.has_credential)

    @property
    def is_available(self) -> bool:
        primary = self.primary
        return self.uses_demo or (primary is not None and primary.has_credential)

    @property
    def resolved_model(self) -> str:
        if self.uses_demo:
            return DEMO_MODEL
        primary = self.primary
        return primary.default_model if primary is not None else ""


def validate_gateway_config(config: GatewayConfig) -> list[str]:
    """Return human readable problems with *config*; empty when valid."""

    errors: list[str] = []
    if config.provider is ProviderName.DEMO:
        return errors

    primary = config.primary
    if primary is None:
        errors.append(f"No descriptor configured for primary provider: {config.provider.value}")
        return errors

    if not primary.has_credential:
        errors.append(f"API key is required for primary provider: {config.provider.value}")
    elif primary.api_key == DEMO_API_KEY:
        errors.append(f"Demo API key is not a real credential for primary provider: {config.provider.value}")
    if not primary.base_url:
        errors.append(f"Base URL is required for primary provider: {config.provider.value}")
    if not primary.default_model:
        errors.append(f"Default model is required for primary provider: {config.provider.value}")

    if config.fallback.enabled:
        for kind in config.fallback.providers:
            descriptor = config.providers.get(kind)
            if descriptor is None or not descriptor.has_credential:
                errors.append(f"API key is required for fallback provider: {kind.value}")

    if primary.max_tokens <= 0:
        errors.append("Max tokens must be greater than 0")
    if primary.temperature < 0 or primary.temperature > 2:
        errors.append("Temperature must be between 0 and 2")
    if primary.timeout <= 0:
        errors.append("Timeout must be greater than 0")
    elif primary.timeout > MAX_TIMEOUT_SECONDS:
        errors.append(f"Timeout must be at most {MAX_TIMEOUT_SECONDS:g} seconds")

    return errors


def _descriptor(kind: ProviderName, name: str, env: ProviderEnvironment, api_version: str | None = None) -> ProviderDescriptor:
    return ProviderDescriptor(
        kind=kind,
        name=name,
        base_url=env.base_url.rstrip("/"),
        api_key=env.api_key,
        models=tuple(env.models),
        default_model=env.model,
        max_tokens=env.max_tokens,
        temperature=env.temperature,
        timeout=env.timeout,
        api_version=api_version,
    )


def _parse_kind(value: str, errors: list[str]) -> ProviderName | None:
    try:
        return ProviderName(value.strip().lower())
    except ValueError:
        errors.append(f"Unknown AI provider: {value}")
        return None


def load_gateway_config(settings: Settings) -> GatewayConfig:
    """Build the gateway configuration from *settings* and validate it.

    Validation problems are fatal in production. Elsewhere they are logged and
    unknown provider names are replaced by defaults so local runs keep working.
    """

    errors: list[str] = []

    provider = _parse_kind(settings.ai_provider, errors) or DEFAULT_PROVIDER
    fallback_providers = tuple(
        kind
        for kind in (_parse_kind(value, errors) for value in settings.fallback_providers)
        if kind is not None and kind.is_network
    )

    config = GatewayConfig(
        provider=provider,
        providers={
            ProviderName.OPENAI: _descriptor(ProviderName.OPENAI, "OpenAI", settings.openai),
            ProviderName.AZURE_OPENAI: _descriptor(
                ProviderName.AZURE_OPENAI,
                "Azure OpenAI",
                settings.azure_openai,
                api_version=settings.azure_openai.api_version,
            ),
            ProviderName.ANTHROPIC: _descriptor(ProviderName.ANTHROPIC, "Anthropic", settings.anthropic),
        },
        fallback=FallbackPolicy(enabled=settings.fallback_enabled, providers=fallback_providers),
        rate_limit=RateLimitPolicy(
            enabled=settings.rate_limiting_enabled,
            max_requests_per_minute=settings.max_requests_per_minute,
            max_requests_per_hour=settings.max_requests_per_hour,
            sweep_interval=settings.rate_limit_sweep_interval,
        ),
        caching=CachingPolicy(
            enabled=settings.caching_enabled,
            ttl_minutes=settings.cache_ttl_minutes,
        ),
        context=ContextPolicy(
            max_length=settings.context_max_length,
            file_path=settings.context_path,
        ),
        demo_fallback=settings.demo_fallback,
        demo_delay=settings.demo_delay,
    )

    errors.extend(validate_gateway_config(config))
    if errors:
        if settings.is_production:
            raise ProviderConfigurationError(
                f"AI configuration is invalid: {', '.join(errors)}"
            )
        logger.warning("ai.config.invalid", extra={"errors": errors})

    return config


__all__ = (
    "CachingPolicy",
    "ContextPolicy",
    "DEMO_API_KEY",
    "DEMO_MODEL",
    "MAX_TIMEOUT_SECONDS",
    "FallbackPolicy",
    "GatewayConfig",
    "ProviderDescriptor",
    "RateLimitPolicy",
    "load_gateway_config",
    "validate_gateway_config",
)
