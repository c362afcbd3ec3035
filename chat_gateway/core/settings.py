"""Application settings and configuration management."""

from __future__ import annotations

import os
from functools import cached_property, lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

CommaList = Annotated[list[str], NoDecode]


def _default_base_dir() -> Path:
    """Determine a sensible default base directory for the application."""

    base_dir_env = os.getenv("APP_BASE_DIR") or os.getenv("BASE_DIR")
    if base_dir_env:
        return Path(base_dir_env).expanduser()

    return Path.cwd()


def _split_commas(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ProviderEnvironment(BaseSettings):
    """Environment sourced settings shared by every network provider."""

    model_config = SettingsConfigDict(env_file=(".env",), extra="ignore")

    base_url: str = Field(default="", description="Base URL for the provider API")
    api_key: str = Field(default="", description="API key used for authentication")
    models: CommaList = Field(default_factory=list, description="Models offered by the provider")
    model: str = Field(default="", description="Default model identifier to invoke")
    max_tokens: int = Field(default=2000, description="Completion token ceiling")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    timeout: float = Field(default=30.0, description="Whole-request deadline in seconds, not milliseconds")

    @field_validator("models", mode="before")
    @classmethod
    def _split_models(cls, value: Any) -> Any:
        return _split_commas(value)


class OpenAIEnvironment(ProviderEnvironment):
    model_config = SettingsConfigDict(env_prefix="OPENAI_", env_file=(".env",), extra="ignore")

    base_url: str = Field(default="https://api.openai.com/v1")
    models: CommaList = Field(default_factory=lambda: ["gpt-4", "gpt-4-turbo", "gpt-3.5-turbo"])
    model: str = Field(default="gpt-4")


class AzureOpenAIEnvironment(ProviderEnvironment):
    model_config = SettingsConfigDict(
        env_prefix="AZURE_OPENAI_", env_file=(".env",), extra="ignore", populate_by_name=True
    )

    base_url: str = Field(
        default="",
        validation_alias=AliasChoices("AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_BASE_URL"),
    )
    models: CommaList = Field(default_factory=lambda: ["gpt-4", "gpt-35-turbo"])
    model: str = Field(default="gpt-4")
    api_version: str = Field(default="2024-02-15-preview")


class AnthropicEnvironment(ProviderEnvironment):
    model_config = SettingsConfigDict(env_prefix="ANTHROPIC_", env_file=(".env",), extra="ignore")

    base_url: str = Field(default="https://api.anthropic.com/v1")
    models: CommaList = Field(
        default_factory=lambda: [
            "claude-3-opus-20240229",
            "claude-3-sonnet-20240229",
            "claude-3-haiku-20240307",
        ]
    )
    model: str = Field(default="claude-3-sonnet-20240229")


class Settings(BaseSettings):
    """Runtime configuration derived from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=(".env",),
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="Assistant Chat Gateway")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("APP_ENVIRONMENT", "ENVIRONMENT"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("APP_LOG_LEVEL", "LOG_LEVEL"),
    )

    allowed_origins: CommaList = Field(
        default_factory=list,
        description="List of origins permitted by CORS configuration.",
    )
    base_dir: Path = Field(
        default_factory=_default_base_dir,
        validation_alias=AliasChoices("APP_BASE_DIR", "BASE_DIR"),
        description="Root directory used to resolve relative file locations.",
    )

    ai_provider: str = Field(
        default="openai",
        validation_alias=AliasChoices("APP_AI_PROVIDER", "AI_PROVIDER"),
    )
    demo_fallback: bool = Field(
        default=True,
        validation_alias=AliasChoices("APP_AI_DEMO_FALLBACK", "AI_DEMO_FALLBACK"),
        description="Serve templated demo responses when the primary provider has no credential.",
    )
    demo_delay: float = Field(
        default=0.0,
        validation_alias=AliasChoices("APP_AI_DEMO_DELAY", "AI_DEMO_DELAY"),
        description="Seconds to wait before returning a demo response, simulating provider latency.",
    )
    fallback_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("APP_AI_FALLBACK_ENABLED", "AI_FALLBACK_ENABLED"),
    )
    fallback_providers: CommaList = Field(
        default_factory=lambda: ["openai"],
        validation_alias=AliasChoices("APP_AI_FALLBACK_PROVIDERS", "AI_FALLBACK_PROVIDERS"),
    )

    rate_limiting_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("APP_AI_RATE_LIMITING_ENABLED", "AI_RATE_LIMITING_ENABLED"),
    )
    max_requests_per_minute: int = Field(
        default=20,
        validation_alias=AliasChoices("APP_AI_MAX_REQUESTS_PER_MINUTE", "AI_MAX_REQUESTS_PER_MINUTE"),
    )
    max_requests_per_hour: int = Field(
        default=100,
        validation_alias=AliasChoices("APP_AI_MAX_REQUESTS_PER_HOUR", "AI_MAX_REQUESTS_PER_HOUR"),
    )
    rate_limit_sweep_interval: float = Field(
        default=300.0,
        validation_alias=AliasChoices(
            "APP_AI_RATE_LIMIT_SWEEP_INTERVAL", "AI_RATE_LIMIT_SWEEP_INTERVAL"
        ),
    )

    caching_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("APP_AI_CACHING_ENABLED", "AI_CACHING_ENABLED"),
    )
    cache_ttl_minutes: int = Field(
        default=10,
        validation_alias=AliasChoices("APP_AI_CACHE_TTL_MINUTES", "AI_CACHE_TTL_MINUTES"),
    )

    context_max_length: int = Field(
        default=8000,
        validation_alias=AliasChoices("APP_AI_CONTEXT_MAX_LENGTH", "AI_CONTEXT_MAX_LENGTH"),
    )
    context_file_path: Path = Field(
        default=Path("context/prompt-context.txt"),
        validation_alias=AliasChoices("APP_AI_CONTEXT_FILE_PATH", "AI_CONTEXT_FILE_PATH"),
    )

    openai: OpenAIEnvironment = Field(default_factory=OpenAIEnvironment)
    azure_openai: AzureOpenAIEnvironment = Field(default_factory=AzureOpenAIEnvironment)
    anthropic: AnthropicEnvironment = Field(default_factory=AnthropicEnvironment)

    @field_validator("allowed_origins", "fallback_providers", mode="before")
    @classmethod
    def _split_lists(cls, value: Any) -> Any:
        return _split_commas(value)

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @cached_property
    def context_path(self) -> Path:
        path = self.context_file_path.expanduser()
        if not path.is_absolute():
            path = self.base_dir.expanduser() / path
        return path.resolve()


@lru_cache()
def get_settings() -> Settings:
    """Return a cached instance of application settings."""

    return Settings()
