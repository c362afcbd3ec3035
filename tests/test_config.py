from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from chat_gateway.core.ai.config import (
    DEMO_API_KEY,
    DEMO_MODEL,
    GatewayConfig,
    load_gateway_config,
    validate_gateway_config,
)
from chat_gateway.core.ai.exceptions import ProviderConfigurationError
from chat_gateway.core.ai.types import ProviderName
from chat_gateway.core.settings import OpenAIEnvironment, Settings, get_settings


def test_environment_variables_populate_settings(monkeypatch, runtime_environment) -> None:
    monkeypatch.setenv("AI_PROVIDER", "azure-openai")
    monkeypatch.setenv("AZURE_OPENAI_ENDPOINT", "https://contoso.openai.azure.com/")
    monkeypatch.setenv("AZURE_OPENAI_API_KEY", "azure-key")
    monkeypatch.setenv("AZURE_OPENAI_MODEL", "gpt4-deployment")
    monkeypatch.setenv("AZURE_OPENAI_API_VERSION", "2024-05-01-preview")
    monkeypatch.setenv("AI_FALLBACK_ENABLED", "true")
    monkeypatch.setenv("AI_FALLBACK_PROVIDERS", "openai, anthropic")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic-key")
    monkeypatch.setenv("AI_MAX_REQUESTS_PER_MINUTE", "5")
    monkeypatch.setenv("APP_ALLOWED_ORIGINS", "https://a.example,https://b.example")

    settings = get_settings()
    config = load_gateway_config(settings)

    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert config.provider is ProviderName.AZURE_OPENAI
    primary = config.primary
    assert primary is not None
    assert primary.base_url == "https://contoso.openai.azure.com"
    assert primary.default_model == "gpt4-deployment"
    assert primary.api_version == "2024-05-01-preview"
    assert config.fallback.enabled is True
    assert config.fallback.providers == (ProviderName.OPENAI, ProviderName.ANTHROPIC)
    assert config.rate_limit.max_requests_per_minute == 5
    assert config.context.file_path == (runtime_environment / "context" / "prompt-context.txt").resolve()
    assert validate_gateway_config(config) == []


def test_credentials_are_hidden_from_repr() -> None:
    config = load_gateway_config(Settings(openai=OpenAIEnvironment(api_key="sk-hidden")))

    assert "sk-hidden" not in repr(config)


def test_missing_key_uses_demo_outside_production(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="chat_gateway")

    config = load_gateway_config(Settings())

    assert config.uses_demo is True
    assert config.is_available is True
    assert config.resolved_model == DEMO_MODEL
    assert any(record.getMessage() == "ai.config.invalid" for record in caplog.records)


def test_missing_key_is_fatal_in_production() -> None:
    with pytest.raises(ProviderConfigurationError, match="API key is required"):
        load_gateway_config(Settings(environment="production"))


def test_unknown_provider_falls_back_to_default_outside_production() -> None:
    config = load_gateway_config(
        Settings(ai_provider="mystery", openai=OpenAIEnvironment(api_key="openai-key"))
    )

    assert config.provider is ProviderName.OPENAI
    assert config.uses_demo is False


def test_unknown_provider_is_fatal_in_production() -> None:
    settings = Settings(
        environment="production",
        ai_provider="mystery",
        openai=OpenAIEnvironment(api_key="openai-key"),
    )

    with pytest.raises(ProviderConfigurationError, match="Unknown AI provider"):
        load_gateway_config(settings)


def test_explicit_demo_provider_is_valid_in_production() -> None:
    config = load_gateway_config(Settings(environment="production", ai_provider="demo"))

    assert config.provider is ProviderName.DEMO
    assert config.primary is None
    assert config.uses_demo is True


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({"max_tokens": 0}, "Max tokens must be greater than 0"),
        ({"temperature": 2.5}, "Temperature must be between 0 and 2"),
        ({"timeout": 0}, "Timeout must be greater than 0"),
        ({"timeout": 30000}, "Timeout must be at most 600 seconds"),
        ({"base_url": ""}, "Base URL is required for primary provider: openai"),
    ],
)
def test_validation_reports_bad_provider_values(overrides: dict, expected: str) -> None:
    settings = Settings(openai=OpenAIEnvironment(api_key="openai-key", **overrides))

    errors = validate_gateway_config(load_gateway_config(settings))

    assert expected in errors


def test_fallback_provider_without_key_is_reported() -> None:
    settings = Settings(
        fallback_enabled=True,
        fallback_providers=["anthropic"],
        openai=OpenAIEnvironment(api_key="openai-key"),
    )

    errors = validate_gateway_config(load_gateway_config(settings))

    assert errors == ["API key is required for fallback provider: anthropic"]


def test_default_gateway_config_is_frozen() -> None:
    config = GatewayConfig()

    with pytest.raises(ValidationError):
        config.provider = ProviderName.ANTHROPIC  # type: ignore[misc]


def test_demo_sentinel_key_is_fatal_in_production() -> None:
    settings = Settings(environment="production", openai=OpenAIEnvironment(api_key=DEMO_API_KEY))

    with pytest.raises(ProviderConfigurationError, match="Demo API key is not a real credential"):
        load_gateway_config(settings)


def test_demo_sentinel_key_is_reported_outside_production() -> None:
    config = load_gateway_config(Settings(openai=OpenAIEnvironment(api_key=DEMO_API_KEY)))

    assert config.uses_demo is True
    assert validate_gateway_config(config) == [
        "Demo API key is not a real credential for primary provider: openai"
    ]


def test_demo_delay_is_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("AI_DEMO_DELAY", "1.5")

    config = load_gateway_config(get_settings())

    assert config.demo_delay == 1.5
