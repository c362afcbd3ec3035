"""Dispatch of chat messages to the configured AI provider with fallback."""

from __future__ import annotations

import logging
import time
from functools import partial
from collections.abc import Awaitable, Callable, Mapping

import httpx

from .config import GatewayConfig
from .context import read_prompt_context
from .demo import generate_demo_response
from .exceptions import AIProviderError, ProviderConfigurationError
from .providers.anthropic import AnthropicClient
from .providers.azure import AzureOpenAIClient
from .providers.base import BaseAIClient
from .providers.openai import OpenAIClient
from .types import AIResponse, ChatMessage, ProviderName

logger = logging.getLogger(__name__)

DemoResponder = Callable[[str], Awaitable[AIResponse]]

_CLIENT_TYPES: dict[ProviderName, type[BaseAIClient]] = {
    ProviderName.OPENAI: OpenAIClient,
    ProviderName.AZURE_OPENAI: AzureOpenAIClient,
    ProviderName.ANTHROPIC: AnthropicClient,
}


class AIService:
    """Facade sending a single-turn conversation to the configured providers."""

    def __init__(
        self,
        config: GatewayConfig,
        *,
        transport_overrides: Mapping[ProviderName, httpx.AsyncBaseTransport] | None = None,
        demo_responder: DemoResponder | None = None,
    ) -> None:
        self._config = config
        self._transport_overrides = dict(transport_overrides or {})
        self._clients = self._initialise_clients()
        self._demo_responder = demo_responder or partial(generate_demo_response, delay=config.demo_delay)

    async def __aenter__(self) -> "AIService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def config(self) -> GatewayConfig:
        return self._config

    async def aclose(self) -> None:
        """Close any underlying HTTP clients."""

        for client in self._clients.values():
            await client.aclose()

    async def call_ai(self, user_message: str) -> AIResponse:
        """Return a completion for *user_message*.

        The primary provider is tried first. When it fails and fallback is
        enabled, the configured fallback providers are tried in order. If every
        attempt fails the primary's original error is raised.
        """

        config = self._config
        if config.uses_demo:
            logger.info("ai.demo.response", extra={"provider": config.provider.value})
            return await self._demo_responder(user_message)

        primary = config.primary
        if primary is None or not primary.has_credential:
            raise ProviderConfigurationError(
                f"API key not configured for provider: {config.provider.value}"
            )

        try:
            return await self._invoke(config.provider, user_message)
        except AIProviderError as primary_error:
            if not config.fallback.enabled:
                raise

            for kind in self._fallback_candidates():
                logger.info(
                    "ai.fallback.attempt",
                    extra={"provider": kind.value, "primary": config.provider.value},
                )
                try:
                    response = await self._invoke(kind, user_message)
                except AIProviderError:
                    continue
                logger.info("ai.fallback.success", extra={"provider": kind.value})
                return response

            raise primary_error

    def _fallback_candidates(self) -> list[ProviderName]:
        config = self._config
        candidates: list[ProviderName] = []
        for kind in config.fallback.providers:
            if kind is config.provider or not kind.is_network or kind in candidates:
                continue
            descriptor = config.providers.get(kind)
            if descriptor is None or not descriptor.has_credential:
                continue
            candidates.append(kind)
        return candidates

    async def _invoke(self, kind: ProviderName, user_message: str) -> AIResponse:
        descriptor = self._config.descriptor_for(kind)
        client = self._clients[kind]
        messages = [
            ChatMessage(role="system", content=read_prompt_context(self._config.context)),
            ChatMessage(role="user", content=user_message),
        ]

        start_time = time.perf_counter()
        self._log_event("ai.request.start", kind, model=descriptor.default_model)
        try:
            response = await client.send(messages, descriptor)
        except AIProviderError as exc:
            self._log_event(
                "ai.request.failure",
                kind,
                model=descriptor.default_model,
                duration=time.perf_counter() - start_time,
                error=str(exc),
                failure_kind=exc.kind.value,
            )
            raise

        self._log_event(
            "ai.request.success",
            kind,
            model=response.model,
            duration=time.perf_counter() - start_time,
            total_tokens=response.usage.total_tokens if response.usage else None,
        )
        return response

    def _initialise_clients(self) -> dict[ProviderName, BaseAIClient]:
        transports = self._transport_overrides
        return {
            kind: client_type(transport=transports.get(kind))
            for kind, client_type in _CLIENT_TYPES.items()
        }

    @staticmethod
    def _log_event(action: str, provider: ProviderName, **fields: object) -> None:
        extra = {"provider": provider.value}
        extra.update({key: value for key, value in fields.items() if value is not None})
        level = logging.WARNING if action.endswith("failure") else logging.INFO
        logger.log(level, action, extra=extra)


__all__ = ("AIService",)
