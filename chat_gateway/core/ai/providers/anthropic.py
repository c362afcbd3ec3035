"""Anthropic provider adapter."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..config import ProviderDescriptor
from ..exceptions import AIProviderError, FailureKind
from ..types import AIResponse, ChatMessage, ProviderName, TokenUsage
from .base import BaseAIClient

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicClient(BaseAIClient):
    """Adapter for Anthropic Messages API."""

    kind = ProviderName.ANTHROPIC

    def _endpoint(self, descriptor: ProviderDescriptor) -> str:
        return f"{descriptor.base_url}/messages"

    def _auth_headers(self, descriptor: ProviderDescriptor) -> dict[str, str]:
        return {
            "x-api-key": descriptor.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def _build_payload(self, messages: Sequence[ChatMessage], descriptor: ProviderDescriptor) -> Mapping[str, Any]:
        # The Messages API has no system role; instructions go top-level.
        system_prompts = [message.content for message in messages if message.role == "system"]
        conversation = [
            {"role": message.role, "content": message.content}
            for message in messages
            if message.role != "system"
        ]
        if not conversation:
            raise AIProviderError(
                "Anthropic requests require at least one conversation message",
                provider=self.kind,
                kind=FailureKind.UPSTREAM,
            )

        payload: dict[str, Any] = {
            "model": descriptor.default_model,
            "max_tokens": descriptor.max_tokens,
            "temperature": descriptor.temperature,
            "messages": conversation,
        }
        if system_prompts:
            payload["system"] = "\n\n".join(system_prompts)
        return payload

    def _parse_response(self, data: Mapping[str, Any], descriptor: ProviderDescriptor) -> AIResponse:
        content_items = data.get("content") or []
        if not isinstance(content_items, list):
            raise AIProviderError(
                "Anthropic response missing content list",
                provider=self.kind,
                kind=FailureKind.INVALID_RESPONSE,
            )
        compiled = "".join(
            item.get("text", "") if isinstance(item, dict) else ""
            for item in content_items
        )

        usage = None
        raw_usage = data.get("usage")
        if isinstance(raw_usage, Mapping):
            usage = TokenUsage.from_counts(
                raw_usage.get("input_tokens"), raw_usage.get("output_tokens")
            )

        return AIResponse(
            content=compiled,
            provider=self.kind,
            model=data.get("model") or descriptor.default_model,
            usage=usage,
        )


__all__ = ("AnthropicClient",)
