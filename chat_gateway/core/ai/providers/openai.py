"""OpenAI provider adapter."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..config import ProviderDescriptor
from ..exceptions import AIProviderError, FailureKind
from ..types import AIResponse, ChatMessage, ProviderName, TokenUsage
from .base import BaseAIClient


class OpenAIClient(BaseAIClient):
    """Adapter for OpenAI Chat Completions API."""

    kind = ProviderName.OPENAI

    def _endpoint(self, descriptor: ProviderDescriptor) -> str:
        return f"{descriptor.base_url}/chat/completions"

    def _auth_headers(self, descriptor: ProviderDescriptor) -> dict[str, str]:
        return {"Authorization": f"Bearer {descriptor.api_key}"}

    def _build_payload(self, messages: Sequence[ChatMessage], descriptor: ProviderDescriptor) -> Mapping[str, Any]:
        return {
            "model": descriptor.default_model,
            "messages": [
                {"role": message.role, "content": message.content}
                for message in messages
            ],
            "max_tokens": descriptor.max_tokens,
            "temperature": descriptor.temperature,
        }

    def _parse_response(self, data: Mapping[str, Any], descriptor: ProviderDescriptor) -> AIResponse:
        choices = data.get("choices") or []
        if not choices:
            raise AIProviderError(
                "OpenAI response missing choices",
                provider=self.kind,
                kind=FailureKind.INVALID_RESPONSE,
            )
        message = choices[0].get("message") or {}

        usage = None
        raw_usage = data.get("usage")
        if isinstance(raw_usage, Mapping):
            usage = TokenUsage.from_counts(
                raw_usage.get("prompt_tokens"), raw_usage.get("completion_tokens")
            )

        return AIResponse(
            content=message.get("content") or "",
            provider=self.kind,
            model=data.get("model") or descriptor.default_model,
            usage=usage,
        )


__all__ = ("OpenAIClient",)
