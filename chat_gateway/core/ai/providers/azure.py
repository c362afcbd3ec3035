"""Azure OpenAI provider adapter."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..config import ProviderDescriptor
from ..exceptions import AIProviderError, FailureKind
from ..types import AIResponse, ChatMessage, ProviderName, TokenUsage
from .base import BaseAIClient

DEFAULT_API_VERSION = "2024-02-15-preview"


class AzureOpenAIClient(BaseAIClient):
    """Adapter for Azure hosted OpenAI deployments.

    The deployment name travels in the URL path instead of the body, and the
    credential is sent through the ``api-key`` header.
    """

    kind = ProviderName.AZURE_OPENAI

    def _endpoint(self, descriptor: ProviderDescriptor) -> str:
        return (
            f"{descriptor.base_url}/openai/deployments/"
            f"{descriptor.default_model}/chat/completions"
        )

    def _auth_headers(self, descriptor: ProviderDescriptor) -> dict[str, str]:
        return {"api-key": descriptor.api_key}

    def _query_params(self, descriptor: ProviderDescriptor) -> dict[str, str]:
        return {"api-version": descriptor.api_version or DEFAULT_API_VERSION}

    def _build_payload(self, messages: Sequence[ChatMessage], descriptor: ProviderDescriptor) -> Mapping[str, Any]:
        return {
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
                "Azure OpenAI response missing choices",
                provider=self.kind,
                kind=FailureKind.INVALID_RESPONSE,
            )
        content = (choices[0].get("message") or {}).get("content") or ""

        usage = None
        raw_usage = data.get("usage")
        if isinstance(raw_usage, Mapping):
            usage = TokenUsage.from_counts(
                raw_usage.get("prompt_tokens"), raw_usage.get("completion_tokens")
            )

        return AIResponse(
            content=content,
            provider=self.kind,
            model=data.get("model") or descriptor.default_model,
            usage=usage,
        )


__all__ = ("AzureOpenAIClient",)
