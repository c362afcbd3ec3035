"""Common types shared by the provider adapters and the dispatch service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class ProviderName(str, Enum):
    """Supported AI provider identifiers."""

    OPENAI = "openai"
    AZURE_OPENAI = "azure-openai"
    ANTHROPIC = "anthropic"
    DEMO = "demo"

    @property
    def is_network(self) -> bool:
        return self is not ProviderName.DEMO


MessageRole = Literal["system", "user", "assistant"]


@dataclass(slots=True)
class ChatMessage:
    """A single message in a prompt exchange."""

    role: MessageRole
    content: str


@dataclass(slots=True, frozen=True)
class TokenUsage:
    """Token accounting for a single completion."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    @classmethod
    def from_counts(cls, prompt_tokens: int | None, completion_tokens: int | None) -> "TokenUsage":
        prompt = int(prompt_tokens or 0)
        completion = int(completion_tokens or 0)
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)


@dataclass(slots=True)
class AIResponse:
    """Normalised completion returned by every provider."""

    content: str
    provider: ProviderName
    model: str | None = None
    usage: TokenUsage | None = None


__all__ = (
    "AIResponse",
    "ChatMessage",
    "MessageRole",
    "ProviderName",
    "TokenUsage",
)
