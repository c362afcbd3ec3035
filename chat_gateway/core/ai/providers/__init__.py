"""Provider specific AI adapter implementations."""

from .anthropic import AnthropicClient
from .azure import AzureOpenAIClient
from .base import BaseAIClient
from .openai import OpenAIClient

__all__ = ("AnthropicClient", "AzureOpenAIClient", "BaseAIClient", "OpenAIClient")
