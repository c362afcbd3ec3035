"""Rate limited chat gateway in front of hosted AI providers."""

from .client import ChatClientError, ChatGatewayClient
from .main import app, create_application

__all__ = ("ChatClientError", "ChatGatewayClient", "app", "create_application")
