"""Shared Pydantic models used across the application."""

from .chat import ChatRequest, ChatResponse, ErrorResponse, HealthResponse, UsagePayload

__all__ = (
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "HealthResponse",
    "UsagePayload",
)
