"""Async client for the chat endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .models.chat import ChatResponse

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/ai/chat"


class ChatClientError(RuntimeError):
    """Raised when the chat endpoint cannot produce a completion."""

    def __init__(self, message: str, *, status_code: int | None = None, error: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error

    @property
    def retryable(self) -> bool:
        """Network failures and server errors are worth retrying."""

        if self.status_code is None:
            return True
        return self.status_code >= 500


class ChatGatewayClient:
    """Send chat messages to a running gateway."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "ChatGatewayClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send_message(self, message: str, conversation_id: str | None = None) -> ChatResponse:
        payload: dict[str, Any] = {"message": message.strip()}
        if conversation_id is not None:
            payload["conversationId"] = conversation_id

        try:
            response = await self._client.post(CHAT_PATH, json=payload)
        except httpx.TimeoutException as exc:
            raise ChatClientError("Request timed out. Please try again.", error="Timeout") from exc
        except httpx.RequestError as exc:
            raise ChatClientError(
                "Unable to connect to the AI service. Please check your internet connection.",
                error="Network error",
            ) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.is_error:
            raise ChatClientError(
                data.get("message") or f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                error=data.get("error"),
            )
        return ChatResponse.model_validate(data)

    async def send_message_with_retry(
        self,
        message: str,
        conversation_id: str | None = None,
        *,
        max_retries: int = 2,
        base_delay: float = 1.0,
    ) -> ChatResponse:
        """Send *message*, retrying transient failures with exponential backoff."""

        attempt = 0
        while True:
            try:
                return await self.send_message(message, conversation_id)
            except ChatClientError as exc:
                if not exc.retryable or attempt >= max_retries:
                    raise
                delay = self._backoff_delay(attempt, base_delay)
                logger.info(
                    "chat_client.retry",
                    extra={"attempt": attempt + 1, "status_code": exc.status_code, "delay": delay},
                )
            await asyncio.sleep(delay)
            attempt += 1

    async def check_health(self) -> dict[str, Any]:
        """Return the health payload, or ``{"status": "unhealthy"}`` on failure."""

        try:
            response = await self._client.get(CHAT_PATH)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("chat_client.health_failed", extra={"error": str(exc)})
            return {"status": "unhealthy"}

    @staticmethod
    def _backoff_delay(attempt: int, base_delay: float) -> float:
        return base_delay * (2 ** attempt)


__all__ = ("CHAT_PATH", "ChatClientError", "ChatGatewayClient")
