"""Base implementation for provider specific HTTP clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, ClassVar, Mapping, Sequence

import httpx

from ..config import ProviderDescriptor
from ..exceptions import AIProviderError, FailureKind, ProviderTimeoutError
from ..types import AIResponse, ChatMessage, ProviderName

logger = logging.getLogger(__name__)

_MAX_LOGGED_BODY = 500


class BaseAIClient:
    """Shared HTTP transport and request handling for AI providers.

    Subclasses translate the generic message list into the provider's request
    body and parse the provider's response back into an :class:`AIResponse`.
    """

    kind: ClassVar[ProviderName]

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, messages: Sequence[ChatMessage], descriptor: ProviderDescriptor) -> AIResponse:
        """Execute the provider request and parse the response."""

        payload = self._build_payload(messages, descriptor)

        # httpx timeouts bound each phase; the deadline bounds the whole call.
        try:
            async with asyncio.timeout(descriptor.timeout):
                response = await self._client.post(
                    self._endpoint(descriptor),
                    json=payload,
                    headers=self._auth_headers(descriptor),
                    params=self._query_params(descriptor),
                    timeout=descriptor.timeout,
                )
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise ProviderTimeoutError(
                f"{descriptor.name} request timeout after {descriptor.timeout:g}s",
                provider=self.kind,
            ) from exc
        except httpx.RequestError as exc:
            raise AIProviderError(
                f"{descriptor.name} network error: {type(exc).__name__}",
                provider=self.kind,
                kind=FailureKind.NETWORK,
            ) from exc

        if response.is_error:
            logger.debug(
                "Provider %s responded with error %s: %s",
                self.kind.value,
                response.status_code,
                response.text[:_MAX_LOGGED_BODY],
            )
            raise self._error_from_response(response, descriptor)

        try:
            parsed = response.json()
        except ValueError as exc:
            raise AIProviderError(
                f"{descriptor.name} returned invalid JSON",
                provider=self.kind,
                kind=FailureKind.INVALID_RESPONSE,
                status_code=response.status_code,
            ) from exc

        if not isinstance(parsed, Mapping):
            raise AIProviderError(
                f"{descriptor.name} returned an unexpected payload",
                provider=self.kind,
                kind=FailureKind.INVALID_RESPONSE,
                status_code=response.status_code,
            )
        return self._parse_response(parsed, descriptor)

    def _error_from_response(self, response: httpx.Response, descriptor: ProviderDescriptor) -> AIProviderError:
        upstream_message, code = self._parse_error_body(response)
        detail = upstream_message or response.reason_phrase or "Unknown error"
        return AIProviderError(
            f"{descriptor.name} API error: {response.status_code} - {detail}",
            provider=self.kind,
            kind=self._failure_kind(response.status_code),
            status_code=response.status_code,
            upstream_message=upstream_message,
            code=code,
        )

    @staticmethod
    def _failure_kind(status_code: int) -> FailureKind:
        if status_code == 429:
            return FailureKind.RATE_LIMITED
        if status_code in (401, 403):
            return FailureKind.AUTHENTICATION
        if status_code in (408, 504):
            return FailureKind.TIMEOUT
        return FailureKind.UPSTREAM

    def _parse_error_body(self, response: httpx.Response) -> tuple[str | None, str | None]:
        """Extract ``(message, code)`` from an error response body."""

        try:
            data = response.json()
        except ValueError:
            return None, None
        error = data.get("error") if isinstance(data, Mapping) else None
        if not isinstance(error, Mapping):
            return None, None
        message = error.get("message")
        code = error.get("code") or error.get("type")
        return (
            message if isinstance(message, str) and message else None,
            str(code) if code else None,
        )

    def _endpoint(self, descriptor: ProviderDescriptor) -> str:
        """Return the absolute URL to POST to."""

        raise NotImplementedError

    def _auth_headers(self, descriptor: ProviderDescriptor) -> dict[str, str]:
        raise NotImplementedError

    def _query_params(self, descriptor: ProviderDescriptor) -> dict[str, str]:
        return {}

    def _build_payload(self, messages: Sequence[ChatMessage], descriptor: ProviderDescriptor) -> Mapping[str, Any]:
        """Serialise the request payload for the provider."""

        raise NotImplementedError

    def _parse_response(self, data: Mapping[str, Any], descriptor: ProviderDescriptor) -> AIResponse:
        """Parse the provider specific response payload."""

        raise NotImplementedError


__all__ = ("BaseAIClient",)
