"""Application entrypoint for the FastAPI service."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import register_routers
from .core.ai.config import load_gateway_config
from .core.ai.service import AIService
from .core.ai.types import ProviderName
from .core.gateway import ChatGateway
from .core.rate_limiter import RateLimiter
from .core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_application(
    settings: Settings | None = None,
    *,
    transport_overrides: Mapping[ProviderName, httpx.AsyncBaseTransport] | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Construct and configure the FastAPI application instance.

    The gateway components are built in the lifespan so that configuration
    problems in production stop the server before it accepts requests.
    """

    settings = settings or get_settings()
    logging.getLogger(__package__).setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        config = load_gateway_config(settings)
        rate_limiter = RateLimiter(
            config.rate_limit.max_requests_per_minute,
            config.rate_limit.max_requests_per_hour,
            sweep_interval=config.rate_limit.sweep_interval,
            clock=clock,
        )
        service = AIService(config, transport_overrides=transport_overrides)
        application.state.gateway = ChatGateway(config, service, rate_limiter)

        if config.rate_limit.enabled:
            rate_limiter.start()
        logger.info(
            "app.startup",
            extra={"provider": config.provider.value, "demo": config.uses_demo},
        )
        try:
            yield
        finally:
            await rate_limiter.shutdown()
            await service.aclose()

    application = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    application.state.settings = settings
    _configure_cors(application, settings.allowed_origins)
    register_routers(application)

    return application


def _configure_cors(app: FastAPI, origins: Sequence[str] | None) -> None:
    allow_all = not origins
    allow_list = ["*"] if allow_all else list(origins or [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_list,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "X-RateLimit-Scope",
            "X-RateLimit-Limit-Minute",
            "X-RateLimit-Limit-Hour",
            "X-RateLimit-Remaining-Minute",
            "X-RateLimit-Remaining-Hour",
        ],
    )


app = create_application()

__all__ = ("app", "create_application")
