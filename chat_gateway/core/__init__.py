"""Core application services and configuration."""

from .rate_limiter import RateLimiter
from .settings import Settings, get_settings

__all__ = (
    "RateLimiter",
    "Settings",
    "get_settings",
)
