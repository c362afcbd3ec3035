"""Per-client request quotas over bucket-aligned minute and hour windows.

Windows are fixed multiples of their length since the epoch: a request at
second 59 of minute N and one at second 1 of minute N+1 land in different
buckets.

``is_allowed`` and ``record_request`` are separate operations and the pair is
not atomic. Two concurrent requests for the same identifier may both be
admitted before either is recorded, so a ceiling can be exceeded by at most
the number of requests in flight for that identifier. Callers needing an
exact ceiling must serialise the check and the increment themselves.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from threading import RLock

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = 5 * 60.0


class WindowKind(str, Enum):
    MINUTE = "minute"
    HOUR = "hour"

    @property
    def seconds(self) -> int:
        return 60 if self is WindowKind.MINUTE else 3600


@dataclass(slots=True)
class RateLimitEntry:
    count: int
    reset_time: float


@dataclass(slots=True, frozen=True)
class RateLimitDecision:
    allowed: bool
    reset_time: float | None = None
    limit_kind: WindowKind | None = None


@dataclass(slots=True, frozen=True)
class RateLimitUsage:
    minute_count: int
    hour_count: int


_EntryKey = tuple[str, WindowKind, int]


class RateLimiter:
    """In-memory request counter shared by all request handlers."""

    def __init__(
        self,
        max_requests_per_minute: int = 20,
        max_requests_per_hour: int = 100,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests_per_minute = max_requests_per_minute
        self.max_requests_per_hour = max_requests_per_hour
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[_EntryKey, RateLimitEntry] = {}
        self._lock = RLock()
        self._sweeper: asyncio.Task[None] | None = None

    def limit_for(self, kind: WindowKind) -> int:
        if kind is WindowKind.MINUTE:
            return self.max_requests_per_minute
        return self.max_requests_per_hour

    def now(self) -> float:
        return self._clock()

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def is_allowed(self, identifier: str) -> RateLimitDecision:
        """Check both windows, minute first, without recording anything."""

        now = self._clock()
        with self._lock:
            for kind in (WindowKind.MINUTE, WindowKind.HOUR):
                entry = self._entries.get(self._key(identifier, kind, now))
                if entry is not None and entry.count >= self.limit_for(kind):
                    return RateLimitDecision(
                        allowed=False,
                        reset_time=entry.reset_time,
                        limit_kind=kind,
                    )
        return RateLimitDecision(allowed=True)

    def record_request(self, identifier: str) -> None:
        """Count one request against both windows."""

        now = self._clock()
        with self._lock:
            for kind in (WindowKind.MINUTE, WindowKind.HOUR):
                key = self._key(identifier, kind, now)
                entry = self._entries.get(key)
                if entry is None:
                    bucket = key[2]
                    self._entries[key] = RateLimitEntry(
                        count=1, reset_time=float((bucket + 1) * kind.seconds)
                    )
                else:
                    entry.count += 1

    def get_usage(self, identifier: str) -> RateLimitUsage:
        now = self._clock()
        with self._lock:
            minute = self._entries.get(self._key(identifier, WindowKind.MINUTE, now))
            hour = self._entries.get(self._key(identifier, WindowKind.HOUR, now))
            return RateLimitUsage(
                minute_count=minute.count if minute else 0,
                hour_count=hour.count if hour else 0,
            )

    def remaining(self, identifier: str) -> RateLimitUsage:
        """Requests still available in the current minute and hour buckets."""

        usage = self.get_usage(identifier)
        return RateLimitUsage(
            minute_count=max(self.max_requests_per_minute - usage.minute_count, 0),
            hour_count=max(self.max_requests_per_hour - usage.hour_count, 0),
        )

    def reset(self, identifier: str) -> None:
        """Forget every entry recorded for *identifier*."""

        with self._lock:
            for key in [key for key in self._entries if key[0] == identifier]:
                del self._entries[key]

    def sweep(self) -> int:
        """Delete entries whose reset time has passed; return how many went."""

        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.reset_time <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("rate_limiter.sweep", extra={"removed": len(expired)})
        return len(expired)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""

        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def shutdown(self) -> None:
        """Stop the periodic sweep."""

        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None:
            return
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    @staticmethod
    def _key(identifier: str, kind: WindowKind, now: float) -> _EntryKey:
        return (identifier, kind, int(now // kind.seconds))


__all__ = (
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimitUsage",
    "RateLimiter",
    "WindowKind",
)
