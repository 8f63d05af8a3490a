# ─────────────────────────────────────────────────────────────────────────────
# Rate Limiter — per-client fixed window counter
# ─────────────────────────────────────────────────────────────────────────────
# A client's window opens on its first request and lasts window_seconds.
# Within the window at most `limit` requests are admitted; denials report
# the seconds left until the window closes. Expired records are purged on
# every call, so the mapping only holds clients seen in the last window.
#
# Thread-safe: every read-modify-write runs under a threading.Lock.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from slowapi.util import get_remote_address
from starlette.requests import Request

DEFAULT_LIMIT = 10
DEFAULT_WINDOW_SECONDS = 60.0


@dataclass
class RateRecord:
    """Request count for one client within its current window."""

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateDecision:
    """Outcome of a single admission check."""

    allowed: bool
    retry_after: int = 0
    remaining: int = 0


class RateLimiter:
    """Per-client fixed window limiter with an injectable clock."""

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._records: dict[str, RateRecord] = {}
        self._lock = threading.Lock()

    def admit(self, client_id: str) -> RateDecision:
        """Count one request for client_id, or deny it with a retry hint."""
        with self._lock:
            now = self._clock()
            self._purge(now)

            record = self._records.get(client_id)
            if record is None:
                record = RateRecord(count=0, reset_at=now + self.window_seconds)
                self._records[client_id] = record

            if record.count >= self.limit:
                retry_after = min(math.ceil(record.reset_at - now), math.ceil(self.window_seconds))
                return RateDecision(allowed=False, retry_after=retry_after)

            record.count += 1
            return RateDecision(allowed=True, remaining=self.limit - record.count)

    @property
    def tracked_clients(self) -> int:
        """Clients with an open window; reported by /metrics."""
        with self._lock:
            return len(self._records)

    def _purge(self, now: float) -> None:
        expired = [key for key, rec in self._records.items() if rec.reset_at <= now]
        for key in expired:
            del self._records[key]


def client_identity(request: Request) -> str:
    """Rate-limit key: the client IP as reported by the ASGI server.

    Behind a proxy, run uvicorn with --proxy-headers so this is the real
    client rather than the load balancer.
    """
    return get_remote_address(request)
