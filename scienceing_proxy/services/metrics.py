# ─────────────────────────────────────────────────────────────────────────────
# Proxy Metrics — thread-safe counters for logins, searches and rejections
# ─────────────────────────────────────────────────────────────────────────────
# Exposed via GET /metrics. Latency history is bounded with deque(maxlen=500)
# so a long-running process never grows it without limit.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProxyMetrics:
    """Thread-safe proxy counters."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    login_attempts: int = 0
    login_successes: int = 0
    login_failures: int = 0
    searches_succeeded: int = 0
    searches_failed: int = 0
    rate_limited_total: int = 0

    _search_latency_ms: deque[float] = field(default_factory=lambda: deque(maxlen=500), repr=False)
    _start_time: float = field(default_factory=time.time, repr=False)

    def record_login(self, success: bool) -> None:
        with self._lock:
            self.login_attempts += 1
            if success:
                self.login_successes += 1
            else:
                self.login_failures += 1

    def record_search(self, latency_ms: float, success: bool) -> None:
        with self._lock:
            if success:
                self.searches_succeeded += 1
                self._search_latency_ms.append(latency_ms)
            else:
                self.searches_failed += 1

    def record_rate_limited(self) -> None:
        with self._lock:
            self.rate_limited_total += 1

    @property
    def uptime_seconds(self) -> int:
        return int(time.time() - self._start_time)

    def to_dict(self) -> dict[str, Any]:
        """Serialize metrics for the /metrics endpoint."""
        with self._lock:
            latencies = sorted(self._search_latency_ms)
            n = len(latencies)
            return {
                "login_attempts": self.login_attempts,
                "login_successes": self.login_successes,
                "login_failures": self.login_failures,
                "searches_succeeded": self.searches_succeeded,
                "searches_failed": self.searches_failed,
                "rate_limited_total": self.rate_limited_total,
                "search_latency_p50_ms": round(latencies[n // 2], 1) if n else 0,
                "search_latency_p95_ms": round(latencies[int(n * 0.95)], 1) if n else 0,
                "uptime_seconds": int(time.time() - self._start_time),
            }
