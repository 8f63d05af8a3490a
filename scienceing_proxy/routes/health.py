# ─────────────────────────────────────────────────────────────────────────────
# Health + Metrics Routes — unauthenticated, not rate limited
# ─────────────────────────────────────────────────────────────────────────────
#
#   /health   → process uptime and memory, browser readiness, session status.
#               Always 200: a degraded browser shows up as browser.ready=false.
#
#   /metrics  → login / search / rate-limit counters and search latency.
# ─────────────────────────────────────────────────────────────────────────────

from datetime import UTC, datetime
from typing import Any

import psutil
from fastapi import APIRouter, Depends

from scienceing_proxy.config import Settings
from scienceing_proxy.dependencies import (
    get_metrics,
    get_rate_limiter,
    get_session_manager,
    get_settings_dep,
)
from scienceing_proxy.rate_limit import RateLimiter
from scienceing_proxy.schemas import AuthInfo, BrowserInfo, HealthResponse, MemoryInfo
from scienceing_proxy.services.metrics import ProxyMetrics
from scienceing_proxy.services.session import SessionManager

router = APIRouter()

_MB = 1024 * 1024


@router.get("/health", response_model=HealthResponse)
async def health(
    session: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings_dep),
    metrics: ProxyMetrics = Depends(get_metrics),
) -> HealthResponse:
    """Liveness plus diagnostics for humans and uptime monitors."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC).isoformat(),
        uptime=metrics.uptime_seconds,
        memory=_memory_info(),
        browser=BrowserInfo(ready=session.browser_ready, pages=await session.page_count()),
        auth=AuthInfo(
            logged_in=session.is_logged_in,
            last_login_email=session.active_email,
            has_credentials=settings.has_default_credentials,
        ),
    )


@router.get("/metrics")
async def metrics_endpoint(
    metrics: ProxyMetrics = Depends(get_metrics),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> dict[str, Any]:
    """Login, search and rate-limit counters."""
    return {**metrics.to_dict(), "rate_limit_tracked_clients": limiter.tracked_clients}


def _memory_info() -> MemoryInfo:
    rss = psutil.Process().memory_info().rss
    total = psutil.virtual_memory().total
    return MemoryInfo(used=rss // _MB, total=total // _MB)
