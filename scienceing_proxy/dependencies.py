# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: create_app / lifespan creates → app.state stores → Depends()
# injects. No global variables. Every dependency is explicit in endpoint
# signatures.
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import Depends, Request, Response

from scienceing_proxy.config import Settings
from scienceing_proxy.exceptions import RateLimitedError
from scienceing_proxy.rate_limit import RateLimiter, client_identity
from scienceing_proxy.services.metrics import ProxyMetrics
from scienceing_proxy.services.session import SessionManager

logger = structlog.get_logger(__name__)


def get_session_manager(request: Request) -> SessionManager:
    """Inject SessionManager into endpoints via Depends()."""
    return request.app.state.session_manager  # type: ignore[no-any-return]


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_metrics(request: Request) -> ProxyMetrics:
    """Inject ProxyMetrics into endpoints via Depends()."""
    return request.app.state.metrics  # type: ignore[no-any-return]


def get_rate_limiter(request: Request) -> RateLimiter:
    """Inject RateLimiter into endpoints via Depends()."""
    return request.app.state.rate_limiter  # type: ignore[no-any-return]


def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
    metrics: ProxyMetrics = Depends(get_metrics),
) -> None:
    """Router-level gate: one admission per request, keyed by client IP.

    Successful responses carry the client's remaining budget for the window.
    """
    client_id = client_identity(request)
    decision = limiter.admit(client_id)
    if not decision.allowed:
        metrics.record_rate_limited()
        logger.warning(
            "rate_limit_exceeded",
            client=client_id,
            path=request.url.path,
            retry_after=decision.retry_after,
        )
        raise RateLimitedError(limiter.limit, limiter.window_seconds, decision.retry_after)
    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
