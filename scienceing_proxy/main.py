# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn scienceing_proxy.main:create_app --factory --host 0.0.0.0 --port 3000
#         or: python -m scienceing_proxy


from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scienceing_proxy.auth import APIKeyMiddleware
from scienceing_proxy.browser.protocol import AutomationClient
from scienceing_proxy.config import Settings, get_settings
from scienceing_proxy.dependencies import enforce_rate_limit
from scienceing_proxy.exceptions import LoginFailedError, ProxyError, register_exception_handlers
from scienceing_proxy.logging_config import configure_logging
from scienceing_proxy.middleware import (
    OriginAllowListMiddleware,
    RequestContextMiddleware,
    origin_regex,
    parse_origin_allowlist,
)
from scienceing_proxy.rate_limit import RateLimiter
from scienceing_proxy.routes import health
from scienceing_proxy.routes import search as search_routes
from scienceing_proxy.routes import session as session_routes
from scienceing_proxy.schemas import ErrorResponse
from scienceing_proxy.services.metrics import ProxyMetrics
from scienceing_proxy.services.session import SessionManager, default_credential

logger = structlog.get_logger(__name__)

# Documents the {success: false, error} envelope on every /api route.
_API_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": ErrorResponse} for status in (400, 401, 429, 502, 503, 504)
}


async def _launch_browser(settings: Settings) -> AutomationClient | None:
    """Start Chromium. Failure is logged and the service runs degraded."""
    if not settings.launch_browser:
        logger.info("browser_launch_skipped", reason="LAUNCH_BROWSER=false")
        return None

    from scienceing_proxy.browser.playwright_client import PlaywrightAutomationClient

    try:
        return await PlaywrightAutomationClient.launch(settings)
    except Exception:
        logger.exception("browser_launch_failed", hint="/health will report browser.ready=false")
        return None


async def _auto_login(session: SessionManager, settings: Settings) -> None:
    credential = default_credential(settings)
    if credential is None or not session.browser_ready:
        return
    logger.info("auto_login_start", email=credential.email)
    try:
        await session.login(credential)
    except LoginFailedError as exc:
        logger.warning("auto_login_failed", error=exc.message)
    except ProxyError as exc:
        logger.error("auto_login_error", error=exc.message, error_type=type(exc).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup/shutdown: browser launch, default-account login, browser close.

    uvicorn maps SIGINT/SIGTERM onto lifespan shutdown, so the browser is
    closed on either signal.
    """
    settings: Settings = app.state.settings
    metrics: ProxyMetrics = app.state.metrics

    client = await _launch_browser(settings)
    session = SessionManager(client, settings, metrics=metrics)
    app.state.session_manager = session

    logger.info(
        "proxy_started",
        port=settings.port,
        api_key_enabled=bool(settings.api_key.get_secret_value()),
        default_account_configured=settings.has_default_credentials,
        browser_ready=session.browser_ready,
    )
    await _auto_login(session, settings)

    yield

    logger.info("proxy_stopping")
    await session.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory. Invoked by: uvicorn scienceing_proxy.main:create_app --factory"""
    settings = settings or get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Scienceing Proxy",
        description="Headless-browser proxy exposing Scienceing search as a JSON API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics = ProxyMetrics()
    app.state.rate_limiter = RateLimiter(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    # Middleware order (Starlette applies in reverse):
    # CORS → origin allow-list → APIKey → RequestContext → routes
    app.add_middleware(RequestContextMiddleware)

    api_key_value = settings.api_key.get_secret_value()
    if api_key_value:
        app.add_middleware(APIKeyMiddleware, api_key=api_key_value)
        logger.info("api_key_auth_enabled")
    else:
        logger.warning("api_key_auth_disabled", reason="API_KEY env var not set")

    allowlist = parse_origin_allowlist(settings.allowed_origins)
    if allowlist:
        app.add_middleware(OriginAllowListMiddleware, allowlist=allowlist)
        logger.info("origin_allowlist_enabled", entries=len(allowlist))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allowlist else ["*"],
        allow_origin_regex=origin_regex(allowlist),
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key"],
    )

    register_exception_handlers(app)

    api = APIRouter(
        prefix="/api",
        dependencies=[Depends(enforce_rate_limit)],
        responses=_API_ERROR_RESPONSES,
    )
    api.include_router(session_routes.router, tags=["session"])
    api.include_router(search_routes.router, tags=["search"])

    app.include_router(health.router, tags=["health"])
    app.include_router(api)

    return app
