# ─────────────────────────────────────────────────────────────────────────────
# Request Middleware — request ID, timing, structured logging, origin gate
# ─────────────────────────────────────────────────────────────────────────────


import re
import time
import uuid
from collections.abc import Sequence
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Adds request ID, logs timing, binds context for structured logging.

    Skips logging for /health (too noisy from uptime probes).
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response: Response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000

            if not request.url.path.startswith("/health"):
                logger.info(
                    "request_completed",
                    method=request.method,
                    path=str(request.url.path),
                    client=request.client.host if request.client else None,
                    status=response.status_code,
                    duration_ms=round(duration_ms, 1),
                )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = str(round(duration_ms, 1))
        return response


def parse_origin_allowlist(allowed_origins: str) -> list[str]:
    """Parse comma-separated origin substrings. Empty string → allow all."""
    return [entry.strip() for entry in allowed_origins.split(",") if entry.strip()]


def origin_allowed(origin: str | None, allowlist: Sequence[str]) -> bool:
    """Absent origins (same-origin, curl, server-to-server) always pass."""
    if origin is None or not allowlist:
        return True
    return any(entry in origin for entry in allowlist)


def origin_regex(allowlist: Sequence[str]) -> str | None:
    """CORSMiddleware regex equivalent of the substring allow-list."""
    if not allowlist:
        return None
    alternatives = "|".join(re.escape(entry) for entry in allowlist)
    return rf".*(?:{alternatives}).*"


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Origin header matches no allow-listed substring."""

    def __init__(self, app: Any, *, allowlist: Sequence[str]) -> None:
        super().__init__(app)
        self._allowlist = tuple(allowlist)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")
        if not origin_allowed(origin, self._allowlist):
            logger.warning("origin_rejected", origin=origin, path=request.url.path)
            return JSONResponse(
                status_code=403,
                content={"success": False, "error": "Origin not allowed"},
            )
        return await call_next(request)
