# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Sequence

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class ProxyError(Exception):
    """Base exception for all proxy errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MissingParameterError(ProxyError):
    """Raised when a required request field is absent or empty."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotLoggedInError(ProxyError):
    """Raised when a search is attempted without an upstream session."""

    def __init__(self) -> None:
        super().__init__(
            "Not logged in. Call /api/login first or use /api/search-auto",
            status_code=401,
        )


class LoginFailedError(ProxyError):
    """Raised when the upstream login flow does not end on a logged-in page."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Login failed: {reason}", status_code=401)


class ElementNotFoundError(LoginFailedError):
    """Raised when no selector candidate matches a login form control."""

    def __init__(self, field: str, candidates: Sequence[str]):
        self.field = field
        self.candidates = tuple(candidates)
        super().__init__(f"{field} not found (tried {len(self.candidates)} selectors)")


class NavigationError(ProxyError):
    """Raised when the browser fails to load a page."""

    def __init__(self, url: str, reason: str, status_code: int = 502):
        self.url = url
        super().__init__(f"Navigation to {url} failed: {reason}", status_code=status_code)


class NavigationTimeoutError(NavigationError):
    """Raised when a page load exceeds its time bound."""

    def __init__(self, url: str, timeout_s: float):
        super().__init__(url, f"timed out after {timeout_s}s", status_code=504)


class NoApiResponseError(ProxyError):
    """Raised when the search page never issued the expected upstream API call."""

    def __init__(self, timeout_s: float):
        super().__init__(
            f"No search API response captured within {timeout_s}s",
            status_code=504,
        )


class BrowserNotReadyError(ProxyError):
    """Raised when the automation handle failed to start or was closed."""

    def __init__(self) -> None:
        super().__init__("Browser is not ready", status_code=503)


class RateLimitedError(ProxyError):
    """Raised when a client exhausts its request budget for the current window.

    retry_after_seconds is the time left in the client's window; the handler
    echoes it in the body and in a Retry-After header.
    """

    def __init__(self, limit: int, window_seconds: float, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many requests ({limit} per {window_seconds:g}s). "
            f"Retry in {retry_after_seconds}s.",
            status_code=429,
        )


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Routes raise ProxyError subclasses; these handlers turn them into the
    {"success": false, "error": ...} envelope. No inline try/except in routes.
    """

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
        logger.warning(
            "rate_limited_response",
            path=request.url.path,
            retry_after=exc.retry_after_seconds,
        )
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "error": exc.message,
                "retryAfter": exc.retry_after_seconds,
            },
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log("proxy_error", path=request.url.path, error=exc.message, error_type=type(exc).__name__)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
        logger.info("request_invalid", path=request.url.path, errors=len(errors))
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"Invalid request: {detail}"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )
