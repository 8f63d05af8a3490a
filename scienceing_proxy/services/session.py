# ─────────────────────────────────────────────────────────────────────────────
# Session Manager — the one upstream session and the one browser page
# ─────────────────────────────────────────────────────────────────────────────
# State machine:
#
#   logged_out ──login──▶ logging_in ──ok──▶ logged_in
#                              │                  │
#                              └──fail──▶ logged_out ◀── credential change / re-login
#
# The page has a single navigation context, so every login and every search
# holds self._lock for its full duration. Concurrent callers queue on the
# lock (FIFO) and run one after another; none are rejected.
#
# Created in lifespan, stored in app.state, injected via Depends().
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from scienceing_proxy.browser.protocol import AutomationClient
from scienceing_proxy.config import Settings
from scienceing_proxy.exceptions import (
    BrowserNotReadyError,
    LoginFailedError,
    MissingParameterError,
    NotLoggedInError,
    ProxyError,
)
from scienceing_proxy.schemas import SearchData
from scienceing_proxy.services.login import perform_login
from scienceing_proxy.services.metrics import ProxyMetrics
from scienceing_proxy.services.search import SearchQuery, execute_search

logger = structlog.get_logger(__name__)


class SessionStatus(StrEnum):
    logged_out = "logged_out"
    logging_in = "logging_in"
    logged_in = "logged_in"


@dataclass(frozen=True)
class Credential:
    """Upstream account. The email is the identity; the password never reprs."""

    email: str
    password: str = field(repr=False)


@dataclass
class SessionState:
    status: SessionStatus = SessionStatus.logged_out
    email: str | None = None
    last_login_at: float | None = None


def credential_from_fields(email: str | None, password: str | None) -> Credential | None:
    """Credential from request fields; None when both are absent.

    Half a credential is a client error, not a reason to fall back to defaults.
    """
    if not email and not password:
        return None
    if not email or not password:
        raise MissingParameterError("Both email and password are required")
    return Credential(email=email, password=password)


def default_credential(settings: Settings) -> Credential | None:
    """The configured SCIENCEING_EMAIL / SCIENCEING_PASSWORD pair, if complete."""
    if not settings.has_default_credentials:
        return None
    return Credential(
        email=settings.scienceing_email,
        password=settings.scienceing_password.get_secret_value(),
    )


class SessionManager:
    """Owns the automation handle and the authentication state guarding it."""

    def __init__(
        self,
        client: AutomationClient | None,
        settings: Settings,
        metrics: ProxyMetrics | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._settings = settings
        self._metrics = metrics
        self._clock = clock
        self._state = SessionState()
        self._lock = asyncio.Lock()

    # ── Introspection ────────────────────────────────────────────────────────

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def is_logged_in(self) -> bool:
        return self._state.status is SessionStatus.logged_in

    @property
    def active_email(self) -> str | None:
        return self._state.email

    @property
    def last_login_at(self) -> float | None:
        return self._state.last_login_at

    @property
    def browser_ready(self) -> bool:
        return self._client is not None and self._client.is_ready

    async def page_count(self) -> int:
        if not self.browser_ready:
            return 0
        return await self._require_client().page_count()

    # ── Operations ───────────────────────────────────────────────────────────

    async def ensure_logged_in(self, credential: Credential) -> None:
        """Log in unless already logged in under the same email."""
        async with self._lock:
            await self._ensure_locked(credential)

    async def login(self, credential: Credential) -> None:
        """Fresh login, discarding any current session."""
        async with self._lock:
            self._logout_locked()
            await self._login_locked(credential)

    async def logout(self) -> None:
        async with self._lock:
            self._logout_locked()

    async def search(self, query: SearchQuery) -> SearchData:
        """Search with the current session. Raises NotLoggedInError without one."""
        async with self._lock:
            if not self.is_logged_in:
                raise NotLoggedInError()
            return await self._search_locked(query)

    async def search_as(self, credential: Credential | None, query: SearchQuery) -> SearchData:
        """Log in if needed, then search, without releasing the page in between.

        With credential=None the current session is reused as-is.
        """
        async with self._lock:
            if credential is not None:
                await self._ensure_locked(credential)
            elif not self.is_logged_in:
                raise NotLoggedInError()
            return await self._search_locked(query)

    async def close(self) -> None:
        """Release the browser. In-flight operations are not awaited."""
        client, self._client = self._client, None
        self._logout_locked()
        if client is not None:
            await client.close()

    # ── Internals (caller holds self._lock) ──────────────────────────────────

    def _require_client(self) -> AutomationClient:
        if self._client is None or not self._client.is_ready:
            raise BrowserNotReadyError()
        return self._client

    async def _ensure_locked(self, credential: Credential) -> None:
        if self.is_logged_in:
            if self._state.email == credential.email:
                return
            logger.info(
                "credential_changed",
                previous_email=self._state.email,
                email=credential.email,
            )
            self._logout_locked()
        await self._login_locked(credential)

    def _logout_locked(self) -> None:
        if self._state.status is not SessionStatus.logged_out:
            logger.info("session_logged_out", email=self._state.email)
        self._state.status = SessionStatus.logged_out
        self._state.email = None

    async def _login_locked(self, credential: Credential) -> None:
        client = self._require_client()
        self._state.status = SessionStatus.logging_in
        logger.info("login_started", email=credential.email)
        try:
            await perform_login(client, credential.email, credential.password, self._settings)
        except ProxyError as exc:
            logger.warning("login_failed", email=credential.email, error=exc.message)
            raise
        except Exception as exc:
            logger.exception("login_crashed", email=credential.email)
            raise LoginFailedError(str(exc)) from exc
        else:
            self._state.status = SessionStatus.logged_in
            self._state.email = credential.email
            self._state.last_login_at = self._clock()
            self._record_login(success=True)
            logger.info("login_succeeded", email=credential.email)
        finally:
            # Also covers cancellation, which bypasses the except clauses.
            if self._state.status is not SessionStatus.logged_in:
                self._state.status = SessionStatus.logged_out
                self._record_login(success=False)

    async def _search_locked(self, query: SearchQuery) -> SearchData:
        client = self._require_client()
        start = time.perf_counter()
        try:
            data = await execute_search(client, query, self._settings)
        except Exception:
            if self._metrics:
                self._metrics.record_search(0, success=False)
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        if self._metrics:
            self._metrics.record_search(elapsed_ms, success=True)
        logger.info(
            "search_completed",
            keyword=query.keyword,
            articles=len(data.articles),
            total=data.total_count,
            duration_ms=round(elapsed_ms, 1),
        )
        return data

    def _record_login(self, success: bool) -> None:
        if self._metrics:
            self._metrics.record_login(success)
