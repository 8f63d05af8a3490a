# ─────────────────────────────────────────────────────────────────────────────
# Automation Protocols — the capability surface the proxy needs from a browser
# ─────────────────────────────────────────────────────────────────────────────
# The session and search code only talk to these Protocols, so the Playwright
# backend can be swapped for a fake in tests. Implementations translate their
# own failures into NavigationError / NavigationTimeoutError.
# ─────────────────────────────────────────────────────────────────────────────

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class NetworkResponse(Protocol):
    """A completed network exchange observed by the page."""

    @property
    def url(self) -> str: ...

    async def json(self) -> Any: ...


ResponseHandler = Callable[[NetworkResponse], Awaitable[None]]


@runtime_checkable
class AutomationClient(Protocol):
    """A single browser page that can navigate, fill forms and observe traffic."""

    @property
    def is_ready(self) -> bool: ...

    @property
    def current_url(self) -> str: ...

    async def goto(self, url: str, timeout_s: float) -> None: ...

    async def wait(self, seconds: float) -> None: ...

    async def wait_for_selector(self, selector: str, timeout_s: float) -> bool: ...

    async def click(self, selector: str) -> None: ...

    async def type_text(self, selector: str, text: str, delay_s: float = 0.0) -> None: ...

    def add_response_listener(self, handler: ResponseHandler) -> None: ...

    def remove_response_listener(self, handler: ResponseHandler) -> None: ...

    async def page_count(self) -> int: ...

    async def close(self) -> None: ...
