# ─────────────────────────────────────────────────────────────────────────────
# Login Selectors — ordered candidate lists for the upstream login form
# ─────────────────────────────────────────────────────────────────────────────
# Each form control is located by probing its candidates in order with a
# short timeout; the first selector that appears wins.
# ─────────────────────────────────────────────────────────────────────────────
from __future__ import annotations

from collections.abc import Sequence

import structlog

from scienceing_proxy.browser.protocol import AutomationClient
from scienceing_proxy.exceptions import ElementNotFoundError

logger = structlog.get_logger(__name__)

# Opens the login dialog on the landing page. Optional: some layouts show the
# form directly.
LOGIN_TRIGGER_SELECTOR = ".login-button"

EMAIL_INPUT_SELECTORS: tuple[str, ...] = (
    'input[type="email"]',
    'input[name="email"]',
    'input[name="username"]',
    "input#email",
    "input#username",
)

PASSWORD_INPUT_SELECTORS: tuple[str, ...] = (
    'input[type="password"]',
    'input[name="password"]',
    "input#password",
)

SUBMIT_BUTTON_SELECTORS: tuple[str, ...] = (
    'button[type="submit"]',
    "button.login-btn",
    "button.submit-btn",
    ".login-button",
)

# A post-submit URL containing any of these means we never left the login page.
LOGIN_URL_MARKERS: tuple[str, ...] = ("login", "signin")


async def resolve_selector(
    client: AutomationClient,
    candidates: Sequence[str],
    field: str,
    timeout_s: float,
) -> str:
    """Return the first candidate present on the page.

    Raises ElementNotFoundError when every candidate times out.
    """
    for selector in candidates:
        if await client.wait_for_selector(selector, timeout_s):
            logger.debug("selector_resolved", field=field, selector=selector)
            return selector
    raise ElementNotFoundError(field, candidates)


def looks_like_login_page(url: str) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in LOGIN_URL_MARKERS)
