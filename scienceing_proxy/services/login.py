# Upstream login flow: landing page → optional login dialog → form fill → submit.


from __future__ import annotations

import structlog

from scienceing_proxy.browser.protocol import AutomationClient
from scienceing_proxy.config import Settings
from scienceing_proxy.exceptions import LoginFailedError, NavigationError
from scienceing_proxy.scraping.selectors import (
    EMAIL_INPUT_SELECTORS,
    LOGIN_TRIGGER_SELECTOR,
    PASSWORD_INPUT_SELECTORS,
    SUBMIT_BUTTON_SELECTORS,
    looks_like_login_page,
    resolve_selector,
)

logger = structlog.get_logger(__name__)


async def perform_login(
    client: AutomationClient, email: str, password: str, settings: Settings
) -> None:
    """Drive the login form. Returns normally only when the site let us in.

    Raises LoginFailedError (or its ElementNotFoundError subclass) on any
    failure, including navigation failures on the landing page.
    """
    try:
        await client.goto(settings.base_url, timeout_s=settings.login_navigation_timeout_seconds)
    except NavigationError as exc:
        raise LoginFailedError(exc.message) from exc
    await client.wait(settings.page_settle_seconds)

    if await client.wait_for_selector(
        LOGIN_TRIGGER_SELECTOR, settings.login_trigger_timeout_seconds
    ):
        await client.click(LOGIN_TRIGGER_SELECTOR)
        await client.wait(settings.login_trigger_settle_seconds)
    else:
        logger.info("login_trigger_absent", selector=LOGIN_TRIGGER_SELECTOR)

    timeout = settings.selector_timeout_seconds
    delay = settings.typing_delay_seconds

    email_input = await resolve_selector(client, EMAIL_INPUT_SELECTORS, "email input", timeout)
    await client.type_text(email_input, email, delay_s=delay)

    password_input = await resolve_selector(
        client, PASSWORD_INPUT_SELECTORS, "password input", timeout
    )
    await client.type_text(password_input, password, delay_s=delay)

    submit = await resolve_selector(client, SUBMIT_BUTTON_SELECTORS, "submit button", timeout)
    await client.click(submit)
    await client.wait(settings.login_submit_settle_seconds)

    landed_on = client.current_url
    logger.info("login_submitted", url=landed_on)
    if looks_like_login_page(landed_on):
        raise LoginFailedError("still on the login page after submit")
