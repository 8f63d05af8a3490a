"""Browser automation — Protocol interfaces and the Playwright backend."""

from scienceing_proxy.browser.protocol import AutomationClient, NetworkResponse, ResponseHandler

__all__ = [
    "AutomationClient",
    "NetworkResponse",
    "ResponseHandler",
]
