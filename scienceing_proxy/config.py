# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Proxy configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env")

    # ── Server ───────────────────────────────────────────────────────────────
    port: int = 3000

    # ── Security ─────────────────────────────────────────────────────────────
    # SecretStr keeps the key out of logs, repr() and model_dump().
    # Empty string = API key check disabled.
    api_key: SecretStr = SecretStr("")

    # Comma-separated origin substrings (e.g. "example.com,localhost:5173").
    # Empty string = every origin accepted.
    allowed_origins: str = ""

    # Per-client fixed window on /api/* routes.
    rate_limit_requests: int = 10
    rate_limit_window_seconds: float = 60.0

    # ── Upstream account ─────────────────────────────────────────────────────
    # Default credential used for startup auto-login and body-less re-login.
    scienceing_email: str = ""
    scienceing_password: SecretStr = SecretStr("")

    # ── Upstream site ────────────────────────────────────────────────────────
    base_url: str = "https://www.scienceing.com"
    search_api_path: str = "/search/easySearch/v1/searchList"

    # ── Browser ──────────────────────────────────────────────────────────────
    launch_browser: bool = True  # False for tests / environments without Chromium
    browser_headless: bool = True
    browser_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # ── Timeouts (seconds) ───────────────────────────────────────────────────
    login_navigation_timeout_seconds: float = 30.0
    search_navigation_timeout_seconds: float = 60.0
    search_capture_timeout_seconds: float = 30.0
    selector_timeout_seconds: float = 2.0
    login_trigger_timeout_seconds: float = 5.0
    page_settle_seconds: float = 2.0
    login_trigger_settle_seconds: float = 1.0
    login_submit_settle_seconds: float = 3.0
    typing_delay_seconds: float = 0.05

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def has_default_credentials(self) -> bool:
        return bool(self.scienceing_email and self.scienceing_password.get_secret_value())


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
