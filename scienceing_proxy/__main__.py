# python -m scienceing_proxy — run the proxy under uvicorn on settings.port.

import uvicorn

from scienceing_proxy.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "scienceing_proxy.main:create_app",
        factory=True,
        host="0.0.0.0",  # noqa: S104
        port=settings.port,
        log_config=None,  # structlog owns the root logger
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
