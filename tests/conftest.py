# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scienceing_proxy.config import Settings
from scienceing_proxy.exceptions import NavigationError
from scienceing_proxy.services.metrics import ProxyMetrics
from scienceing_proxy.services.session import SessionManager
from tests.fakes import BASE_URL, FakeAutomationClient, build_app, make_settings


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_client() -> FakeAutomationClient:
    return FakeAutomationClient()


@pytest.fixture
def session_manager(fake_client: FakeAutomationClient, test_settings: Settings) -> SessionManager:
    return SessionManager(fake_client, test_settings, metrics=ProxyMetrics())


@pytest.fixture
def app(test_settings: Settings, fake_client: FakeAutomationClient) -> FastAPI:
    return build_app(test_settings, fake_client)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """FastAPI TestClient over the fake browser."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def navigation_failure() -> NavigationError:
    return NavigationError(f"{BASE_URL}/result", "net::ERR_CONNECTION_RESET")
