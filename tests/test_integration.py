# ─────────────────────────────────────────────────────────────────────────────
# Integration tests — full request flow over the fake browser
# ─────────────────────────────────────────────────────────────────────────────
# Manually initializes app.state (ASGITransport doesn't run lifespan).
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import pytest
from dirty_equals import IsPositiveInt, IsStr
from httpx import ASGITransport, AsyncClient

from tests.fakes import BASE_URL, FakeAutomationClient, build_app, make_settings

_CREDS = {"email": "a@x.com", "password": "pw"}


@pytest.fixture
def browser() -> FakeAutomationClient:
    return FakeAutomationClient()


@pytest.fixture
async def client(browser: FakeAutomationClient):
    """Create an httpx AsyncClient with manually-initialized app state."""
    app = build_app(make_settings(), browser)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _client_for(settings_overrides: dict, browser: FakeAutomationClient) -> AsyncClient:
    app = build_app(make_settings(**settings_overrides), browser)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestSearchAuto:
    async def test_logs_in_then_searches(self, client, browser):
        response = await client.post("/api/search-auto", json={"keyword": "AI", **_CREDS})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {
            "articles": [
                {
                    "title": "人工智能综述",
                    "titleEn": "A Survey of Artificial Intelligence",
                    "titleCn": "人工智能综述",
                    "authors": [{"name": "Ada Lovelace"}, {"name": "Alan Turing"}],
                    "institutions": ["University of Manchester"],
                    "abstract": "We survey the field.",
                    "abstractEn": "We survey the field.",
                    "abstractCn": "",
                    "publishDate": "2024-03-01",
                    "publishYear": 2024,
                    "journal": "Journal of AI",
                    "publisher": "Example Press",
                    "doi": "10.1000/ai.2024.1",
                    "url": "https://doi.org/10.1000/ai.2024.1",
                    "articleType": "Review",
                    "keywords": ["人工智能", "机器学习"],
                }
            ],
            "totalCount": 42,
            "currentPage": 1,
            "totalPages": 3,
            "keyword": "AI",
            "searchTime": IsStr(regex=r"\d{4}-\d{2}-\d{2}T.*"),
        }
        assert browser.login_count == 1

    async def test_second_call_reuses_session(self, client, browser):
        await client.post("/api/search-auto", json={"keyword": "AI", **_CREDS})
        response = await client.post("/api/search-auto", json={"keyword": "ML", **_CREDS})
        assert response.status_code == 200
        assert browser.login_count == 1
        assert browser.search_count == 2

    async def test_reuses_session_without_credentials(self, client, browser):
        await client.post("/api/login", json=_CREDS)
        response = await client.post("/api/search-auto", json={"keyword": "AI"})
        assert response.status_code == 200
        assert browser.login_count == 1

    async def test_different_account_forces_fresh_login(self, client, browser):
        await client.post("/api/search-auto", json={"keyword": "AI", **_CREDS})
        await client.post(
            "/api/search-auto", json={"keyword": "AI", "email": "b@x.com", "password": "pb"}
        )
        assert browser.login_count == 2

    async def test_logged_out_without_any_credentials(self, client):
        response = await client.post("/api/search-auto", json={"keyword": "AI"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_default_account_used_when_logged_out(self, browser):
        overrides = {"scienceing_email": "d@x.com", "scienceing_password": "pd"}
        async with await _client_for(overrides, browser) as client:
            response = await client.post("/api/search-auto", json={"keyword": "AI"})
        assert response.status_code == 200
        assert ('input[type="email"]', "d@x.com") in browser.typed

    async def test_half_credential_rejected(self, client):
        response = await client.post(
            "/api/search-auto", json={"keyword": "AI", "email": "a@x.com"}
        )
        assert response.status_code == 400

    async def test_no_api_response_is_504(self, browser):
        browser.search_payload = None
        async with await _client_for({}, browser) as client:
            response = await client.post("/api/search-auto", json={"keyword": "AI", **_CREDS})
        assert response.status_code == 504
        assert response.json()["success"] is False
        assert browser.listeners == []


class TestSearch:
    async def test_requires_login(self, client):
        response = await client.post("/api/search", json={"keyword": "AI"})
        assert response.status_code == 401
        assert "Not logged in" in response.json()["error"]

    async def test_missing_keyword(self, client):
        await client.post("/api/login", json=_CREDS)
        for body in ({}, {"keyword": ""}, {"keyword": "   "}):
            response = await client.post("/api/search", json=body)
            assert response.status_code == 400
            assert response.json() == {"success": False, "error": "Missing keyword"}

    async def test_malformed_body(self, client):
        response = await client.post(
            "/api/search", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_page_size_out_of_range(self, client):
        response = await client.post("/api/search", json={"keyword": "AI", "pageSize": 1000})
        assert response.status_code == 400

    async def test_navigation_failure_is_502(self, client, browser, navigation_failure):
        await client.post("/api/login", json=_CREDS)
        browser.goto_error = navigation_failure
        response = await client.post("/api/search", json={"keyword": "AI"})
        assert response.status_code == 502
        assert "ERR_CONNECTION_RESET" in response.json()["error"]


class TestLoginRoutes:
    async def test_login(self, client):
        response = await client.post("/api/login", json=_CREDS)
        assert response.status_code == 200
        assert response.json() == {"success": True, "email": "a@x.com"}

    async def test_login_missing_fields(self, client):
        for body in ({}, {"email": "a@x.com"}, {"password": "pw"}):
            response = await client.post("/api/login", json=body)
            assert response.status_code == 400
            assert response.json() == {"success": False, "error": "Missing email or password"}

    async def test_login_failure_is_401(self, browser):
        browser.post_login_url = f"{BASE_URL}/login"
        async with await _client_for({}, browser) as client:
            response = await client.post("/api/login", json=_CREDS)
            assert response.status_code == 401
            assert response.json()["error"].startswith("Login failed")
            health = (await client.get("/health")).json()
        assert health["auth"]["loggedIn"] is False

    async def test_re_login_with_body(self, client, browser):
        await client.post("/api/login", json=_CREDS)
        response = await client.post("/api/re-login", json=_CREDS)
        assert response.status_code == 200
        assert browser.login_count == 2

    async def test_re_login_with_defaults(self, browser):
        overrides = {"scienceing_email": "d@x.com", "scienceing_password": "pd"}
        async with await _client_for(overrides, browser) as client:
            response = await client.post("/api/re-login")
        assert response.status_code == 200
        assert response.json() == {"success": True, "email": "d@x.com"}

    async def test_re_login_without_any_credentials(self, client):
        response = await client.post("/api/re-login")
        assert response.status_code == 400

    async def test_browser_not_ready_is_503(self):
        async with await _client_for({}, None) as client:  # type: ignore[arg-type]
            response = await client.post("/api/login", json=_CREDS)
        assert response.status_code == 503


class TestRateLimit:
    async def test_eleventh_request_rejected(self, client):
        for _ in range(10):
            response = await client.post("/api/search", json={"keyword": "AI"})
            assert response.status_code == 401
        response = await client.post("/api/search", json={"keyword": "AI"})
        assert response.status_code == 429
        body = response.json()
        assert body == {
            "success": False,
            "error": IsStr(regex=r"Too many requests.*"),
            "retryAfter": IsPositiveInt,
        }
        assert int(response.headers["retry-after"]) == body["retryAfter"]

    async def test_remaining_budget_headers(self, client):
        first = await client.post("/api/login", json=_CREDS)
        second = await client.post("/api/login", json=_CREDS)
        assert first.headers["x-ratelimit-limit"] == "10"
        assert first.headers["x-ratelimit-remaining"] == "9"
        assert second.headers["x-ratelimit-remaining"] == "8"

    async def test_shared_across_api_routes(self, client):
        for _ in range(10):
            await client.post("/api/login", json={})
        response = await client.post("/api/search-auto", json={"keyword": "AI"})
        assert response.status_code == 429

    async def test_counted_in_metrics(self, client):
        for _ in range(12):
            await client.post("/api/login", json={})
        metrics = (await client.get("/metrics")).json()
        assert metrics["rate_limited_total"] == 2


class TestOpenApi:
    async def test_error_envelope_documented_on_api_routes(self, client):
        schema = (await client.get("/openapi.json")).json()
        for path in ("/api/login", "/api/re-login", "/api/search", "/api/search-auto"):
            responses = schema["paths"][path]["post"]["responses"]
            for status in ("400", "401", "429", "502", "503", "504"):
                ref = responses[status]["content"]["application/json"]["schema"]["$ref"]
                assert ref == "#/components/schemas/ErrorResponse"
        envelope = schema["components"]["schemas"]["ErrorResponse"]["properties"]
        assert set(envelope) == {"success", "error", "retryAfter"}

    async def test_health_has_no_error_envelope(self, client):
        schema = (await client.get("/openapi.json")).json()
        assert "429" not in schema["paths"]["/health"]["get"]["responses"]
