# ─────────────────────────────────────────────────────────────────────────────
# Schema Factory Tests — polyfactory
# ─────────────────────────────────────────────────────────────────────────────
# Demonstrates: polyfactory for auto-generating valid Pydantic model
# instances that respect all field constraints (max_length, ge, le, etc).
# ─────────────────────────────────────────────────────────────────────────────

from dirty_equals import IsInstance, IsNonNegative, IsPositiveInt, IsStr
from polyfactory.factories.pydantic_factory import ModelFactory

from scienceing_proxy.schemas import (
    ArticleRecord,
    HealthResponse,
    SearchData,
    SearchRequest,
    SearchResponse,
)

# ─── Factories ───────────────────────────────────────────────────────────────


class SearchRequestFactory(ModelFactory):
    __model__ = SearchRequest


class ArticleRecordFactory(ModelFactory):
    __model__ = ArticleRecord


class SearchDataFactory(ModelFactory):
    __model__ = SearchData


class HealthResponseFactory(ModelFactory):
    __model__ = HealthResponse


# ─── Tests ───────────────────────────────────────────────────────────────────


class TestSearchRequestFactory:
    def test_factory_respects_constraints(self):
        for request in SearchRequestFactory.batch(100):
            if request.keyword is not None:
                assert len(request.keyword) <= 500
            if request.page_size is not None:
                assert 1 <= request.page_size <= 100
            if request.page is not None:
                assert request.page >= 1

    def test_accepts_camel_case_wire_names(self):
        request = SearchRequest.model_validate({"keyword": "AI", "pageSize": 50, "timeRange": "1y"})
        assert request.page_size == 50
        assert request.time_range == "1y"


class TestSearchResponseShape:
    def test_article_serializes_camel_case(self):
        data = ArticleRecordFactory.build().model_dump(by_alias=True)
        assert data == {
            "title": IsStr,
            "titleEn": IsStr,
            "titleCn": IsStr,
            "authors": IsInstance(list),
            "institutions": IsInstance(list),
            "abstract": IsStr,
            "abstractEn": IsStr,
            "abstractCn": IsStr,
            "publishDate": IsStr,
            "publishYear": IsInstance(int | str) | None,
            "journal": IsStr,
            "publisher": IsStr,
            "doi": IsStr,
            "url": IsStr,
            "articleType": IsStr,
            "keywords": IsInstance(list),
        }

    def test_search_data_paging_constraints(self):
        for data in SearchDataFactory.batch(30):
            assert data.total_count >= 0
            assert data.current_page >= 1
            assert data.total_pages >= 1

    def test_response_envelope(self):
        envelope = SearchResponse(data=SearchDataFactory.build()).model_dump(by_alias=True)
        assert envelope == {"success": True, "data": IsInstance(dict)}
        assert envelope["data"]["totalCount"] == IsNonNegative
        assert envelope["data"]["currentPage"] == IsPositiveInt


class TestHealthResponseFactory:
    def test_batch_all_valid(self):
        for health in HealthResponseFactory.batch(20):
            body = health.model_dump(by_alias=True)
            assert body["uptime"] >= 0
            assert body["memory"]["used"] >= 0
            assert body["browser"]["pages"] >= 0
            assert set(body["auth"]) == {"loggedIn", "lastLoginEmail", "hasCredentials"}
