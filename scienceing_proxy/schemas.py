# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Request / Response Schemas
# ─────────────────────────────────────────────────────────────────────────────
# Wire format is camelCase (keyword, pageSize, totalCount, ...). Python code
# uses snake_case attributes; the alias generator bridges the two.
# ─────────────────────────────────────────────────────────────────────────────


from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases, accepting either form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ─────────────────────────────────────────────────────────────────
# Required fields are Optional here on purpose: a missing or empty field is a
# 400 with a specific message (MissingParameterError), not a schema error.


class LoginRequest(CamelModel):
    """Credentials for the upstream account."""

    email: str | None = None
    password: str | None = Field(None, repr=False)


class SearchRequest(CamelModel):
    """Keyword search against an already logged-in session."""

    keyword: str | None = Field(None, max_length=500)
    time_range: str | None = None
    page_size: int | None = Field(None, ge=1, le=100)
    page: int | None = Field(None, ge=1)


class SearchAutoRequest(SearchRequest):
    """Search that logs in first when needed."""

    email: str | None = None
    password: str | None = Field(None, repr=False)


# ── Responses ────────────────────────────────────────────────────────────────


class Author(CamelModel):
    name: str


class ArticleRecord(CamelModel):
    """One normalized search hit."""

    title: str = ""
    title_en: str = ""
    title_cn: str = ""
    authors: list[Author] = Field(default_factory=list)
    institutions: list[Any] = Field(default_factory=list)
    abstract: str = ""
    abstract_en: str = ""
    abstract_cn: str = ""
    publish_date: str = ""
    publish_year: int | str | None = None
    journal: str = ""
    publisher: str = ""
    doi: str = ""
    url: str = ""
    article_type: str = ""
    keywords: list[Any] = Field(default_factory=list)


class SearchData(CamelModel):
    """Search results plus paging metadata."""

    articles: list[ArticleRecord]
    total_count: int = Field(..., ge=0)
    current_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=1)
    keyword: str
    search_time: str = Field(..., description="ISO-8601 UTC timestamp")


class SearchResponse(CamelModel):
    success: bool = True
    data: SearchData


class LoginResponse(CamelModel):
    success: bool
    email: str | None = None


class ErrorResponse(CamelModel):
    """Uniform failure envelope."""

    success: bool = False
    error: str
    retry_after: int | None = None


class MemoryInfo(CamelModel):
    used: int = Field(..., ge=0, description="Resident set size, MB")
    total: int = Field(..., ge=0, description="Physical memory, MB")


class BrowserInfo(CamelModel):
    ready: bool
    pages: int = Field(..., ge=0)


class AuthInfo(CamelModel):
    logged_in: bool
    last_login_email: str | None = None
    has_credentials: bool


class HealthResponse(CamelModel):
    """GET /health — process, browser and session status."""

    status: str = "ok"
    timestamp: str
    uptime: int = Field(..., ge=0)
    memory: MemoryInfo
    browser: BrowserInfo
    auth: AuthInfo
