# ─────────────────────────────────────────────────────────────────────────────
# Search Transform — upstream searchList payload → SearchData
# ─────────────────────────────────────────────────────────────────────────────
# Pure and total: any JSON value produces a SearchData. Localized (…Cn)
# fields are preferred, original-language (…Original) fields are the
# fallback, and empty values are the last resort.
# ─────────────────────────────────────────────────────────────────────────────
from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from scienceing_proxy.schemas import ArticleRecord, Author, SearchData


def _text(raw: Mapping[str, Any], *keys: str) -> str:
    """First truthy value among keys, as a string; "" when none is set."""
    for key in keys:
        value = raw.get(key)
        if value:
            return str(value)
    return ""


def _items(raw: Mapping[str, Any], *keys: str) -> list[Any]:
    for key in keys:
        value = raw.get(key)
        if value and isinstance(value, list):
            return list(value)
    return []


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number > 0 else None


def parse_article(raw: Mapping[str, Any]) -> ArticleRecord:
    """Normalize one entry of result.searchArticleResps."""
    year = raw.get("publicationYear")
    return ArticleRecord(
        title=_text(raw, "titleCn", "titleOriginal"),
        title_en=_text(raw, "titleOriginal"),
        title_cn=_text(raw, "titleCn"),
        authors=[Author(name=str(name)) for name in _items(raw, "authorOriginal") if name],
        institutions=_items(raw, "affiliationCn", "affiliationOriginal"),
        abstract=_text(raw, "abstractCn", "abstractOriginal"),
        abstract_en=_text(raw, "abstractOriginal"),
        abstract_cn=_text(raw, "abstractCn"),
        publish_date=_text(raw, "publicationDay"),
        publish_year=year if isinstance(year, int | str) and not isinstance(year, bool) else None,
        journal=_text(raw, "publication"),
        publisher=_text(raw, "publisher"),
        doi=_text(raw, "doi"),
        url=_text(raw, "landingPageUrl"),
        article_type=_text(raw, "articleTypeCn", "articleType"),
        keywords=_items(raw, "articleConceptCn"),
    )


def build_search_data(
    payload: Any,
    keyword: str,
    requested_page: int = 1,
    searched_at: datetime | None = None,
) -> SearchData:
    """Build the response body from a captured searchList payload."""
    body: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
    result = body.get("result")
    entries = result.get("searchArticleResps") if isinstance(result, Mapping) else None
    if not isinstance(entries, list):
        entries = []
    raw_articles = [entry for entry in entries if isinstance(entry, Mapping)]

    articles = [parse_article(entry) for entry in raw_articles]
    total_count = _positive_int(body.get("totalNum")) or len(articles)
    current_page = _positive_int(body.get("currentPage")) or max(requested_page, 1)
    total_pages = _positive_int(body.get("totalPage")) or 1

    return SearchData(
        articles=articles,
        total_count=total_count,
        current_page=current_page,
        total_pages=total_pages,
        keyword=keyword,
        search_time=(searched_at or datetime.now(UTC)).isoformat(),
    )
