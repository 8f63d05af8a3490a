# ─────────────────────────────────────────────────────────────────────────────
# POST /api/search, POST /api/search-auto — keyword search endpoints (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends

from scienceing_proxy.config import Settings
from scienceing_proxy.dependencies import get_session_manager, get_settings_dep
from scienceing_proxy.exceptions import MissingParameterError
from scienceing_proxy.schemas import SearchAutoRequest, SearchRequest, SearchResponse
from scienceing_proxy.services.search import SearchQuery
from scienceing_proxy.services.session import (
    SessionManager,
    credential_from_fields,
    default_credential,
)

router = APIRouter()

_DEFAULT_PAGE_SIZE = 20


def _query_from(body: SearchRequest) -> SearchQuery:
    keyword = (body.keyword or "").strip()
    if not keyword:
        raise MissingParameterError("Missing keyword")
    return SearchQuery(
        keyword=keyword,
        page=body.page or 1,
        page_size=body.page_size or _DEFAULT_PAGE_SIZE,
        time_range=body.time_range,
    )


@router.post("/search", response_model=SearchResponse)
async def search(
    body: SearchRequest,
    session: SessionManager = Depends(get_session_manager),
) -> SearchResponse:
    """Search with the current upstream session. 401 when there is none."""
    query = _query_from(body)
    data = await session.search(query)
    return SearchResponse(data=data)


@router.post("/search-auto", response_model=SearchResponse)
async def search_auto(
    body: SearchAutoRequest,
    session: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings_dep),
) -> SearchResponse:
    """Log in when needed, then search.

    Request credentials win; a different email than the active session
    forces a fresh login. Without request credentials the current session
    is reused, or the configured default account logs in when there is none.
    """
    query = _query_from(body)
    credential = credential_from_fields(body.email, body.password)
    if credential is None and not session.is_logged_in:
        credential = default_credential(settings)
        if credential is None:
            raise MissingParameterError("Not logged in and no credentials (email/password) supplied")
    data = await session.search_as(credential, query)
    return SearchResponse(data=data)
