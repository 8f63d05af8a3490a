# ─────────────────────────────────────────────────────────────────────────────
# POST /api/login, POST /api/re-login — upstream session control (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends

from scienceing_proxy.config import Settings
from scienceing_proxy.dependencies import get_session_manager, get_settings_dep
from scienceing_proxy.exceptions import MissingParameterError
from scienceing_proxy.schemas import LoginRequest, LoginResponse
from scienceing_proxy.services.session import (
    Credential,
    SessionManager,
    credential_from_fields,
    default_credential,
)

router = APIRouter()


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
async def login(
    body: LoginRequest,
    session: SessionManager = Depends(get_session_manager),
) -> LoginResponse:
    """Log into the upstream site with the given account, replacing any session."""
    if not body.email or not body.password:
        raise MissingParameterError("Missing email or password")
    credential = Credential(email=body.email, password=body.password)
    await session.login(credential)
    return LoginResponse(success=True, email=credential.email)


@router.post("/re-login", response_model=LoginResponse, response_model_exclude_none=True)
async def re_login(
    body: LoginRequest | None = None,
    session: SessionManager = Depends(get_session_manager),
    settings: Settings = Depends(get_settings_dep),
) -> LoginResponse:
    """Force a fresh login, with the body's account or the configured default."""
    credential = credential_from_fields(body.email, body.password) if body else None
    if credential is None:
        credential = default_credential(settings)
    if credential is None:
        raise MissingParameterError(
            "No credentials supplied and no default account configured"
        )
    await session.login(credential)
    return LoginResponse(success=True, email=credential.email)
