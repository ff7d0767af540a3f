# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: Authentication — login, magic link, logout, current user."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from roster.core.dependencies import (
    get_api_key,
    get_auth_service,
    get_current_identity,
    get_user_repo,
)
from roster.core.errors import AuthenticationError, ValidationError
from roster.models.domain import Identity
from roster.repositories.user_repository import UserRepository
from roster.schemas.roster import LoginRequest, LoginResponse, MagicLinkRequest
from roster.services.auth_service import AuthService, public_user

router = APIRouter(prefix="/api/v1", tags=["Auth"])


@router.post("/auth/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Exchange email and password for an API key."""
    try:
        return auth.login(payload.email.strip(), payload.password)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/auth/magic-link", response_model=LoginResponse)
def magic_link(
    payload: MagicLinkRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Passwordless login for a known email."""
    try:
        return auth.login_with_magic_link(payload.email.strip())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.post("/auth/logout")
def logout(
    identity: Identity = Depends(get_current_identity),
    api_key: Optional[str] = Depends(get_api_key),
    auth: AuthService = Depends(get_auth_service),
):
    auth.logout(api_key)
    return {"status": "logged_out"}


@router.get("/auth/me")
def me(
    identity: Identity = Depends(get_current_identity),
    users: UserRepository = Depends(get_user_repo),
):
    """The authenticated user and the identity used for mutations."""
    user = users.get_by_id(identity.user_id)
    return {
        "user": public_user(user) if user else None,
        "identity": identity.model_dump(mode="json"),
    }
