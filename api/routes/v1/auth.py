"""
api/routes/v1/auth.py -- Login and identity endpoints.

Routes:
  POST /api/v1/auth/login  -- password login; returns a bearer token
  GET  /api/v1/auth/me     -- identity carried by the caller's token

Security:
  CredentialStore.verify() provides timing equalization -- use it, never
  inline get_by_username() + verify_password().
  Wrong username and wrong password produce the same "bad_credentials" error.
  Cache-Control: no-store on login responses so tokens are never cached.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, LoginRequest, LoginResponse, MeResponse
from auth.credentials import CredentialStore
from auth.dependencies import get_current_identity
from auth.models import AuthFailure, UserIdentity
from auth.tokens import get_token_service

# Auth policy:
# - POST /api/v1/auth/login: public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:    requires a valid token (get_current_identity)
router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed bearer token."""
    credentials: CredentialStore = request.app.state.credentials
    result = credentials.verify(body.username, body.password)
    if isinstance(result, AuthFailure):
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Invalid username or password.")
            ).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    tokens = get_token_service()
    token = tokens.issue(result)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=int(tokens.default_ttl.total_seconds()),
            user_id=result.user_id,
            username=result.username,
            role=result.role,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(identity: UserIdentity = Depends(get_current_identity)) -> MeResponse:
    """Return the identity carried by the caller's token."""
    return MeResponse(user_id=identity.user_id, username=identity.username, role=identity.role)
