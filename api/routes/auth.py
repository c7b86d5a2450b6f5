"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /auth/login             -- password login; returns JWT and sets cookie
  GET  /auth/logout            -- revokes the presented token; 302 for guests
  GET  /auth/is-authenticated  -- {"authenticated": bool}; never errors
  POST /auth/reset-password    -- replace own password (requires auth)
  GET  /auth/me                -- current identity (requires auth)

There is deliberately no /auth/register route. Accounts are provisioned with
the management CLI (main.py create-user).

Security:
  POST /login is rate-limited per client IP (Settings.login_rate_limit).
  authenticate_user() provides timing equalization -- use it, never inline.
  Cache-Control: no-store on responses that carry or change credentials.

Handlers are plain `def` so bcrypt and SQLite work runs in FastAPI's thread
pool instead of blocking the event loop.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from api.limiter import limiter
from api.models import (
    AuthStatusResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    ResetPasswordRequest,
)
from auth.dependencies import extract_token, get_current_user, get_session
from auth.errors import InvalidCredentials
from auth.models import User
from auth.session import SessionState, revoke_token
from auth.store import UserStore
from auth.tokens import authenticate_user, clear_auth_cookie, create_access_token, reset_password, set_auth_cookie
from core.config import get_settings

logger = logging.getLogger("authgate.api")

_settings = get_settings()

# Auth policy:
# - POST /auth/login:            public -- login endpoint must be unauthenticated
# - GET  /auth/logout:           public -- guests get the redirect, sessions get revoked
# - GET  /auth/is-authenticated: public -- reports state, never rejects
# - POST /auth/reset-password:   requires auth (get_current_user)
# - GET  /auth/me:               requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(_settings.login_rate_limit)  # below @router so the registered endpoint is the limited wrapper
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a JWT and set it as a cookie.

    Unknown email and wrong password produce the same 401 body so the
    response does not reveal whether an account exists.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user = authenticate_user(user_store, body.email, body.password)
    except InvalidCredentials:
        logger.warning("Failed login for %s", body.email)
        raise

    token = create_access_token(user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=_settings.token_expire_seconds,
        ).model_dump(),
    )
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    logger.info("Login user_id=%s", user.id)
    return resp


@router.get("/auth/logout", response_model=MessageResponse, responses={302: {"description": "Guest redirect"}})
def logout(request: Request):
    """Revoke the presented token and clear the cookie.

    A guest (or an unverifiable token) has nothing to revoke and is redirected
    like any unauthenticated browser request. Logging out an already revoked
    token succeeds again -- revocation is idempotent.
    """
    if not revoke_token(extract_token(request), request.app.state.revocations):
        resp = RedirectResponse(_settings.guest_logout_redirect, status_code=302)
        clear_auth_cookie(resp)
        return resp

    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    clear_auth_cookie(resp)
    return resp


@router.get("/auth/is-authenticated", response_model=AuthStatusResponse)
def is_authenticated(session: SessionState = Depends(get_session)) -> AuthStatusResponse:
    """Report whether the request carries a usable session.

    Guests and rejected tokens (expired, revoked, forged) all answer false
    with 200. This endpoint never produces an error.
    """
    return AuthStatusResponse(authenticated=session.authenticated)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/reset-password", response_model=MessageResponse)
def reset_password_route(
    request: Request,
    body: ResetPasswordRequest,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Replace the current user's password.

    Existing tokens, including the one used for this call, stay valid until
    they expire or are logged out.
    """
    reset_password(request.app.state.user_store, current_user, body.password, body.password_confirmation)
    resp = JSONResponse(content=MessageResponse(message="Password updated.").model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(id=current_user.id, email=current_user.email, name=current_user.name)
