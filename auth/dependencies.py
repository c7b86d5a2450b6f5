"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

A request may carry its token in three places, checked in priority order:
  1. Authorization: Bearer <token> header -- API clients.
  2. ?token=<token> query parameter -- links and clients that cannot set headers.
  3. access_token cookie -- set by POST /auth/login.

get_session() resolves the request once and caches the SessionState on
request.state, so a route that depends on both get_session() and
get_current_user() does not decode the token twice.

get_current_user() is the hard variant: it raises the session's AuthError
(Unauthenticated or one of its token-specific kinds), which api/main.py turns
into a 401 envelope.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.session import SessionState, require_user, resolve_session
from auth.tokens import ACCESS_TOKEN_COOKIE


def extract_token(request: Request) -> str | None:
    """Return the raw token presented by the request, or None for a guest."""
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    token = request.query_params.get("token")
    if token:
        return token
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def get_session(request: Request) -> SessionState:
    """Resolve (and memoize) the request's SessionState. Never raises for auth outcomes."""
    cached = getattr(request.state, "auth_session", None)
    if cached is not None:
        return cached
    state = resolve_session(
        extract_token(request),
        request.app.state.user_store,
        request.app.state.revocations,
    )
    request.state.auth_session = state
    return state


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    return require_user(get_session(request))
