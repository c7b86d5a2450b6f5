"""
auth/session.py -- Request session resolution and logout.

resolve_session() is the whole "auth middleware": a function of the presented
token and the two stores that answers which of three states the request is in.

  GUEST          no token was presented. A normal, successful outcome.
  AUTHENTICATED  the token verifies, is not revoked, and names an active user.
  REJECTED       a token was presented but is unusable. The state carries the
                 reason (InvalidToken, TokenExpired, TokenRevoked or
                 Unauthenticated for a missing/inactive user).

Introspection treats GUEST and REJECTED alike ({"authenticated": false}).
Protected actions call require_user(), which raises the recorded reason so a
revoked token fails as TokenRevoked instead of quietly becoming a guest.

Layer rule: no imports from api/ and no FastAPI types here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from auth.errors import AuthError, TokenRevoked, Unauthenticated
from auth.models import User
from auth.store import RevocationStore, UserStore
from auth.tokens import decode_access_token

logger = logging.getLogger("authgate.auth")


class SessionStatus(str, Enum):
    GUEST = "guest"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus
    user: User | None = None
    claims: dict | None = None
    error: AuthError | None = None

    @property
    def authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED


GUEST = SessionState(status=SessionStatus.GUEST)


def resolve_session(token: str | None, user_store: UserStore, revocations: RevocationStore) -> SessionState:
    """Resolve a presented token to a SessionState. Never raises AuthError."""
    if not token:
        return GUEST
    try:
        claims = decode_access_token(token)
    except AuthError as exc:
        return SessionState(status=SessionStatus.REJECTED, error=exc)

    if revocations.is_revoked(claims["jti"]):
        return SessionState(status=SessionStatus.REJECTED, claims=claims, error=TokenRevoked())

    user = user_store.get_by_id(claims["user_id"])
    if user is None or not user.is_active:
        return SessionState(status=SessionStatus.REJECTED, claims=claims, error=Unauthenticated())
    return SessionState(status=SessionStatus.AUTHENTICATED, user=user, claims=claims)


def require_user(state: SessionState) -> User:
    """Return the session's user or raise why there is none."""
    if state.authenticated and state.user is not None:
        return state.user
    if state.error is not None:
        raise state.error
    raise Unauthenticated()


def revoke_token(token: str | None, revocations: RevocationStore) -> bool:
    """Log out the session behind token.

    Returns True when the token verified (signature and expiry) and is now on
    the revocation list, including when it already was. Returns False for no
    token or an unverifiable one; there is nothing to revoke in that case.
    """
    if not token:
        return False
    try:
        claims = decode_access_token(token)
    except AuthError:
        return False
    inserted = revocations.revoke(claims["jti"], claims["exp"], user_id=claims.get("user_id"))
    if inserted:
        logger.info("Revoked token for user_id=%s", claims.get("user_id"))
    return True
