"""
auth/tokens.py -- JWT, password hashing, and credential utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the user's email (sub), user_id, a random jti, iat and exp. The jti is
       what logout records in the revocation store. decode_access_token()
       raises TokenExpired or InvalidToken; the session layer turns those into
       a Rejected session state.

  Passwords: bcrypt used directly. Bcrypt is the right choice for
       low-entropy secrets (passwords) because its cost factor makes
       brute-force expensive. The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether an email is registered.

  SECRET_KEY: sourced from core.config.get_settings(), which validates the key
       at startup (dev mode auto-generates one, production refuses to start
       without one, short keys are rejected).

Layer rule: no imports from api/. Import from core/ is allowed -- core/ is the
kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import InvalidCredentials, InvalidToken, TokenExpired, Unauthenticated, ValidationError
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("authgate.auth")

_settings = get_settings()

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("sub", "user_id", "jti", "exp")

# bcrypt only looks at the first 72 bytes; current releases reject longer input.
MAX_PASSWORD_BYTES = 72

ACCESS_TOKEN_COOKIE = "access_token"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValidationError for an empty password or one longer than 72 bytes
    in UTF-8 -- bcrypt would otherwise ignore everything past byte 72.
    """
    encoded = plain.encode("utf-8")
    if not encoded:
        raise ValidationError("Password must not be empty.")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=_settings.bcrypt_rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash, or input past bcrypt's length limit.
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. Always call verify_password() even when the
# email does not exist -- bcrypt's constant work factor equalizes timing.
_DUMMY_HASH: str = hash_password("authgate_timing_dummy")


# ---------------------------------------------------------------------------
# Credential verification (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User:
    """Verify an (email, password) pair and return the matching User.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Raises InvalidCredentials on every failure, including an inactive account,
    with the same message so callers cannot tell the cases apart.
    """
    if not password:
        raise InvalidCredentials()
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password) or not user.is_active:
        raise InvalidCredentials()
    store.update_last_login(user.id)
    return user


def reset_password(store: UserStore, user: User, password: str, confirmation: str) -> None:
    """Replace the stored credential of an already-authenticated user.

    Outstanding tokens stay valid until they expire or are logged out.
    """
    if password != confirmation:
        raise ValidationError("Password confirmation does not match.")
    hashed = hash_password(password)
    if not store.update_password(user.id, hashed):
        # The identity vanished between token resolution and the write.
        raise Unauthenticated()
    logger.info("Password reset for user_id=%s", user.id)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user: User, expire_seconds: int = 0) -> str:
    """Encode a signed JWT bound to user.

    Args:
        user:           The verified identity. Must have an id.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.email,
        "user_id": user.id,
        "jti": secrets.token_hex(16),
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry and return the claims.

    Raises TokenExpired when the exp claim has passed and InvalidToken for any
    other failure (bad signature, garbage input, missing claims). Revocation is
    not checked here; see auth.session.resolve_session().
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise InvalidToken() from exc
    if any(claim not in payload for claim in _REQUIRED_CLAIMS):
        raise InvalidToken("Token is missing required claims.")
    return payload


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the JWT access token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    max_age: matches the JWT expiry so both expire together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
