"""Unit tests for auth/session.py -- the Guest / Authenticated / Rejected state machine.

resolve_session() and revoke_token() are exercised directly against real
in-memory stores; no HTTP layer involved.
"""

from __future__ import annotations

import time

import pytest
from jose import jwt

from auth.errors import InvalidToken, TokenExpired, TokenRevoked, Unauthenticated
from auth.session import GUEST, SessionStatus, require_user, resolve_session, revoke_token
from auth.tokens import create_access_token, decode_access_token
from core.config import get_settings


@pytest.mark.parametrize("token", [None, ""])
def test_no_token_is_guest(token, user_store, revocations):
    state = resolve_session(token, user_store, revocations)
    assert state is GUEST
    assert state.authenticated is False
    assert state.error is None


def test_guest_require_user_raises_unauthenticated():
    with pytest.raises(Unauthenticated) as exc_info:
        require_user(GUEST)
    assert type(exc_info.value) is Unauthenticated


def test_valid_token_is_authenticated(user_factory, user_store, revocations):
    user, _ = user_factory()
    state = resolve_session(create_access_token(user), user_store, revocations)
    assert state.status is SessionStatus.AUTHENTICATED
    assert state.authenticated
    assert require_user(state).id == user.id
    assert state.claims["user_id"] == user.id


def test_invalid_token_is_rejected(user_store, revocations):
    state = resolve_session("garbage", user_store, revocations)
    assert state.status is SessionStatus.REJECTED
    assert not state.authenticated
    with pytest.raises(InvalidToken):
        require_user(state)


def test_expired_token_is_rejected(user_factory, user_store, revocations):
    user, _ = user_factory()
    past = int(time.time()) - 5
    token = jwt.encode(
        {"sub": user.email, "user_id": user.id, "jti": "old", "exp": past},
        get_settings().secret_key,
        algorithm="HS256",
    )
    state = resolve_session(token, user_store, revocations)
    assert state.status is SessionStatus.REJECTED
    with pytest.raises(TokenExpired):
        require_user(state)


def test_revoked_token_is_rejected_distinctly(user_factory, user_store, revocations):
    user, _ = user_factory()
    token = create_access_token(user)
    assert revoke_token(token, revocations) is True

    state = resolve_session(token, user_store, revocations)
    assert state.status is SessionStatus.REJECTED
    assert isinstance(state.error, TokenRevoked)
    with pytest.raises(TokenRevoked):
        require_user(state)


def test_revocation_is_idempotent(user_factory, user_store, revocations):
    user, _ = user_factory()
    token = create_access_token(user)
    assert revoke_token(token, revocations) is True
    assert revoke_token(token, revocations) is True

    first = resolve_session(token, user_store, revocations)
    second = resolve_session(token, user_store, revocations)
    assert type(first.error) is type(second.error) is TokenRevoked
    assert revocations.get(decode_access_token(token)["jti"]).user_id == user.id


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_revoke_without_verifiable_token_is_noop(token, revocations):
    assert revoke_token(token, revocations) is False


def test_deleted_or_inactive_user_is_rejected(user_factory, user_store, revocations):
    user, _ = user_factory()
    token = create_access_token(user)
    user_store.set_active(user.id, False)
    state = resolve_session(token, user_store, revocations)
    assert state.status is SessionStatus.REJECTED
    with pytest.raises(Unauthenticated):
        require_user(state)
