"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; stores and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """An identity that can log in.

    email is the login identifier and is stored lowercased so lookups are
    case-insensitive. hashed_password is a bcrypt hash; the plaintext is never
    stored or returned.
    """

    email: str
    hashed_password: str
    id: int | None = None
    name: str | None = None
    created_at: str | None = None
    last_login: str | None = None
    is_active: bool = True


@dataclass
class RevokedToken:
    """A token invalidated by logout before its natural expiry.

    jti is the token's unique id claim. expires_at mirrors the token's exp
    (epoch seconds) so the row can be pruned once the token would have been
    rejected anyway.
    """

    jti: str
    expires_at: int
    user_id: int | None = None
    revoked_at: str | None = None
