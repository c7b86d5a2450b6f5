"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore and RevocationStore are the repositories; _row_to_user and
_row_to_revoked_token are the mappers. Route and dependency code never touches
SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Concurrency:
  Both tables are written with single statements. RevocationStore.revoke()
  relies on the jti primary key: when two requests revoke the same token at
  once, the second insert hits IntegrityError and is reported as "already
  revoked" rather than failing.

DB path: auth/authgate.db by default (Settings.auth_db_url). Both stores may
point at the same database; each owns its table.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import RevokedToken, User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'authgate.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("name", String(255)),
    Column("created_at", String(32), nullable=False),
    Column("last_login", String(32)),
    Column("is_active", Integer, nullable=False, server_default="1"),
)

_revoked_tokens = Table(
    "revoked_tokens",
    _metadata,
    Column("jti", String(64), primary_key=True),
    Column("user_id", Integer),
    Column("revoked_at", String(32), nullable=False),
    Column("expires_at", Integer, nullable=False, index=True),  # token exp, epoch seconds
)


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _make_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # FastAPI runs sync routes in a thread pool; connections cross threads.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    _metadata.create_all(engine)
    return engine


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        store.create_user(User(email="ada@example.com", hashed_password=hash_password("secret")))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        self.engine: Engine = _make_engine(db_url)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=normalize_email(user.email),
                    hashed_password=user.hashed_password,
                    name=user.name,
                    created_at=_now_iso(),
                    is_active=1 if user.is_active else 0,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).first()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).first()
        return _row_to_user(row) if row is not None else None

    def update_password(self, user_id: int, hashed_password: str) -> bool:
        """Overwrite the stored credential hash. Returns False if user_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(hashed_password=hashed_password)
            )
            conn.commit()
        return result.rowcount > 0

    def set_active(self, user_id: int, is_active: bool) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update().where(_users.c.id == user_id).values(is_active=1 if is_active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    def update_last_login(self, user_id: int) -> None:
        """Stamp the current UTC timestamp as last_login for the given user."""
        with self.engine.connect() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(last_login=_now_iso()))
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Revocations
# ---------------------------------------------------------------------------


class RevocationStore:
    """Repository for revoked token ids (the logout blocklist).

    Entries are never removed before the token's own expiry; purge_expired()
    only drops rows whose token would fail the exp check anyway.
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        self.engine: Engine = _make_engine(db_url)

    def revoke(self, jti: str, expires_at: int, user_id: int | None = None) -> bool:
        """Record jti as revoked.

        Returns True if this call inserted the entry, False if the token was
        already revoked. Either way the token is revoked afterwards.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _revoked_tokens.insert().values(
                        jti=jti,
                        user_id=user_id,
                        revoked_at=_now_iso(),
                        expires_at=int(expires_at),
                    )
                )
                conn.commit()
        except IntegrityError:
            return False
        return True

    def is_revoked(self, jti: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_revoked_tokens.c.jti).where(_revoked_tokens.c.jti == jti)
            ).first()
        return row is not None

    def get(self, jti: str) -> RevokedToken | None:
        with self.engine.connect() as conn:
            row = conn.execute(_revoked_tokens.select().where(_revoked_tokens.c.jti == jti)).first()
        return _row_to_revoked_token(row) if row is not None else None

    def purge_expired(self, now: float | None = None) -> int:
        """Delete entries whose token has expired. Returns number of rows removed."""
        cutoff = int(time.time() if now is None else now)
        with self.engine.connect() as conn:
            result = conn.execute(_revoked_tokens.delete().where(_revoked_tokens.c.expires_at < cutoff))
            conn.commit()
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        hashed_password=row.hashed_password,
        name=row.name,
        created_at=row.created_at,
        last_login=row.last_login,
        is_active=bool(row.is_active),
    )


def _row_to_revoked_token(row) -> RevokedToken:
    return RevokedToken(
        jti=row.jti,
        user_id=row.user_id,
        revoked_at=row.revoked_at,
        expires_at=row.expires_at,
    )
