"""
auth/errors.py -- Authentication error taxonomy.

Every failure the auth package reports is an AuthError subclass carrying a
stable machine-readable code and the HTTP status the API layer answers with.
api/main.py registers a single exception handler for AuthError; nothing in
auth/ builds HTTP responses itself.

The token failures (InvalidToken, TokenExpired, TokenRevoked) are kinds of
Unauthenticated: a caller that only cares "is there a usable session?" can
catch Unauthenticated, while clients still see distinct codes. A revoked
token must never look like an ordinary missing session.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for authentication failures mapped to HTTP responses."""

    status_code: int = 401
    code: str = "auth_error"
    message: str = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    """Login failed. Deliberately says nothing about which half was wrong."""

    code = "invalid_credentials"
    message = "Invalid email or password."


class Unauthenticated(AuthError):
    """A protected action was attempted without a usable session."""

    code = "unauthenticated"
    message = "Authentication required."


class InvalidToken(Unauthenticated):
    code = "invalid_token"
    message = "Token is malformed or its signature is invalid."


class TokenExpired(Unauthenticated):
    code = "token_expired"
    message = "Token has expired."


class TokenRevoked(Unauthenticated):
    """The token verifies but was explicitly invalidated by logout."""

    code = "token_revoked"
    message = "Token has been revoked."


class ValidationError(AuthError):
    """Malformed credential input, e.g. a mismatched password confirmation."""

    status_code = 422
    code = "validation_error"
    message = "Invalid input."
