"""
Session lookup against the auth provider's session table.

A request is authenticated by either an `Authorization: Bearer <token>`
header or a signed session cookie of the form `<token>.<signature>`, where
the signature is the base64 HMAC-SHA256 of the token keyed by AUTH_SECRET.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from sqlalchemy import select

from friend_focus.db import Database, SessionRow, UserRow

LOGIN_PATH = "/login"


class LoginRequired(Exception):
    """Raised when a route needs a session and the request has none."""

    def __init__(self, location: str = LOGIN_PATH):
        super().__init__(location)
        self.location = location


@dataclass
class SessionUser:
    id: str
    name: str
    email: str


@dataclass
class AuthSession:
    id: str
    token: str
    expires_at: float
    user: SessionUser


def sign_session_token(token: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signed_cookie(value: str, secret: str) -> Optional[str]:
    """Return the token carried by a signed session cookie, or None if forged."""
    token, sep, signature = unquote(value).partition(".")
    if not sep or not token:
        return None
    if not hmac.compare_digest(signature, sign_session_token(token, secret)):
        return None
    return token


def lookup_session(db: Database, token: Optional[str]) -> Optional[AuthSession]:
    """Resolve a raw session token, or None if absent, unknown or expired."""
    if not token:
        return None
    with db.Session() as session:
        result = session.execute(
            select(SessionRow, UserRow)
            .join(UserRow, SessionRow.user_id == UserRow.id)
            .where(SessionRow.token == token)
        ).first()
    if result is None:
        return None
    row, user = result
    if row.expires_at <= time.time():
        return None
    return AuthSession(
        id=row.id,
        token=row.token,
        expires_at=row.expires_at,
        user=SessionUser(id=user.id, name=user.name, email=user.email),
    )
