"""
Google account tokens and the OAuth consent URL for scope upgrades.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy import select

from friend_focus.db import AccountRow, Database

GOOGLE_PROVIDER_ID = "google"
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"

CALENDAR_EVENTS_SCOPE = "https://www.googleapis.com/auth/calendar.events"
CONTACTS_SCOPE = "https://www.googleapis.com/auth/contacts"

UPGRADE_SCOPES = [
    "openid",
    "email",
    "profile",
    CALENDAR_EVENTS_SCOPE,
    CONTACTS_SCOPE,
]


@dataclass
class GoogleTokens:
    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[float]
    scope: Optional[str]


def _google_account(db: Database, user_id: str) -> Optional[AccountRow]:
    with db.Session() as session:
        return session.execute(
            select(AccountRow).where(
                AccountRow.user_id == user_id,
                AccountRow.provider_id == GOOGLE_PROVIDER_ID,
            )
        ).scalars().first()


def get_google_tokens(db: Database, user_id: str) -> Optional[GoogleTokens]:
    """Return the user's Google tokens, or None if Google is not linked."""
    account = _google_account(db, user_id)
    if not account or not account.access_token:
        return None
    return GoogleTokens(
        access_token=account.access_token,
        refresh_token=account.refresh_token,
        expires_at=account.access_token_expires_at,
        scope=account.scope,
    )


def has_google_scopes(db: Database, user_id: str, required_scopes: list[str]) -> bool:
    account = _google_account(db, user_id)
    if not account or not account.scope:
        return False
    granted = set(account.scope.split(" "))
    return all(scope in granted for scope in required_scopes)


def encode_state(callback_url: str) -> str:
    state = json.dumps({"callbackURL": callback_url}, separators=(",", ":"))
    return base64.b64encode(state.encode("utf-8")).decode("ascii")


def build_scope_upgrade_url(client_id: str, auth_url: str, callback_url: str) -> str:
    """
    Google consent URL requesting calendar and read/write contacts access.

    Google redirects back to the auth provider's callback, which stores the
    refreshed token and scope; `callback_url` rides along in `state`.
    """
    params = {
        "client_id": client_id,
        "redirect_uri": f"{auth_url}/api/auth/callback/google",
        "response_type": "code",
        "scope": " ".join(UPGRADE_SCOPES),
        "access_type": "offline",
        # Force re-consent so Google issues a token with the new scopes.
        "prompt": "consent",
        "state": encode_state(callback_url),
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"
