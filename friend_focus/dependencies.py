"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from friend_focus.auth import (
    AuthSession,
    LoginRequired,
    lookup_session,
    verify_signed_cookie,
)
from friend_focus.config import Settings, get_settings
from friend_focus.db import Database
from friend_focus.places import PlacesClient
from friend_focus.storage import (
    InMemoryPhotoStore,
    LocalPhotoStore,
    PhotoStore,
    S3PhotoStore,
)

bearer_scheme = HTTPBearer(auto_error=False)

_database: Database | None = None
_photo_store: PhotoStore | None = None


def get_database() -> Database:
    """
    Return a process-wide database handle; sessions are opened per call.
    """
    global _database
    if _database:
        return _database

    settings = get_settings()
    _database = Database(settings.database_url)
    return _database


def get_photo_store() -> PhotoStore:
    global _photo_store
    if _photo_store:
        return _photo_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _photo_store = InMemoryPhotoStore()
    elif settings.photos_bucket:
        _photo_store = S3PhotoStore(
            bucket=settings.photos_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    else:
        _photo_store = LocalPhotoStore(settings.resolved_photos_dir())
    return _photo_store


def get_places_client(settings: Settings = Depends(get_settings)) -> PlacesClient:
    return PlacesClient(api_key=settings.google_maps_api_key)


def get_optional_session(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> Optional[AuthSession]:
    """Session from a bearer token, else from the signed session cookie."""
    if creds:
        return lookup_session(db, creds.credentials)
    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return None
    return lookup_session(db, verify_signed_cookie(cookie, settings.auth_secret))


def require_session(
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> AuthSession:
    """Session for the request; redirects to the login page when absent."""
    if session is None:
        raise LoginRequired()
    return session
