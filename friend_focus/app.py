"""
FastAPI application entry point.

Serve `friend_focus.app:create_app` with an ASGI server in factory mode.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from friend_focus.auth import LoginRequired
from friend_focus.config import Settings, get_settings, warn_insecure_defaults
from friend_focus.routes import router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    warn_insecure_defaults(settings)

    app = FastAPI(title="Friend Focus", version="0.1.0")

    @app.exception_handler(LoginRequired)
    async def _login_required(request: Request, exc: LoginRequired):
        return RedirectResponse(exc.location, status_code=302)

    app.include_router(router, prefix=settings.api_prefix)
    return app
