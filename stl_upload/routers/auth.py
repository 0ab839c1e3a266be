"""Router: GET /auth and GET /oauth2callback — one-off OAuth consent flow.

An operator visits /auth once, approves access, and copies the refresh token
shown by /oauth2callback into GOOGLE_OAUTH_REFRESH_TOKEN.
"""

from __future__ import annotations

import html
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from stl_upload.config import Settings
from stl_upload.dependencies import get_settings
from stl_upload.schemas.common import AuthMode
from stl_upload.services.google_auth import build_consent_url, exchange_code

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])


def _require_oauth(cfg: Settings = Depends(get_settings)) -> Settings:
    if cfg.google_auth_mode != AuthMode.OAUTH:
        raise HTTPException(status_code=404, detail="OAuth flow is disabled in service-account mode")
    return cfg


@router.get("/auth")
def authorize(cfg: Settings = Depends(_require_oauth)):
    """Redirect the operator to Google's consent screen."""
    return RedirectResponse(build_consent_url(cfg), status_code=302)


@router.get("/oauth2callback", response_class=HTMLResponse)
def oauth2callback(code: Optional[str] = None, cfg: Settings = Depends(_require_oauth)):
    """Exchange the authorization code and display the refresh token."""
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    try:
        refresh_token = exchange_code(cfg, code)
    except Exception as exc:
        logger.error("oauth_exchange_failed", error=str(exc))
        return HTMLResponse(f"Auth failed: {html.escape(str(exc))}", status_code=500)

    if not refresh_token:
        logger.warning("oauth_no_refresh_token")
        return HTMLResponse(
            "<h1>No refresh token returned</h1>"
            "<p>Revoke this app's access in your Google account and visit /auth again.</p>"
        )

    logger.info("oauth_authorized")
    return HTMLResponse(
        "<h1>Authorization Successful!</h1>"
        "<p>Refresh token (save it as GOOGLE_OAUTH_REFRESH_TOKEN):</p>"
        f"<code>{html.escape(refresh_token)}</code>"
    )
