"""Google credential construction and the OAuth consent flow."""

from __future__ import annotations

import json

import structlog
from google.auth.credentials import Credentials as BaseCredentials
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials as OAuthCredentials
from google_auth_oauthlib.flow import Flow

from stl_upload.config import Settings
from stl_upload.schemas.common import AuthMode

logger = structlog.get_logger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"

# OAuth users only grant access to files this app creates.
OAUTH_SCOPES = ["https://www.googleapis.com/auth/drive.file"]
# A service account must write into a folder shared with it by a person.
SERVICE_ACCOUNT_SCOPES = ["https://www.googleapis.com/auth/drive"]


class CredentialsError(Exception):
    """Raised when the configured credentials cannot be loaded."""


def build_credentials(settings: Settings) -> BaseCredentials:
    """Build Drive credentials for the configured auth mode.

    Service-account mode parses the JSON key blob from the environment.
    OAuth mode builds refresh-token credentials; access tokens are fetched
    lazily on the first Drive call.
    """
    if settings.google_auth_mode == AuthMode.SERVICE_ACCOUNT:
        if not settings.google_service_account_json:
            raise CredentialsError("GOOGLE_SERVICE_ACCOUNT_JSON is not set")
        try:
            info = json.loads(settings.google_service_account_json)
            creds = service_account.Credentials.from_service_account_info(
                info, scopes=SERVICE_ACCOUNT_SCOPES
            )
        except (ValueError, KeyError) as exc:
            raise CredentialsError(f"Invalid service account JSON: {exc}") from exc
        logger.info("credentials_loaded", mode=settings.google_auth_mode.value, account=creds.service_account_email)
        return creds

    if not settings.google_oauth_refresh_token:
        logger.warning(
            "oauth_refresh_token_missing",
            msg="Uploads will fail until GOOGLE_OAUTH_REFRESH_TOKEN is set; visit /auth to obtain one",
        )
    logger.info("credentials_loaded", mode=settings.google_auth_mode.value)
    return OAuthCredentials(
        token=None,
        refresh_token=settings.google_oauth_refresh_token or None,
        client_id=settings.google_oauth_client_id,
        client_secret=settings.google_oauth_client_secret,
        token_uri=TOKEN_URI,
        scopes=OAUTH_SCOPES,
    )


# ---------------------------------------------------------------------------
# Consent flow (operator obtains a refresh token once)
# ---------------------------------------------------------------------------

def _flow(settings: Settings) -> Flow:
    client_config = {
        "web": {
            "client_id": settings.google_oauth_client_id,
            "client_secret": settings.google_oauth_client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [settings.google_oauth_redirect_uri],
        }
    }
    # /auth and /oauth2callback are separate requests, so no PKCE verifier
    # can be carried between them.
    return Flow.from_client_config(
        client_config,
        scopes=OAUTH_SCOPES,
        redirect_uri=settings.google_oauth_redirect_uri,
        autogenerate_code_verifier=False,
    )


def build_consent_url(settings: Settings) -> str:
    """Return the Google consent URL requesting offline drive.file access."""
    url, _state = _flow(settings).authorization_url(access_type="offline", prompt="consent")
    return url


def exchange_code(settings: Settings, code: str) -> str | None:
    """Exchange an authorization code and return the refresh token."""
    flow = _flow(settings)
    flow.fetch_token(code=code)
    return flow.credentials.refresh_token
