"""Application configuration loaded from environment variables."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from stl_upload.schemas.common import AuthMode


class Settings(BaseSettings):
    """Central configuration for the STL upload service."""

    service_name: str = Field(default="STL Upload API", description="Name reported by health checks")

    # Google Drive destination
    google_drive_folder_id: str = Field(default="", description="Parent folder for all uploads")
    folder_per_request: bool = Field(
        default=True, description="Create a dated customer folder per request instead of using the parent"
    )
    folder_timezone: str = Field(
        default="", description="IANA timezone for folder names (server local time when empty)"
    )
    upload_mime_type: str = Field(default="application/octet-stream", description="MIME type for uploaded files")

    # Credentials
    google_auth_mode: AuthMode = Field(default=AuthMode.OAUTH, description="oauth or service_account")
    google_service_account_json: str = Field(default="", description="Service-account key JSON blob")
    google_oauth_client_id: str = Field(default="", description="OAuth client id")
    google_oauth_client_secret: str = Field(default="", description="OAuth client secret")
    google_oauth_redirect_uri: str = Field(default="", description="OAuth redirect URI (.../oauth2callback)")
    google_oauth_refresh_token: str = Field(default="", description="Refresh token from /oauth2callback")

    # Transport
    drive_http_timeout: Optional[float] = Field(default=None, description="Drive HTTP timeout in seconds")

    # API
    max_body_bytes: int = Field(default=50 * 1024 * 1024, description="Maximum request body size")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3001, description="API port")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False}


# Singleton instance
settings = Settings()
