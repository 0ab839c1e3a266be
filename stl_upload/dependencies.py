"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from stl_upload.config import Settings, settings
from stl_upload.services.drive_client import DriveClient


def get_settings() -> Settings:
    return settings


def get_drive_client(request: Request) -> DriveClient:
    """Return the Drive client built at start-up."""
    client = getattr(request.app.state, "drive_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Google Drive client is not configured")
    return client
