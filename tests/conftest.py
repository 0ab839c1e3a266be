"""Shared fixtures: an in-memory Drive client and an API test client."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from stl_upload.config import Settings
from stl_upload.dependencies import get_drive_client, get_settings
from stl_upload.main import app
from stl_upload.schemas.common import AuthMode
from stl_upload.services.drive_client import DriveClient, DriveError

PARENT_FOLDER = "parent-folder"
FIXED_NOW = datetime(2024, 3, 7, 9, 5)


class FakeDriveClient(DriveClient):
    """Records calls instead of talking to Google.

    ``fail_on`` maps a file name to the step that should raise for it:
    ``"upload"``, ``"share"`` or ``"links"``.
    """

    def __init__(self, fail_folder: bool = False, fail_on: Optional[dict[str, str]] = None):
        self.fail_folder = fail_folder
        self.fail_on = fail_on or {}
        self.folders: list[dict[str, str]] = []
        self.files: list[dict[str, Any]] = []
        self.shared: list[str] = []

    def _maybe_fail(self, file_name: str, step: str) -> None:
        if self.fail_on.get(file_name) == step:
            raise DriveError(f"{step} failed: boom", status=500)

    def create_folder(self, name: str, parent_id: str) -> str:
        if self.fail_folder:
            raise DriveError("create folder failed: quota exceeded", status=403)
        folder_id = f"folder-{len(self.folders) + 1}"
        self.folders.append({"id": folder_id, "name": name, "parent": parent_id})
        return folder_id

    def create_file(self, name, data, parent_id, mime_type="application/octet-stream"):
        self._maybe_fail(name, "upload")
        file_id = f"file-{len(self.files) + 1}"
        self.files.append(
            {"id": file_id, "name": name, "data": data, "parent": parent_id, "mime_type": mime_type}
        )
        return {"id": file_id, "name": name, "webViewLink": f"https://drive.test/{file_id}/view"}

    def _name_of(self, file_id: str) -> str:
        return next(f["name"] for f in self.files if f["id"] == file_id)

    def share_publicly(self, file_id: str) -> None:
        self._maybe_fail(self._name_of(file_id), "share")
        self.shared.append(file_id)

    def get_links(self, file_id: str) -> dict[str, Any]:
        self._maybe_fail(self._name_of(file_id), "links")
        return {
            "webViewLink": f"https://drive.test/{file_id}/view",
            "webContentLink": f"https://drive.test/{file_id}/download",
        }


def make_settings(**overrides) -> Settings:
    values = {
        "google_drive_folder_id": PARENT_FOLDER,
        "google_auth_mode": AuthMode.OAUTH,
        "google_oauth_client_id": "client-id.apps.googleusercontent.com",
        "google_oauth_client_secret": "secret",
        "google_oauth_redirect_uri": "https://relay.test/oauth2callback",
        "folder_per_request": True,
        "folder_timezone": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def fake_drive() -> FakeDriveClient:
    return FakeDriveClient()


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def api(fake_drive, test_settings):
    """TestClient wired to the fake Drive client (lifespan is not run)."""
    app.dependency_overrides[get_drive_client] = lambda: fake_drive
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
