"""Tests for the HTTP routes, using the in-memory Drive client."""

import base64
import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeDriveClient, make_settings

from stl_upload.config import settings
from stl_upload.dependencies import get_drive_client, get_settings
from stl_upload.main import app
from stl_upload.schemas.common import AuthMode

DATA = base64.b64encode(b"solid part\nendsolid part\n").decode()


class TestSystemEndpoints:
    def test_root_returns_status(self, api):
        resp = api.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": settings.service_name}

    def test_health(self, api):
        resp = api.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestUploadEndpoint:
    def test_upload_success(self, api, fake_drive):
        resp = api.post(
            "/upload",
            json={"fileName": "part.stl", "fileData": DATA, "customerName": "Alice", "customerEmail": "a@x.io"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body == {
            "success": True,
            "fileId": "file-1",
            "fileName": "part.stl",
            "viewLink": "https://drive.test/file-1/view",
            "downloadLink": "https://drive.test/file-1/download",
        }
        assert fake_drive.folders[0]["name"].endswith("_Alice")

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"fileName": "part.stl"},
            {"fileData": DATA},
            {"fileName": "", "fileData": DATA},
            {"fileName": "part.stl", "fileData": ""},
        ],
    )
    def test_missing_fields_return_400(self, api, fake_drive, payload):
        resp = api.post("/upload", json=payload)
        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing fileName or fileData"}
        assert fake_drive.files == []

    def test_invalid_base64_returns_400(self, api):
        resp = api.post("/upload", json={"fileName": "part.stl", "fileData": "***"})
        assert resp.status_code == 400
        assert "Invalid base64" in resp.json()["error"]

    def test_drive_failure_returns_500(self, api, fake_drive):
        fake_drive.fail_on["part.stl"] = "upload"
        resp = api.post("/upload", json={"fileName": "part.stl", "fileData": DATA})
        assert resp.status_code == 500
        assert resp.json() == {"error": "upload failed: boom"}

    def test_folder_failure_still_uploads(self, api, fake_drive):
        fake_drive.fail_folder = True
        resp = api.post("/upload", json={"fileName": "part.stl", "fileData": DATA})
        assert resp.status_code == 200
        assert fake_drive.files[0]["parent"] == "parent-folder"

    def test_malformed_json_returns_400(self, api):
        resp = api.post("/upload", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_oversized_body_returns_413(self, api, monkeypatch):
        monkeypatch.setattr(settings, "max_body_bytes", 16)
        resp = api.post("/upload", json={"fileName": "part.stl", "fileData": DATA})
        assert resp.status_code == 413
        assert resp.json() == {"error": "Request body too large"}

    def test_chunked_oversized_body_returns_413(self, api, fake_drive, monkeypatch):
        """A body sent without Content-Length is counted as it arrives."""
        monkeypatch.setattr(settings, "max_body_bytes", 16)
        body = json.dumps({"fileName": "part.stl", "fileData": DATA}).encode()

        def chunks():
            for i in range(0, len(body), 8):
                yield body[i:i + 8]

        resp = api.post("/upload", content=chunks(), headers={"Content-Type": "application/json"})

        assert resp.status_code == 413
        assert resp.json() == {"error": "Request body too large"}
        assert fake_drive.files == []

    def test_chunked_body_under_limit_is_accepted(self, api):
        body = json.dumps({"fileName": "part.stl", "fileData": DATA}).encode()

        resp = api.post("/upload", content=iter([body[:10], body[10:]]), headers={"Content-Type": "application/json"})

        assert resp.status_code == 200

    def test_unconfigured_client_returns_503(self):
        app.dependency_overrides[get_settings] = lambda: make_settings()
        try:
            app.state.drive_client = None
            resp = TestClient(app).post("/upload", json={"fileName": "part.stl", "fileData": DATA})
        finally:
            app.dependency_overrides.clear()
        assert resp.status_code == 503
        assert "error" in resp.json()


class TestBatchEndpoint:
    def _files(self, *names):
        return [{"fileName": n, "fileData": DATA} for n in names]

    @pytest.mark.parametrize("files", [None, [], "a.stl", {"fileName": "a.stl"}])
    def test_empty_or_non_list_returns_400(self, api, files):
        payload = {} if files is None else {"files": files}
        resp = api.post("/upload-batch", json=payload)
        assert resp.status_code == 400
        assert resp.json() == {"error": "No files provided"}

    def test_batch_success(self, api, fake_drive):
        resp = api.post("/upload-batch", json={"files": self._files("a.stl", "b.stl"), "customerName": "Jo/hn"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["uploaded"] == 2
        assert body["failed"] == 0
        assert body["folderLink"] == "https://drive.google.com/drive/folders/folder-1"
        assert [f["fileName"] for f in body["files"]] == ["a.stl", "b.stl"]
        assert "error" not in body["files"][0]
        assert fake_drive.folders[0]["name"].endswith("_Jo_hn")

    def test_one_failure_among_n(self, api, fake_drive):
        fake_drive.fail_on["b.stl"] = "share"
        resp = api.post("/upload-batch", json={"files": self._files("a.stl", "b.stl", "c.stl")})

        assert resp.status_code == 200
        entries = resp.json()["files"]
        assert len(entries) == 3
        assert [e["success"] for e in entries] == [True, False, True]
        assert entries[1] == {"success": False, "fileName": "b.stl", "error": "share failed: boom"}
        assert resp.json()["success"] is True

    def test_all_failed_batch_is_still_processed(self, api, fake_drive):
        fake_drive.fail_on.update({"a.stl": "upload", "b.stl": "upload"})
        resp = api.post("/upload-batch", json={"files": self._files("a.stl", "b.stl")})

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["failed"] == 2
        assert resp.json()["uploaded"] == 0


class TestAuthEndpoints:
    def test_auth_redirects_to_consent(self, api):
        resp = api.get("/auth", follow_redirects=False)
        assert resp.status_code == 302
        location = resp.headers["location"]
        assert location.startswith("https://accounts.google.com/o/oauth2/auth")
        assert "access_type=offline" in location
        assert "prompt=consent" in location
        assert "drive.file" in location

    def test_callback_shows_refresh_token(self, api, monkeypatch):
        monkeypatch.setattr("stl_upload.routers.auth.exchange_code", lambda cfg, code: "1//refresh-token")
        resp = api.get("/oauth2callback", params={"code": "abc"})
        assert resp.status_code == 200
        assert "1//refresh-token" in resp.text

    def test_callback_exchange_failure(self, api, monkeypatch):
        def _fail(cfg, code):
            raise ValueError("invalid_grant")

        monkeypatch.setattr("stl_upload.routers.auth.exchange_code", _fail)
        resp = api.get("/oauth2callback", params={"code": "abc"})
        assert resp.status_code == 500
        assert "Auth failed: invalid_grant" in resp.text

    def test_callback_without_code(self, api):
        resp = api.get("/oauth2callback")
        assert resp.status_code == 400

    def test_disabled_in_service_account_mode(self, api):
        app.dependency_overrides[get_settings] = lambda: make_settings(google_auth_mode=AuthMode.SERVICE_ACCOUNT)
        assert api.get("/auth", follow_redirects=False).status_code == 404
        assert api.get("/oauth2callback", params={"code": "abc"}).status_code == 404
