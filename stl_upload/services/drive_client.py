"""Google Drive v3 client covering the four calls the upload flow needs."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httplib2
import structlog
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from stl_upload.config import Settings
from stl_upload.services.google_auth import build_credentials

logger = structlog.get_logger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
FOLDER_URL = "https://drive.google.com/drive/folders/{folder_id}"


class DriveError(Exception):
    """A Drive call failed; the message is safe to return to the caller."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


@dataclass
class StoredFile:
    """A file uploaded to Drive and shared publicly."""
    id: str
    name: str
    view_link: Optional[str] = None
    download_link: Optional[str] = None


def folder_link(folder_id: str) -> Optional[str]:
    if not folder_id:
        return None
    return FOLDER_URL.format(folder_id=folder_id)


class DriveClient:
    """Thin wrapper over the Drive v3 discovery client.

    The client is built once at start-up and only read afterwards. Every
    request executes over a fresh authorized httplib2 transport, because
    ``httplib2.Http`` is not thread-safe and FastAPI runs sync handlers in a
    threadpool.
    """

    def __init__(
        self,
        credentials: Credentials,
        timeout: Optional[float] = None,
        http_factory: Optional[Callable[[], httplib2.Http]] = None,
    ):
        self._credentials = credentials
        self._http_factory = http_factory or (lambda: httplib2.Http(timeout=timeout))
        self._service = build("drive", "v3", credentials=credentials, cache_discovery=False)

    def _execute(self, request: Any, action: str) -> dict[str, Any]:
        http = AuthorizedHttp(self._credentials, http=self._http_factory())
        try:
            return request.execute(http=http, num_retries=0)
        except HttpError as exc:
            reason = exc.reason or str(exc)
            logger.warning("drive_call_failed", action=action, status=exc.resp.status, error=reason)
            raise DriveError(f"{action} failed: {reason}", status=exc.resp.status) from exc
        except GoogleAuthError as exc:
            logger.warning("drive_auth_failed", action=action, error=str(exc))
            raise DriveError(f"{action} failed: {exc}") from exc

    def create_folder(self, name: str, parent_id: str) -> str:
        """Create a folder under ``parent_id`` and return its id."""
        metadata: dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            metadata["parents"] = [parent_id]
        request = self._service.files().create(body=metadata, fields="id", supportsAllDrives=True)
        return self._execute(request, "create folder")["id"]

    def create_file(
        self,
        name: str,
        data: bytes,
        parent_id: str,
        mime_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        """Upload ``data`` as a new file; returns ``{id, name, webViewLink}``."""
        metadata: dict[str, Any] = {"name": name}
        if parent_id:
            metadata["parents"] = [parent_id]
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)
        request = self._service.files().create(
            body=metadata,
            media_body=media,
            fields="id, name, webViewLink",
            supportsAllDrives=True,
        )
        return self._execute(request, "upload")

    def share_publicly(self, file_id: str) -> None:
        """Grant anyone-with-the-link read access."""
        request = self._service.permissions().create(
            fileId=file_id,
            body={"role": "reader", "type": "anyone"},
            supportsAllDrives=True,
        )
        self._execute(request, "share")

    def get_links(self, file_id: str) -> dict[str, Any]:
        """Fetch ``webViewLink`` and ``webContentLink`` for a file."""
        request = self._service.files().get(
            fileId=file_id,
            fields="webViewLink, webContentLink",
            supportsAllDrives=True,
        )
        return self._execute(request, "fetch links")

    def store(self, name: str, data: bytes, parent_id: str, mime_type: str) -> StoredFile:
        """Upload, share and fetch links for one file."""
        created = self.create_file(name, data, parent_id, mime_type)
        logger.info("file_created", file_id=created["id"], name=name, size_bytes=len(data))
        self.share_publicly(created["id"])
        links = self.get_links(created["id"])
        return StoredFile(
            id=created["id"],
            name=created.get("name", name),
            view_link=links.get("webViewLink"),
            download_link=links.get("webContentLink"),
        )


def build_drive_client(settings: Settings) -> DriveClient:
    """Construct the process-wide client from configuration."""
    return DriveClient(build_credentials(settings), timeout=settings.drive_http_timeout)
