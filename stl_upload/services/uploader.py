"""Upload flow: decode, pick a folder, store on Drive, collect results."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from stl_upload.config import Settings, settings as default_settings
from stl_upload.schemas.uploads import BatchFile, BatchUploadResponse, UploadRequest, UploadResult
from stl_upload.services.drive_client import DriveClient, StoredFile, folder_link
from stl_upload.services.folders import (
    batch_folder_name,
    local_now,
    resolve_destination,
    single_folder_name,
)
from stl_upload.services.payload import decode_file_data

logger = structlog.get_logger(__name__)

MISSING_FIELDS = "Missing fileName or fileData"


def upload_single(
    client: DriveClient,
    req: UploadRequest,
    cfg: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> StoredFile:
    """Upload one file into a fresh customer folder.

    Payload and Drive errors propagate to the caller; only folder creation
    degrades to the parent folder.
    """
    cfg = cfg or default_settings
    data = decode_file_data(req.file_data)
    now = now or local_now(cfg.folder_timezone)

    folder_id = resolve_destination(
        client,
        single_folder_name(req.customer_name, now),
        cfg.google_drive_folder_id,
        per_request=cfg.folder_per_request,
    )
    stored = client.store(req.file_name, data, folder_id, cfg.upload_mime_type)

    logger.info(
        "file_uploaded",
        file_id=stored.id,
        file_name=stored.name,
        folder_id=folder_id,
        customer_email=req.customer_email,
    )
    return stored


def _parse_entry(entry: Any) -> BatchFile:
    # Malformed entries are reported as missing fields, keeping the name if any.
    try:
        return BatchFile.model_validate(entry)
    except ValidationError:
        name = entry.get("fileName") if isinstance(entry, dict) else None
        return BatchFile(file_name=name if isinstance(name, str) else None)


def _upload_entry(
    client: DriveClient,
    entry: Any,
    folder_id: str,
    mime_type: str,
) -> UploadResult:
    item = _parse_entry(entry)
    if not item.file_name or not item.file_data:
        logger.warning("batch_file_skipped", file_name=item.file_name, error=MISSING_FIELDS)
        return UploadResult(success=False, file_name=item.file_name, error=MISSING_FIELDS)

    try:
        data = decode_file_data(item.file_data)
        logger.info(
            "batch_file_processing",
            file_name=item.file_name,
            input_length=len(item.file_data),
            size_bytes=len(data),
        )
        stored = client.store(item.file_name, data, folder_id, mime_type)
    except Exception as exc:
        logger.error("batch_file_failed", file_name=item.file_name, error=str(exc))
        return UploadResult(success=False, file_name=item.file_name, error=str(exc) or "Upload failed")

    return UploadResult(
        success=True,
        file_name=stored.name,
        file_id=stored.id,
        view_link=stored.view_link,
        download_link=stored.download_link,
    )


def upload_batch(
    client: DriveClient,
    files: list[Any],
    customer_name: Optional[str] = None,
    customer_email: Optional[str] = None,
    cfg: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> BatchUploadResponse:
    """Upload every file of a batch into one shared folder.

    Files are processed one after another. A failure on one file is recorded
    in its own result and does not stop the rest; results keep input order.
    The top-level ``success`` only says the batch was processed; per-file
    outcomes are summed in ``uploaded`` and ``failed``.
    """
    cfg = cfg or default_settings
    now = now or local_now(cfg.folder_timezone)

    folder_id = resolve_destination(
        client,
        batch_folder_name(customer_name, now),
        cfg.google_drive_folder_id,
        per_request=cfg.folder_per_request,
    )

    results = [_upload_entry(client, entry, folder_id, cfg.upload_mime_type) for entry in files]
    uploaded = sum(1 for r in results if r.success)
    failed = len(results) - uploaded

    logger.info(
        "batch_uploaded",
        folder_id=folder_id,
        customer_email=customer_email,
        uploaded=uploaded,
        failed=failed,
    )

    return BatchUploadResponse(
        success=True,
        folder_link=folder_link(folder_id),
        uploaded=uploaded,
        failed=failed,
        files=results,
    )
