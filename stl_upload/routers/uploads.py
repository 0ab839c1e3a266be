"""Router: POST /upload and POST /upload-batch — relay STL files to Drive."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from stl_upload.config import Settings
from stl_upload.dependencies import get_drive_client, get_settings
from stl_upload.schemas.common import ErrorResponse
from stl_upload.schemas.uploads import (
    BatchUploadRequest,
    BatchUploadResponse,
    UploadRequest,
    UploadResponse,
)
from stl_upload.services import uploader
from stl_upload.services.drive_client import DriveClient
from stl_upload.services.payload import PayloadError

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["uploads"], responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})


@router.post("/upload", response_model=UploadResponse)
def upload_file(
    req: UploadRequest,
    client: DriveClient = Depends(get_drive_client),
    cfg: Settings = Depends(get_settings),
):
    """Upload one STL file into a dated customer folder and share it.

    Returns the Drive file id, name, and view/download links.
    """
    if not req.file_name or not req.file_data:
        raise HTTPException(status_code=400, detail=uploader.MISSING_FIELDS)

    try:
        stored = uploader.upload_single(client, req, cfg=cfg)
    except PayloadError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        logger.error("upload_failed", file_name=req.file_name, error=str(exc))
        raise HTTPException(status_code=500, detail=str(exc) or "Upload failed")

    return UploadResponse(
        file_id=stored.id,
        file_name=stored.name,
        view_link=stored.view_link,
        download_link=stored.download_link,
    )


@router.post("/upload-batch", response_model=BatchUploadResponse, response_model_exclude_none=True)
def upload_batch(
    req: BatchUploadRequest,
    client: DriveClient = Depends(get_drive_client),
    cfg: Settings = Depends(get_settings),
):
    """Upload several STL files into one folder.

    Always 200 once per-file processing starts; each entry of ``files``
    reports its own success or error, in the order the files were sent.
    """
    if not isinstance(req.files, list) or not req.files:
        raise HTTPException(status_code=400, detail="No files provided")

    try:
        return uploader.upload_batch(
            client,
            req.files,
            customer_name=req.customer_name,
            customer_email=req.customer_email,
            cfg=cfg,
        )
    except Exception as exc:
        logger.error("batch_upload_failed", error=str(exc))
        raise HTTPException(status_code=500, detail=str(exc) or "Batch upload failed")
