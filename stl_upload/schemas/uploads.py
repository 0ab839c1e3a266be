"""Schemas for the upload endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from stl_upload.schemas.common import CamelModel


class UploadRequest(CamelModel):
    """Body of POST /upload.

    Required fields are optional at the schema level so that the router can
    answer a missing field with a plain 400 instead of a validation report.
    """
    file_name: Optional[str] = Field(None, description="Original file name")
    file_data: Optional[str] = Field(None, description="Base64 content, optionally a data URL")
    customer_name: Optional[str] = Field(None, description="Used to name the destination folder")
    customer_email: Optional[str] = Field(None, description="Logged with the upload")


class BatchFile(CamelModel):
    """One entry of a batch upload."""
    file_name: Optional[str] = None
    file_data: Optional[str] = None


class BatchUploadRequest(CamelModel):
    """Body of POST /upload-batch."""
    files: Optional[Any] = Field(None, description="Ordered list of {fileName, fileData}")
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None


class UploadResponse(CamelModel):
    """Response returned after a successful single-file upload."""
    success: bool = True
    file_id: str
    file_name: str
    view_link: Optional[str] = None
    download_link: Optional[str] = None


class UploadResult(CamelModel):
    """Outcome for one file of a batch, in input order."""
    success: bool
    file_name: Optional[str] = None
    file_id: Optional[str] = None
    view_link: Optional[str] = None
    download_link: Optional[str] = None
    error: Optional[str] = None


class BatchUploadResponse(CamelModel):
    """Response for POST /upload-batch."""
    success: bool = Field(..., description="True once the batch was processed; see uploaded/failed")
    folder_link: Optional[str] = None
    uploaded: int = 0
    failed: int = 0
    files: list[UploadResult] = Field(default_factory=list)
