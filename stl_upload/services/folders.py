"""Destination folder naming and creation."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import structlog

from stl_upload.services.drive_client import DriveClient

logger = structlog.get_logger(__name__)

DEFAULT_CUSTOMER = "Unknown"

# Single uploads sanitize the whole name and keep e-mail-like characters.
_SINGLE_DISALLOWED = re.compile(r"[^a-zA-Z0-9_@.-]")
# Batch uploads sanitize only the customer segment, alphanumerics only.
_BATCH_DISALLOWED = re.compile(r"[^a-zA-Z0-9]")


def local_now(timezone_name: str = "") -> datetime:
    """Current wall-clock time in ``timezone_name``, or server local time."""
    if timezone_name:
        return datetime.now(ZoneInfo(timezone_name))
    return datetime.now()


def _timestamp(now: datetime) -> str:
    return now.strftime("%Y-%m-%d_%H%M")


def single_folder_name(customer_name: Optional[str], now: datetime) -> str:
    """``YYYY-MM-DD_HHMM_<customer>`` for a single-file upload."""
    name = f"{_timestamp(now)}_{customer_name or DEFAULT_CUSTOMER}"
    return _SINGLE_DISALLOWED.sub("_", name)


def batch_folder_name(customer_name: Optional[str], now: datetime) -> str:
    """``YYYY-MM-DD_HHMM_<customer>`` for a batch upload."""
    customer = _BATCH_DISALLOWED.sub("_", customer_name or DEFAULT_CUSTOMER)
    return f"{_timestamp(now)}_{customer}"


def resolve_destination(
    client: DriveClient,
    folder_name: str,
    parent_id: str,
    per_request: bool = True,
) -> str:
    """Create the per-request folder and return its id.

    Any failure falls back to ``parent_id`` so the upload itself can still go
    ahead.
    """
    if not per_request:
        return parent_id

    try:
        folder_id = client.create_folder(folder_name, parent_id)
    except Exception as exc:
        logger.error("folder_create_failed", folder_name=folder_name, parent_id=parent_id, error=str(exc))
        return parent_id

    logger.info("folder_created", folder_name=folder_name, folder_id=folder_id)
    return folder_id
