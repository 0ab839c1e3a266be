"""Decoding of base64 file payloads sent by the web client."""

from __future__ import annotations

import base64
import binascii

_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


class PayloadError(ValueError):
    """The file payload could not be decoded."""


def strip_data_url(file_data: str) -> str:
    """Drop a ``data:...;base64,`` prefix, i.e. everything up to the first comma."""
    _prefix, sep, rest = file_data.partition(",")
    return rest if sep else file_data


def decode_file_data(file_data: str) -> bytes:
    """Decode a raw base64 string or a data URL into bytes.

    Whitespace, URL-safe characters and missing padding are tolerated, the
    way browsers' ``btoa``/``FileReader`` output tends to arrive.
    """
    raw = "".join(strip_data_url(file_data).split()).translate(_URLSAFE_TO_STANDARD)
    raw += "=" * (-len(raw) % 4)
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadError(f"Invalid base64 file data: {exc}") from exc
    if not data:
        raise PayloadError("Empty file data")
    return data
