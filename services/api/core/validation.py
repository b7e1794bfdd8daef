"""
Validation utilities for the product sheet API.
Ensures data integrity and provides clear error messages.
"""
import base64
import binascii
import re
from typing import Tuple
from fastapi import HTTPException

from models.marker import RENDER_KINDS, KIND_VARIABLE
from models.variable import DATA_KINDS

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.*)$", re.DOTALL)


def require_text(value: str | None, field: str) -> str:
    """
    Trim and require a non-empty string.

    Raises:
        HTTPException: 400 if the value is missing or whitespace-only
    """
    cleaned = (value or "").strip()
    if not cleaned:
        raise HTTPException(
            status_code=400,
            detail=f"{field} is required"
        )
    return cleaned


def normalize_key(raw: str | None, fallback_name: str | None = None) -> str:
    """
    Build a variable key: lowercase, whitespace → underscore,
    anything outside [a-z0-9_] dropped. A blank key is derived from
    the display name.

    Raises:
        HTTPException: 400 if neither source yields a usable key
    """
    def _slug(s: str) -> str:
        s = re.sub(r"\s+", "_", s.strip().lower())
        return re.sub(r"[^a-z0-9_]", "", s)

    key = _slug(raw or "") or _slug(fallback_name or "")
    if not key:
        raise HTTPException(
            status_code=400,
            detail="chave must contain at least one letter, digit or underscore"
        )
    return key


def validate_data_kind(kind: str | None) -> str:
    """
    Raises:
        HTTPException: 400 if the kind is not texto / numero / lista
    """
    k = (kind or "texto").strip().lower()
    if k not in DATA_KINDS:
        raise HTTPException(
            status_code=400,
            detail=f"tipo must be one of {', '.join(DATA_KINDS)}, got {kind}"
        )
    return k


def coerce_render_kind(kind: str | None) -> str:
    """
    Coerce a marker render kind to one of the allowed values.

    Returns:
        The kind lowercased, or "variavel" for anything unknown
    """
    if not kind:
        return KIND_VARIABLE

    kind_lower = kind.lower().strip()

    if kind_lower in RENDER_KINDS:
        return kind_lower

    return KIND_VARIABLE


def validate_image_type(content_type: str | None) -> str:
    """
    Only JPEG, PNG, GIF and WEBP images are accepted.

    Returns:
        File extension to store the image with

    Raises:
        HTTPException: 400 for any other content type
    """
    ct = (content_type or "").split(";")[0].strip().lower()
    if ct not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Only images are accepted (JPEG, PNG, GIF, WEBP)"
        )
    return ALLOWED_IMAGE_TYPES[ct]


def validate_upload_size(size: int, max_bytes: int) -> None:
    if size <= 0:
        raise HTTPException(status_code=400, detail="Empty file")
    if size > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large: {size} bytes (max {max_bytes})"
        )


def parse_data_url(data_url: str | None) -> Tuple[str, bytes]:
    """
    Decode `data:<mime>;base64,<payload>`.

    Returns:
        (mime type, decoded bytes)

    Raises:
        HTTPException: 400 if the string is not a base64 data URL
    """
    match = _DATA_URL_RE.match((data_url or "").strip())
    if not match:
        raise HTTPException(
            status_code=400,
            detail="data_url must look like data:<mime>;base64,<payload>"
        )
    try:
        payload = base64.b64decode(match.group("data"), validate=False)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Invalid base64 payload")
    return match.group("mime").lower(), payload
