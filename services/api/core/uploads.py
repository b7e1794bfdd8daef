# services/api/core/uploads.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from uuid import uuid4

logger = logging.getLogger(__name__)


def _ensure_dir(path: str) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def store_image(upload_dir: str, prefix: str, ext: str, data: bytes) -> str:
    """
    Write image bytes under upload_dir and return the stored filename.

    Filenames are random so a re-upload never overwrites a file a
    cached page may still reference.
    """
    folder = _ensure_dir(upload_dir)
    filename = f"{prefix}-{uuid4().hex[:12]}.{ext}"
    tmp = folder / (filename + ".tmp")
    with open(tmp, "wb") as f:
        f.write(data)
    tmp.replace(folder / filename)
    logger.info(f"Stored upload {filename} ({len(data)} bytes)")
    return filename


def remove_image(upload_dir: str, filename: str | None) -> None:
    """Best-effort removal of a replaced image."""
    if not filename:
        return
    path = Path(upload_dir) / os.path.basename(filename)
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove old upload {path}: {e}")
