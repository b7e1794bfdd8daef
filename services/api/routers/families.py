# services/api/routers/families.py
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from typing import Annotated, Any, Dict, List
import logging

from adapters.base import StorageAdapter
from schemas import FamilyCreate, FamilyOut, FamilyUpdate, ImageDataUrl, MarkerOut
from core.uploads import remove_image, store_image
from core.validation import (
    coerce_render_kind,
    parse_data_url,
    require_text,
    validate_image_type,
    validate_upload_size,
)
from models.converters import family_from_row, family_to_api
from models.marker import MarkerCollection
from settings import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/familias", tags=["familias"])


def get_storage() -> StorageAdapter:
    """Dependency to get storage adapter from app state."""
    from main import get_storage_adapter
    return get_storage_adapter()


Storage = Annotated[StorageAdapter, Depends(get_storage)]


def _load_family_or_404(storage, familia_id: int) -> Dict[str, Any]:
    row = storage.get_family(familia_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Family not found")
    return row


def _to_api(row: Dict[str, Any]) -> Dict[str, Any]:
    from main import UPLOAD_URL_PREFIX
    return family_to_api(family_from_row(row), UPLOAD_URL_PREFIX)


def _family_out(storage, familia_id: int) -> Dict[str, Any]:
    return _to_api(_load_family_or_404(storage, familia_id))


def _markers_to_json(markers) -> str:
    """
    Canonicalize incoming markers: fill ids, coerce kinds and
    renumber 1..N before they hit the JSON column.
    """
    rows = []
    for m in markers:
        row = m.model_dump()
        row["tipo"] = coerce_render_kind(row.get("tipo"))
        rows.append(row)
    return MarkerCollection.from_raw(rows).to_json()


def _store_family_image(storage, familia_id: int, field: str, content_type: str | None, data: bytes) -> Dict[str, Any]:
    settings = get_settings()
    current = _load_family_or_404(storage, familia_id)

    ext = validate_image_type(content_type)
    validate_upload_size(len(data), settings.max_upload_bytes)

    filename = store_image(settings.upload_dir, f"familia-{familia_id}-{field}", ext, data)
    storage.update_family(familia_id, {field: filename})
    remove_image(settings.upload_dir, current.get(field))
    return _family_out(storage, familia_id)


# ---------------- Families ----------------

@router.get("", response_model=List[FamilyOut])
async def list_families(storage: Storage):
    """Active families ordered by (ordem, nome)."""
    return [_to_api(r) for r in storage.list_families()]


@router.get("/todas", response_model=List[FamilyOut])
async def list_all_families(storage: Storage):
    """All families including deactivated ones (admin screens)."""
    return [_to_api(r) for r in storage.list_families(include_inactive=True)]


@router.get("/{familia_id}", response_model=FamilyOut)
async def get_family(familia_id: int, storage: Storage):
    return _family_out(storage, familia_id)


@router.get("/{familia_id}/marcadores", response_model=List[MarkerOut])
async def get_family_markers(familia_id: int, storage: Storage):
    """
    Canonical marker list. Legacy stored shapes (bare array, wrapper
    object, entries without id/numero) are normalized; malformed JSON
    yields an empty list.
    """
    row = _load_family_or_404(storage, familia_id)
    return MarkerCollection.from_raw(row.get("marcadores_vista")).to_raw()


@router.post("", response_model=FamilyOut, status_code=status.HTTP_201_CREATED)
async def create_family(body: FamilyCreate, storage: Storage):
    nome = require_text(body.nome, "nome")
    markers_json = _markers_to_json(body.marcadores_vista) if body.marcadores_vista else None

    familia_id = storage.create_family(nome=nome, ordem=body.ordem, marcadores_vista=markers_json)
    logger.info(f"Family created: {nome} (id={familia_id})")
    return _family_out(storage, familia_id)


@router.put("/{familia_id}", response_model=FamilyOut)
async def update_family(familia_id: int, body: FamilyUpdate, storage: Storage):
    """
    Update name, order and the marker collection in one write.
    Images go through the upload endpoints afterwards.
    """
    _load_family_or_404(storage, familia_id)

    updates: Dict[str, Any] = {}
    if body.nome is not None:
        updates["nome"] = require_text(body.nome, "nome")
    if body.ordem is not None:
        updates["ordem"] = body.ordem
    if body.marcadores_vista is not None:
        updates["marcadores_vista"] = _markers_to_json(body.marcadores_vista)

    if updates:
        storage.update_family(familia_id, updates)
        logger.info(f"Family updated: id={familia_id} fields={sorted(updates)}")
    return _family_out(storage, familia_id)


@router.delete("/{familia_id}")
async def deactivate_family(familia_id: int, storage: Storage):
    """Families are deactivated, never deleted."""
    _load_family_or_404(storage, familia_id)
    storage.deactivate_family(familia_id)
    logger.info(f"Family deactivated: id={familia_id}")
    return {"status": "deactivated", "id": familia_id}


# ---------------- Images (multipart) ----------------

@router.post("/{familia_id}/foto", response_model=FamilyOut)
async def upload_photo(familia_id: int, storage: Storage, foto: UploadFile = File(...)):
    data = await foto.read()
    return _store_family_image(storage, familia_id, "foto", foto.content_type, data)


@router.post("/{familia_id}/esquematico", response_model=FamilyOut)
async def upload_schematic(familia_id: int, storage: Storage, esquematico: UploadFile = File(...)):
    data = await esquematico.read()
    return _store_family_image(storage, familia_id, "esquematico", esquematico.content_type, data)


# ---------------- Images (data URL fallback) ----------------
# Some proxies mangle multipart bodies; clients retry with a JSON data URL.

@router.post("/{familia_id}/foto-base64", response_model=FamilyOut)
async def upload_photo_base64(familia_id: int, body: ImageDataUrl, storage: Storage):
    mime, data = parse_data_url(body.data_url)
    return _store_family_image(storage, familia_id, "foto", mime, data)


@router.post("/{familia_id}/esquematico-base64", response_model=FamilyOut)
async def upload_schematic_base64(familia_id: int, body: ImageDataUrl, storage: Storage):
    mime, data = parse_data_url(body.data_url)
    return _store_family_image(storage, familia_id, "esquematico", mime, data)
