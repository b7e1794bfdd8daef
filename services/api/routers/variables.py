# services/api/routers/variables.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Annotated, Any, Dict, List, Optional
from cachetools import TTLCache
import logging

from adapters.base import StorageAdapter
from schemas import VariableCreate, VariableOut, VariableUpdate
from core.observability import stats
from core.validation import normalize_key, require_text, validate_data_kind
from models.converters import variable_from_row, variable_to_api
from settings import get_settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/variaveis-tecnicas", tags=["variaveis-tecnicas"])


def get_storage() -> StorageAdapter:
    """Dependency to get storage adapter from app state."""
    from main import get_storage_adapter
    return get_storage_adapter()


Storage = Annotated[StorageAdapter, Depends(get_storage)]

# The editor reloads the active list every time it opens; cache it
# briefly and drop it on any write.
variable_cache: TTLCache = TTLCache(maxsize=4, ttl=max(get_settings().variable_cache_ttl, 1))
_ACTIVE_KEY = "active"


def invalidate_variable_cache() -> None:
    variable_cache.clear()


def get_active_variables(storage) -> List[Dict[str, Any]]:
    """
    Active variables as API dicts, ordered by (ordem, nome).
    Also what the marker editor loads on open.
    """
    cached = variable_cache.get(_ACTIVE_KEY)
    if cached is not None and get_settings().variable_cache_ttl > 0:
        stats.record_cache(True)
        return cached
    stats.record_cache(False)
    rows = [variable_to_api(variable_from_row(r)) for r in storage.list_variables(active_only=True)]
    variable_cache[_ACTIVE_KEY] = rows
    return rows


def _load_or_404(storage, variavel_id: int) -> Dict[str, Any]:
    row = storage.get_variable(variavel_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Variable not found")
    return row


@router.get("", response_model=List[VariableOut])
async def list_variables(
    storage: Storage,
    ativo: bool = Query(True, description="Only active variables (false = all)"),
    q: Optional[str] = Query(None, description="Case-insensitive filter over nome / chave"),
    categoria: Optional[str] = Query(None, description="Exact category filter"),
):
    """
    List technical variables. Used by the marker editor (active only)
    and by the admin registry screen (search + category filter).
    """
    if ativo:
        rows = get_active_variables(storage)
    else:
        rows = [variable_to_api(variable_from_row(r)) for r in storage.list_variables(active_only=False)]

    if categoria:
        rows = [r for r in rows if (r.get("categoria") or "") == categoria]
    if q and q.strip():
        t = q.strip().lower()
        rows = [r for r in rows if t in (r["nome"] or "").lower() or t in (r["chave"] or "").lower()]
    return rows


@router.get("/categorias", response_model=List[str])
async def list_categories(storage: Storage):
    """Distinct categories of active variables (for the filter dropdown)."""
    return storage.list_variable_categories()


@router.get("/{variavel_id}", response_model=VariableOut)
async def get_variable(variavel_id: int, storage: Storage):
    return variable_to_api(variable_from_row(_load_or_404(storage, variavel_id)))


@router.post("", response_model=VariableOut, status_code=status.HTTP_201_CREATED)
async def create_variable(body: VariableCreate, storage: Storage):
    """
    Create a variable. A blank `chave` is derived from `nome`.
    `chave` must not collide with another ACTIVE variable.
    """
    nome = require_text(body.nome, "nome")
    chave = normalize_key(body.chave, nome)
    tipo = validate_data_kind(body.tipo)

    if storage.find_active_variable_by_key(chave):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"chave '{chave}' is already used by an active variable",
        )

    variavel_id = storage.create_variable(
        {
            "chave": chave,
            "nome": nome,
            "categoria": (body.categoria or "").strip() or None,
            "tipo": tipo,
            "opcoes": "\n".join(body.opcoes) if body.opcoes else None,
            "ordem": body.ordem,
        }
    )
    invalidate_variable_cache()
    logger.info(f"Variable created: {chave} (id={variavel_id})")
    return variable_to_api(variable_from_row(_load_or_404(storage, variavel_id)))


@router.put("/{variavel_id}", response_model=VariableOut)
async def update_variable(variavel_id: int, body: VariableUpdate, storage: Storage):
    """
    Edit name / category / type / options / order.
    The key is fixed at creation: markers reference it.
    """
    current = _load_or_404(storage, variavel_id)

    if body.chave is not None and body.chave.strip():
        if normalize_key(body.chave) != current["chave"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="chave cannot be changed after creation",
            )

    updates: Dict[str, Any] = {}
    if body.nome is not None:
        updates["nome"] = require_text(body.nome, "nome")
    if body.categoria is not None:
        updates["categoria"] = body.categoria.strip() or None
    if body.tipo is not None:
        updates["tipo"] = validate_data_kind(body.tipo)
    if body.opcoes is not None:
        updates["opcoes"] = "\n".join(body.opcoes) or None
    if body.ordem is not None:
        updates["ordem"] = body.ordem

    if updates:
        storage.update_variable(variavel_id, updates)
        invalidate_variable_cache()
    return variable_to_api(variable_from_row(_load_or_404(storage, variavel_id)))


@router.delete("/{variavel_id}")
async def deactivate_variable(variavel_id: int, storage: Storage):
    """
    Deactivate (never delete): existing markers keep the key and
    fall back to showing it raw.
    """
    _load_or_404(storage, variavel_id)
    storage.deactivate_variable(variavel_id)
    invalidate_variable_cache()
    logger.info(f"Variable deactivated: id={variavel_id}")
    return {"status": "deactivated", "id": variavel_id}
