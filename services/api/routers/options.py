# services/api/routers/options.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from typing import Annotated, Dict, List
import logging

from adapters.base import StorageAdapter
from schemas import ConfigurationCheckOut, ConfigurationCheckRequest, OptionCreate, OptionOut
from core.validation import require_text
from models.converters import option_from_row, options_by_variable
from models.marker import MarkerCollection

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/familias", tags=["opcoes"])

STATUS_EXISTING = "existente"        # value is in the curated list (standard equipment)
STATUS_NOT_EXISTING = "nao_existente"  # outside the list (on request)
STATUS_PENDING = "pendente"           # nothing picked yet


def get_storage() -> StorageAdapter:
    """Dependency to get storage adapter from app state."""
    from main import get_storage_adapter
    return get_storage_adapter()


Storage = Annotated[StorageAdapter, Depends(get_storage)]


def _require_family(storage, familia_id: int) -> Dict:
    row = storage.get_family(familia_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Family not found")
    return row


def _option_map(storage, familia_id: int) -> Dict[str, List[Dict]]:
    return options_by_variable([option_from_row(r) for r in storage.list_options(familia_id)])


@router.get("/{familia_id}/opcoes-variaveis", response_model=Dict[str, List[OptionOut]])
async def get_option_map(familia_id: int, storage: Storage):
    """
    {variavel_chave: [{id, valor}, ...]} for one family, in insertion order.
    """
    _require_family(storage, familia_id)
    return _option_map(storage, familia_id)


@router.post(
    "/{familia_id}/variaveis/{variavel_chave}/opcoes",
    response_model=OptionOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_option(familia_id: int, variavel_chave: str, body: OptionCreate, storage: Storage):
    """
    Add an allowed value. Duplicates within the same (family, key)
    are accepted.
    """
    _require_family(storage, familia_id)
    chave = require_text(variavel_chave, "variavel_chave")
    valor = require_text(body.valor, "valor")

    opcao_id = storage.create_option(familia_id, chave, valor)
    logger.info(f"Option added: familia={familia_id} chave={chave} id={opcao_id}")
    return {"id": opcao_id, "valor": valor}


@router.delete("/{familia_id}/variaveis/{variavel_chave}/opcoes/{opcao_id}")
async def remove_option(familia_id: int, variavel_chave: str, opcao_id: int, storage: Storage):
    _require_family(storage, familia_id)
    chave = require_text(variavel_chave, "variavel_chave")
    if not storage.delete_option(familia_id, chave, opcao_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Option not found")
    logger.info(f"Option removed: familia={familia_id} chave={chave} id={opcao_id}")
    return {"status": "deleted", "id": opcao_id}


@router.post("/{familia_id}/configuracao/verificar", response_model=ConfigurationCheckOut)
async def check_configuration(familia_id: int, body: ConfigurationCheckRequest, storage: Storage):
    """
    Check a salesperson's picks marker by marker against the family's
    curated options. The whole configuration is "existente" only when
    every marker's value is in its list.
    """
    row = _require_family(storage, familia_id)
    markers = MarkerCollection.from_raw(row.get("marcadores_vista"))
    option_map = _option_map(storage, familia_id)

    checks = []
    for m in markers:
        picked = (body.selecoes.get(m.variable_key) or "").strip()
        allowed = {o["valor"].strip().lower() for o in option_map.get(m.variable_key, [])}
        if not picked:
            state = STATUS_PENDING
        elif picked.lower() in allowed:
            state = STATUS_EXISTING
        else:
            state = STATUS_NOT_EXISTING
        checks.append(
            {
                "numero": m.number,
                "label": m.label,
                "variavel": m.variable_key,
                "valor": picked or None,
                "status": state,
            }
        )

    return {
        "familia_id": familia_id,
        "existente": bool(checks) and all(c["status"] == STATUS_EXISTING for c in checks),
        "marcadores": checks,
    }
