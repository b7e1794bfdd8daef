from __future__ import annotations

from typing import Any, Dict, List

from . import Family, FamilyVariableOption
from .marker import MarkerCollection
from .variable import TechnicalVariable


def _bool_from_row(v: Any) -> bool:
    """
    Convert stored boolean flags to Python bool.
    Accepts: 1/0, TRUE/FALSE, yes/no (case-insensitive).
    """
    if v is None:
        return False
    if isinstance(v, bool):
        return v
    s = str(v).strip().upper()
    return s in ("TRUE", "1", "YES", "Y")


def _iso(v: Any) -> str | None:
    if v is None:
        return None
    return v.isoformat() if hasattr(v, "isoformat") else str(v)


def family_from_row(row: Dict[str, Any]) -> Family:
    return Family(
        id=int(row["id"]),
        nome=row.get("nome") or "",
        ordem=int(row.get("ordem") or 0),
        ativo=_bool_from_row(row.get("ativo")),
        foto=row.get("foto") or None,
        esquematico=row.get("esquematico") or None,
        marcadores_vista=row.get("marcadores_vista") or None,
        created_at=_iso(row.get("created_at")),
        updated_at=_iso(row.get("updated_at")),
    )


def option_from_row(row: Dict[str, Any]) -> FamilyVariableOption:
    return FamilyVariableOption(
        id=int(row["id"]),
        familia_id=int(row["familia_id"]),
        variavel_chave=row.get("variavel_chave") or "",
        valor=row.get("valor") or "",
        created_at=_iso(row.get("created_at")),
    )


def variable_from_row(row: Dict[str, Any]) -> TechnicalVariable:
    """
    `opcoes` is stored as newline-separated text.
    """
    raw_opts = row.get("opcoes") or ""
    return TechnicalVariable(
        id=int(row["id"]) if row.get("id") is not None else None,
        key=row.get("chave") or "",
        name=row.get("nome") or "",
        category=row.get("categoria") or None,
        kind=row.get("tipo") or "texto",
        options=[s.strip() for s in str(raw_opts).splitlines() if s.strip()],
        order=int(row.get("ordem") or 0),
        active=_bool_from_row(row.get("ativo")),
    )


def variable_to_api(v: TechnicalVariable) -> Dict[str, Any]:
    return {
        "id": v.id,
        "chave": v.key,
        "nome": v.name,
        "categoria": v.category,
        "tipo": v.kind,
        "opcoes": list(v.options),
        "ordem": v.order,
        "ativo": v.active,
    }


def family_to_api(family: Family, upload_url_prefix: str = "/uploads/familias-produtos") -> Dict[str, Any]:
    """
    Shape returned to the frontend. The marker field is always the
    canonical list, whatever legacy shape is stored.
    """
    markers = MarkerCollection.from_raw(family.marcadores_vista)
    return {
        "id": family.id,
        "nome": family.nome,
        "ordem": family.ordem,
        "ativo": family.ativo,
        "foto": family.foto,
        "esquematico": family.esquematico,
        "foto_url": f"{upload_url_prefix}/{family.foto}" if family.foto else None,
        "esquematico_url": f"{upload_url_prefix}/{family.esquematico}" if family.esquematico else None,
        "marcadores_vista": markers.to_raw(),
        "created_at": family.created_at,
        "updated_at": family.updated_at,
    }


def options_by_variable(rows: List[FamilyVariableOption]) -> Dict[str, List[Dict[str, Any]]]:
    """Group options into {variavel_chave: [{id, valor}, ...]} keeping row order."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for o in rows:
        grouped.setdefault(o.variavel_chave, []).append({"id": o.id, "valor": o.valor})
    return grouped
