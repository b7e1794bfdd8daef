from __future__ import annotations

from typing import Optional
from pydantic import BaseModel


class Family(BaseModel):
    """
    Domain model for a row of the `familias` table.

    `marcadores_vista` is kept as the raw stored JSON text; use
    `models.marker.MarkerCollection.from_raw` to work with it.
    """
    id: int
    nome: str
    ordem: int = 0
    ativo: bool = True

    foto: Optional[str] = None
    esquematico: Optional[str] = None
    marcadores_vista: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class FamilyVariableOption(BaseModel):
    """
    Admin-curated allowed value for one (family, variable key) pair.
    """
    id: int
    familia_id: int
    variavel_chave: str
    valor: str
    created_at: Optional[str] = None
