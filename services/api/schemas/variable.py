"""
Pydantic schemas for the technical variable registry.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def _split_options(v):
    # textarea input: one option per line
    if v is None:
        return []
    if isinstance(v, str):
        return [s.strip() for s in v.splitlines() if s.strip()]
    return [str(s).strip() for s in v if str(s).strip()]


class VariableCreate(BaseModel):
    """
    Create a technical variable.

    `chave` may be blank: the server derives it from `nome`.
    """
    nome: str = Field(..., max_length=200, description="Display name")
    chave: Optional[str] = Field(None, max_length=100, description="Stable key")
    categoria: Optional[str] = Field(None, max_length=100)
    tipo: str = Field("texto", description="texto | numero | lista")
    opcoes: List[str] = Field(default_factory=list, description="Fixed options for tipo=lista")
    ordem: int = Field(0, ge=0)

    @field_validator("opcoes", mode="before")
    @classmethod
    def split_options(cls, v):
        return _split_options(v)


class VariableUpdate(BaseModel):
    """Partial update. `chave`, if sent, must equal the stored key."""
    nome: Optional[str] = Field(None, max_length=200)
    chave: Optional[str] = Field(None, max_length=100)
    categoria: Optional[str] = Field(None, max_length=100)
    tipo: Optional[str] = None
    opcoes: Optional[List[str]] = None
    ordem: Optional[int] = Field(None, ge=0)

    @field_validator("opcoes", mode="before")
    @classmethod
    def split_options(cls, v):
        if v is None:
            return None
        return _split_options(v)


class VariableOut(BaseModel):
    id: int
    chave: str
    nome: str
    categoria: Optional[str] = None
    tipo: str
    opcoes: List[str] = Field(default_factory=list)
    ordem: int = 0
    ativo: bool = True
