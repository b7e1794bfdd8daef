"""
Pydantic schemas for the per-family option catalog.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class OptionCreate(BaseModel):
    valor: str = Field(..., max_length=200, description="Allowed value, e.g. '50 HP'")


class OptionOut(BaseModel):
    id: int
    valor: str


class ConfigurationCheckRequest(BaseModel):
    """Salesperson's pick per variable key."""
    selecoes: Dict[str, Optional[str]] = Field(default_factory=dict)


class MarkerCheck(BaseModel):
    numero: int
    label: str
    variavel: str
    valor: Optional[str] = None
    status: str = Field(..., description="existente | nao_existente | pendente")


class ConfigurationCheckOut(BaseModel):
    familia_id: int
    existente: bool
    marcadores: List[MarkerCheck]
