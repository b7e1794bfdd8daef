"""
Pydantic schemas for product families.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .marker import MarkerIn, MarkerOut, unwrap_marker_payload


class FamilyCreate(BaseModel):
    nome: str = Field(..., max_length=200, description="Family name")
    ordem: int = Field(0, ge=0, description="Display order")
    marcadores_vista: Optional[List[MarkerIn]] = Field(
        None,
        description="Markers over the schematic (list, JSON text or wrapper object)",
    )

    @field_validator("marcadores_vista", mode="before")
    @classmethod
    def unwrap_markers(cls, v):
        return unwrap_marker_payload(v)


class FamilyUpdate(BaseModel):
    """Partial update; omitted fields are untouched."""
    nome: Optional[str] = Field(None, max_length=200)
    ordem: Optional[int] = Field(None, ge=0)
    marcadores_vista: Optional[List[MarkerIn]] = None

    @field_validator("marcadores_vista", mode="before")
    @classmethod
    def unwrap_markers(cls, v):
        return unwrap_marker_payload(v)


class FamilyOut(BaseModel):
    id: int
    nome: str
    ordem: int = 0
    ativo: bool = True
    foto: Optional[str] = None
    esquematico: Optional[str] = None
    foto_url: Optional[str] = None
    esquematico_url: Optional[str] = None
    marcadores_vista: List[MarkerOut] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ImageDataUrl(BaseModel):
    """Body of the -base64 upload endpoints."""
    data_url: str = Field(..., min_length=16, description="data:<mime>;base64,<payload>")
