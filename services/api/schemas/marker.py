"""
Pydantic schemas for schematic markers.
Bounds mirror models.marker so bad geometry is rejected at the edge.
"""
import json
from typing import Any, Optional

from pydantic import BaseModel, Field

from models.marker import DEFAULT_SIZE, KIND_VARIABLE, SIZE_MAX, SIZE_MIN


class MarkerIn(BaseModel):
    """
    One marker as sent by the editor.

    `id` and `numero` may be omitted; the server fills them and
    renumbers the collection to 1..N.
    """
    id: Optional[str] = Field(None, max_length=64)
    x: float = Field(..., ge=0.0, le=100.0, description="Percent of image width")
    y: float = Field(..., ge=0.0, le=100.0, description="Percent of image height")
    width: float = Field(DEFAULT_SIZE, ge=SIZE_MIN, le=SIZE_MAX)
    height: float = Field(DEFAULT_SIZE, ge=SIZE_MIN, le=SIZE_MAX)
    label: str = Field("", max_length=200)
    variavel: str = Field("", max_length=100, description="Technical variable key")
    tipo: str = Field(KIND_VARIABLE, description="variavel | numero | toggle")
    numero: Optional[int] = Field(None, ge=1)


class MarkerOut(BaseModel):
    """Canonical persisted marker."""
    id: str
    x: float
    y: float
    width: float
    height: float
    label: str
    variavel: str
    tipo: str
    numero: int


def unwrap_marker_payload(v: Any) -> Any:
    """
    Accept the legacy shapes clients still send: JSON text, or an object
    wrapping the list under `marcadores` / `markers`.
    """
    if isinstance(v, str):
        if not v.strip():
            return []
        try:
            v = json.loads(v)
        except json.JSONDecodeError:
            raise ValueError("marcadores_vista is not valid JSON")
    if isinstance(v, dict):
        v = v.get("marcadores", v.get("markers", []))
    return v

