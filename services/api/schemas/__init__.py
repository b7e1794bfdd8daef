"""
Pydantic schemas for API request/response validation.
"""
from .family import FamilyCreate, FamilyOut, FamilyUpdate, ImageDataUrl
from .marker import MarkerIn, MarkerOut
from .option import (
    ConfigurationCheckOut,
    ConfigurationCheckRequest,
    MarkerCheck,
    OptionCreate,
    OptionOut,
)
from .variable import VariableCreate, VariableOut, VariableUpdate


# Re-export all
__all__ = [
    "FamilyCreate",
    "FamilyOut",
    "FamilyUpdate",
    "ImageDataUrl",
    "MarkerIn",
    "MarkerOut",
    "OptionCreate",
    "OptionOut",
    "ConfigurationCheckRequest",
    "ConfigurationCheckOut",
    "MarkerCheck",
    "VariableCreate",
    "VariableOut",
    "VariableUpdate",
]
