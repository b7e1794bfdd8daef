"""
HTTP client for the product sheet API (httpx).

Used by the family editor to load/save families with their marker
collection, and by the admin option screen.
"""
from .errors import ApiError, ApiUnavailableError, SessionExpiredError, ValidationError
from .families import FamilyClient, FamilyForm, FamilyRecord, ImageFile
from .options import OptionCatalog
from .session import ApiSession

__all__ = [
    "ApiError",
    "ApiUnavailableError",
    "SessionExpiredError",
    "ValidationError",
    "ApiSession",
    "FamilyClient",
    "FamilyForm",
    "FamilyRecord",
    "ImageFile",
    "OptionCatalog",
]
