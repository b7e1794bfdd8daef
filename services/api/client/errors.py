# services/api/client/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional

GENERIC_ERROR = "Error while saving."
SESSION_EXPIRED = "Session expired. Please log in again."
API_UNAVAILABLE = (
    "The families API is not available. Changes are kept only for this "
    "session (local mode)."
)


class ApiError(Exception):
    """Request failed; `message` is the server's text or a generic one."""

    def __init__(self, message: str = GENERIC_ERROR, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(ApiError):
    """401/403: the user must log in again. Never retried."""

    def __init__(self, status_code: int = 401):
        super().__init__(SESSION_EXPIRED, status_code)


class ApiUnavailableError(ApiError):
    """
    404 on the family endpoints: the backend does not have them.

    `local_record` is the user's edit as a local-only family, so the
    caller can keep it for the rest of the session.
    """

    def __init__(self, local_record: Optional[Dict[str, Any]] = None):
        super().__init__(API_UNAVAILABLE, 404)
        self.local_record = local_record


class ValidationError(ApiError):
    """Rejected before any request was sent."""

    def __init__(self, message: str):
        super().__init__(message, None)
