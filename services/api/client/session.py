# services/api/client/session.py
from __future__ import annotations

import functools
import logging
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from settings import get_settings
from .errors import GENERIC_ERROR, ApiError, ApiUnavailableError, SessionExpiredError

logger = logging.getLogger(__name__)


def _server_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or GENERIC_ERROR
    if isinstance(body, dict):
        msg = body.get("detail") or body.get("error")
        if isinstance(msg, str) and msg:
            return msg
        if msg:
            return str(msg)
    return GENERIC_ERROR


# ========== Retry for idempotent reads ==========
def retry_reads(func):
    """Retry GETs with exponential backoff on transport errors. Writes are never retried."""
    retrying = retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )(func)

    @functools.wraps(func)
    def wrapper(self, method, url, **kwargs):
        if method.upper() == "GET":
            return retrying(self, method, url, **kwargs)
        return func(self, method, url, **kwargs)

    return wrapper


class ApiSession:
    """
    Thin wrapper over httpx.Client: base URL, bearer token and the
    status → exception mapping every caller shares.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        settings = get_settings()
        headers = {"Accept": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=(base_url or settings.api_base_url).rstrip("/"),
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ApiSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @retry_reads
    def _transmit(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        return self.client.request(method, url, **kwargs)

    def send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send without raising on HTTP status (network errors still raise ApiError)."""
        try:
            return self._transmit(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {url} timed out: {e}")
            raise ApiError("Request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ApiError(f"Network error: {e}") from e

    def check(self, response: httpx.Response, *, not_found_unavailable: bool = False) -> httpx.Response:
        status = response.status_code
        if status < 400:
            return response
        if status in (401, 403):
            raise SessionExpiredError(status)
        if status == 404 and not_found_unavailable:
            raise ApiUnavailableError()
        raise ApiError(_server_message(response), status)

    def request(self, method: str, url: str, *, not_found_unavailable: bool = False, **kwargs: Any) -> Any:
        response = self.check(self.send(method, url, **kwargs), not_found_unavailable=not_found_unavailable)
        if not response.content:
            return None
        return response.json()
