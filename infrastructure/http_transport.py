"""HTTP transport for a remote settings backend using requests."""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger
import requests

from core.errors import BackendError

DEFAULT_BACKEND_URL = "http://127.0.0.1:8765/settings"


class HttpTransport:
    """POST each operation as JSON to ``<base_url>/<operation>``.

    The backend replies ``{"result": ...}`` on success or ``{"error": "..."}``.
    ``timeout`` defaults to None: calls wait on the backend indefinitely unless
    the caller sets one.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _post(self, operation: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}/{operation}"
        try:
            r = self._session.post(url, json=payload, timeout=self.timeout)
            r.raise_for_status()
            body = r.json()
        except (requests.RequestException, ValueError) as ex:
            raise BackendError(operation, str(ex)) from ex
        if not isinstance(body, dict):
            raise BackendError(operation, f"unexpected response body: {body!r}")
        if body.get("error"):
            raise BackendError(operation, str(body["error"]))
        return body.get("result")

    async def request(self, operation: str, payload: dict[str, Any]) -> Any:
        """Send `operation` and return the decoded ``result`` field."""
        logger.debug("POST {}/{}", self.base_url, operation)
        return await asyncio.to_thread(self._post, operation, payload)

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._session.close()
