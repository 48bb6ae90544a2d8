"""JSON-over-HTTP client for the scan proxy."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from .errors import TransportError

logger = logging.getLogger(__name__)


def _error_message(body: Any) -> Optional[str]:
    """Extract a provider error message from an error body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        return str(message) if message else None
    if isinstance(error, str) and error.strip():
        return error.strip()
    return None


class ProxyTransport:
    """
    Sends JSON requests to the scan proxy.

    Relative paths are joined to ``base_url``; absolute URLs are used as-is so
    the status endpoint can point straight at the provider if needed.
    All failures are raised as TransportError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: Optional[dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Accept": "application/json"}
        if headers:
            self.headers.update(headers)

    def build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def post_json(self, path: str, payload: dict) -> dict:
        return await self._request("POST", path, payload)

    async def get_json(self, path: str) -> dict:
        return await self._request("GET", path)

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        url = self.build_url(path)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        logger.debug(f"{method} {url}")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method,
                    url,
                    json=payload,
                    headers=self.headers,
                    timeout=timeout,
                ) as resp:
                    raw = await resp.read()
                    status = resp.status
                    reason = resp.reason
        except asyncio.TimeoutError as exc:
            logger.warning(f"Request to {url} timed out")
            raise TransportError(f"Request to {url} timed out") from exc
        except aiohttp.ClientError as exc:
            logger.warning(f"Request to {url} failed: {exc}")
            raise TransportError(str(exc) or "Request failed!") from exc

        # Gateway error pages are not always UTF-8
        text = raw.decode("utf-8", errors="replace")
        try:
            body = json.loads(text) if text else None
        except ValueError:
            body = None

        if not 200 <= status < 300:
            message = _error_message(body) or reason or "Request failed!"
            logger.warning(f"{method} {url} returned {status}: {message}")
            raise TransportError(message, status_code=status)

        if not isinstance(body, dict):
            raise TransportError("Invalid JSON response", status_code=status)

        return body
