"""Scan proxy: attaches the API key and forwards requests to VirusTotal."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx
from aiohttp import web

logger = logging.getLogger(__name__)


def _error(message: str, status: int) -> web.Response:
    return web.json_response(
        {"error": {"message": message}},
        status=status,
        headers={"Access-Control-Allow-Origin": "*"},
    )


class ScanProxyServer:
    """
    Thin HTTP proxy in front of the scanning provider.

    Clients never see the API key; the proxy adds it and relays the
    provider's JSON body and status code unchanged.
    """

    user_agent: str = "linkscan-proxy/0.1"

    def __init__(
        self,
        host: str,
        port: int,
        api_key: str,
        provider_base_url: str = "https://www.virustotal.com/api/v3",
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.api_key = api_key
        self.provider_base_url = provider_base_url.rstrip("/")
        self.timeout = timeout
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

        self._app = web.Application()
        self._app.router.add_post("/api/scan-url", self._handle_scan_url)
        self._app.router.add_route("*", "/api/scan-url", self._handle_method_not_allowed)
        self._app.router.add_get("/api/analyses/{analysis_id}", self._handle_analysis)
        self._app.router.add_route("*", "/api/analyses/{analysis_id}", self._handle_method_not_allowed)
        self._app.router.add_get("/healthz", self._handle_health)

    async def start(self):
        """Start the proxy server."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("Scan proxy listening on %s:%s", self.host, self.port)

    async def stop(self):
        """Stop the proxy server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None

    def _headers(self) -> dict[str, str]:
        return {
            "x-apikey": self.api_key,
            "accept": "application/json",
            "User-Agent": self.user_agent,
        }

    async def _forward(
        self,
        method: str,
        path: str,
        data: Optional[dict[str, Any]] = None,
    ) -> web.Response:
        """Send one request upstream and relay the JSON answer."""
        if not self.api_key:
            return _error("Scanning provider is not configured", 500)

        url = f"{self.provider_base_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                if method == "POST":
                    resp = await client.post(url, data=data, headers=self._headers())
                else:
                    resp = await client.get(url, headers=self._headers())
        except httpx.TimeoutException:
            logger.warning("Upstream request timed out: %s %s", method, url)
            return _error("Scanning provider timed out", 500)
        except httpx.HTTPError as exc:
            logger.warning("Upstream request failed: %s %s: %s", method, url, exc)
            return _error(str(exc) or "Upstream request failed", 500)

        try:
            body = resp.json()
        except ValueError:
            logger.warning("Upstream returned non-JSON body (%s) for %s", resp.status_code, url)
            return _error("Scanning provider returned an invalid response", 502)

        if resp.status_code >= 400:
            logger.info("Upstream %s %s answered %s", method, url, resp.status_code)
        return web.json_response(
            body,
            status=resp.status_code,
            headers={"Access-Control-Allow-Origin": "*"},
        )

    async def _handle_scan_url(self, request: web.Request) -> web.Response:
        try:
            payload = await request.json()
        except ValueError:
            payload = None

        url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(url, str) or not url.strip():
            return _error("No URL provided", 400)

        return await self._forward("POST", "urls", data={"url": url.strip()})

    async def _handle_analysis(self, request: web.Request) -> web.Response:
        analysis_id = request.match_info["analysis_id"]
        return await self._forward("GET", f"analyses/{quote(analysis_id, safe='')}")

    async def _handle_method_not_allowed(self, request: web.Request) -> web.Response:  # noqa: ARG002
        return _error("Method not allowed", 405)

    async def _handle_health(self, request: web.Request) -> web.Response:  # noqa: ARG002
        return web.json_response(
            {"status": "ok", "configured": bool(self.api_key)},
            headers={"Access-Control-Allow-Origin": "*"},
        )
