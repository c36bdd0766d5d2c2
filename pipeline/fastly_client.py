#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fastly API client

- Thin aiohttp wrapper around the Fastly endpoints the dashboard uses
- One ClientSession per client; use as an async context manager
- Credential is passed in explicitly, never read from the environment here
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from models.schemas import EntrySpec
from pipeline.errors import ConfigurationError
from utils.logger import get_logger

DEFAULT_BASE_URL = "https://api.fastly.com"
MISSING_KEY_MESSAGE = "Fastly API key is not configured"


@dataclass
class FastlyResponse:
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def message(self) -> Optional[str]:
        if isinstance(self.body, dict):
            return self.body.get("msg") or self.body.get("detail")
        return None


def acl_entry_form(entry: EntrySpec, comment: str) -> Dict[str, str]:
    """Form fields for POST /service/{id}/acl/{id}/entry."""
    form = {
        "ip": entry.address,
        "negated": "1" if entry.negated else "0",
        "comment": comment,
    }
    if entry.prefix is not None:
        form["subnet"] = str(entry.prefix)
    return form


class FastlyClient:
    """
    Async client for the Fastly API.

    Network failures surface as aiohttp.ClientError / asyncio.TimeoutError;
    upstream error statuses are returned, not raised.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 15,
        log_level: str = "INFO",
    ):
        if not api_key:
            raise ConfigurationError(MISSING_KEY_MESSAGE)
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.logger = get_logger("fastly.client", log_level, "fastly.log")
        self._headers = {"Fastly-Key": api_key, "Accept": "application/json"}
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "FastlyClient":
        self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self._headers)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("FastlyClient must be used as 'async with FastlyClient(...)'")
        return self._session

    async def _request(self, method: str, path: str, **kwargs: Any) -> FastlyResponse:
        url = f"{self.base_url}{path}"
        self.logger.debug("%s %s", method, url)
        async with self.session.request(method, url, **kwargs) as resp:
            # Proxies in front of Fastly can answer with bodies that are not UTF-8.
            text = await resp.text(errors="replace")
            try:
                body: Any = json.loads(text) if text else None
            except ValueError:
                body = text
            if resp.status >= 400:
                self.logger.warning("%s %s returned HTTP %s", method, path, resp.status)
            return FastlyResponse(status=resp.status, body=body)

    # ---------------- ACL entries ----------------
    async def create_acl_entry(
        self, service_id: str, acl_id: str, entry: EntrySpec, comment: str
    ) -> FastlyResponse:
        return await self._request(
            "POST",
            f"/service/{service_id}/acl/{acl_id}/entry",
            data=acl_entry_form(entry, comment),
        )

    # ---------------- Browsing ----------------
    async def list_services(self) -> FastlyResponse:
        return await self._request("GET", "/service")

    async def list_versions(self, service_id: str) -> FastlyResponse:
        return await self._request("GET", f"/service/{service_id}/version")

    async def list_acls(self, service_id: str, version_id: str) -> FastlyResponse:
        return await self._request("GET", f"/service/{service_id}/version/{version_id}/acl")
