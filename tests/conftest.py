import asyncio
from typing import Dict, List, Optional, Set

import aiohttp
import pytest

from pipeline.fastly_client import FastlyResponse
from utils.config_loader import UploaderSettings


class FakeFastlyClient:
    """Stands in for FastlyClient; records calls instead of touching the network."""

    def __init__(
        self,
        api_key=None,
        base_url: str = "https://api.fastly.com",
        timeout: int = 15,
        log_level: str = "INFO",
        *,
        fail_addresses: Optional[Set[str]] = None,
        reject_addresses: Optional[Dict[str, int]] = None,
        read_responses: Optional[Dict[str, FastlyResponse]] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.fail_addresses = fail_addresses or set()
        self.reject_addresses = reject_addresses or {}
        self.read_responses = read_responses or {}
        self.calls: List[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.entered = False
        self.closed = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def create_acl_entry(self, service_id, acl_id, entry, comment):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so every submission in a batch starts before any finishes.
            await asyncio.sleep(0)
            self.calls.append(
                {"service_id": service_id, "acl_id": acl_id, "entry": entry, "comment": comment}
            )
            if entry.address in self.fail_addresses:
                raise aiohttp.ClientConnectionError("connection reset by peer")
            if entry.address in self.reject_addresses:
                return FastlyResponse(
                    status=self.reject_addresses[entry.address],
                    body={"msg": "Duplicate record", "detail": "Entry already exists"},
                )
            return FastlyResponse(status=200, body={"id": f"entry-{len(self.calls)}", "ip": entry.address})
        finally:
            self.in_flight -= 1

    async def _read(self, key):
        return self.read_responses.get(key, FastlyResponse(status=200, body=[]))

    async def list_services(self):
        return await self._read("services")

    async def list_versions(self, service_id):
        return await self._read(f"versions:{service_id}")

    async def list_acls(self, service_id, version_id):
        return await self._read(f"acls:{service_id}:{version_id}")


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_client_cls():
    return FakeFastlyClient


@pytest.fixture
def fake_client():
    return FakeFastlyClient(api_key="test-key")


@pytest.fixture
def client_factory():
    """Factory usable wherever FastlyClient is; remembers every client it builds."""

    class Factory:
        def __init__(self):
            self.created: List[FakeFastlyClient] = []
            self.options: dict = {}

        def __call__(self, api_key, **kwargs):
            client = FakeFastlyClient(api_key, **kwargs, **self.options)
            self.created.append(client)
            return client

    return Factory()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def settings():
    return UploaderSettings(api_key="test-key", batch_pause_seconds=1.0, log_level="ERROR")


@pytest.fixture
def ip_lines():
    def build(count: int) -> str:
        return "\n".join(f"10.0.{i // 256}.{i % 256}" for i in range(count)) + "\n"

    return build
