"""End-to-end tests of the FastAPI application over an in-process transport."""

from __future__ import annotations

import httpx
import pytest

from clientip.app import get_app
from clientip.configs.config import AppConfig
from clientip.configs.system import ClientIPConfig, LoggingConfig, MetricsConfig

BASE_URL = "http://clientip.test"


def _make_config(**client_ip) -> AppConfig:
    return AppConfig(
        client_ip=ClientIPConfig(**client_ip),
        logging=LoggingConfig(json_output=False),
        metrics=MetricsConfig(enabled=False),
    )


def _client(config: AppConfig, peer: tuple[str, int]) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=get_app(config), client=peer)
    return httpx.AsyncClient(transport=transport, base_url=BASE_URL)


class TestClientIPEndpoint:
    @pytest.mark.asyncio
    async def test_direct_peer(self):
        async with _client(_make_config(), ("198.51.100.1", 5000)) as client:
            response = await client.get("/ip")
        assert response.status_code == 200
        assert response.json() == {"ip": "198.51.100.1", "version": 4}

    @pytest.mark.asyncio
    async def test_forwarded_through_trusted_proxy(self):
        config = _make_config(trusted_proxies=["10.0.0.0/8"])
        async with _client(config, ("10.0.0.5", 5000)) as client:
            response = await client.get(
                "/ip", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.9"}
            )
        assert response.json() == {"ip": "203.0.113.7", "version": 4}

    @pytest.mark.asyncio
    async def test_spoofed_header_from_untrusted_peer(self):
        config = _make_config(trusted_proxies=["10.0.0.0/8"])
        async with _client(config, ("198.51.100.1", 5000)) as client:
            response = await client.get("/ip", headers={"X-Forwarded-For": "1.1.1.1"})
        assert response.json()["ip"] == "198.51.100.1"

    @pytest.mark.asyncio
    async def test_trusted_header_takes_precedence(self):
        config = _make_config(trusted_proxies=["10.0.0.0/8"], trusted_header="X-Real-IP")
        async with _client(config, ("10.0.0.5", 5000)) as client:
            response = await client.get(
                "/ip",
                headers={"X-Forwarded-For": "203.0.113.7", "X-Real-IP": "2001:db8::7"},
            )
        assert response.json() == {"ip": "2001:db8::7", "version": 6}

    @pytest.mark.asyncio
    async def test_undetermined_without_reject(self):
        async with _client(_make_config(), ("testclient", 5000)) as client:
            response = await client.get("/ip")
        assert response.status_code == 200
        assert response.json() == {"ip": None, "version": None}

    @pytest.mark.asyncio
    async def test_undetermined_rejected(self):
        config = _make_config(reject_undetected=True, reject_status_code=421)
        async with _client(config, ("testclient", 5000)) as client:
            response = await client.get("/ip")
        assert response.status_code == 421
        assert response.json() == {"detail": "undefined ip", "code": "UNDEFINED_IP"}

    @pytest.mark.asyncio
    async def test_custom_state_key(self):
        config = _make_config(state_key="peer")
        async with _client(config, ("198.51.100.1", 5000)) as client:
            response = await client.get("/ip")
        assert response.json()["ip"] == "198.51.100.1"


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self):
        async with _client(_make_config(), ("198.51.100.1", 5000)) as client:
            response = await client.get("/health")
        assert response.json() == {"status": "ok"}
