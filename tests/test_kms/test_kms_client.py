"""Tests for the KMS HTTP client — uses httpx mock transport."""

from __future__ import annotations

import json

import httpx
import pytest

from algo_gateway.config.settings import KMSConfig
from algo_gateway.errors.chain_errors import KMSError
from algo_gateway.kms.client import KMSClient

_CONFIG = KMSConfig(url="https://kms.test/", api_key="kms-key")


async def _connected(handler, config: KMSConfig = _CONFIG) -> KMSClient:
    kms = KMSClient(config, transport=httpx.MockTransport(handler))
    await kms.connect()
    return kms


class TestKMSLifecycle:
    async def test_connect_and_close(self):
        kms = KMSClient(_CONFIG)
        assert kms.is_connected is False
        await kms.connect()
        assert kms.is_connected is True
        await kms.close()
        assert kms.is_connected is False

    async def test_not_connected_raises(self):
        with pytest.raises(KMSError, match="not connected") as exc_info:
            await KMSClient(_CONFIG).complete("TX1", "sig-1")
        assert exc_info.value.status_code == 500

    async def test_no_api_key_header_when_unset(self):
        def handler(request: httpx.Request):
            assert "X-API-Key" not in request.headers
            return httpx.Response(204)

        kms = await _connected(handler, KMSConfig(url="https://kms.test"))
        await kms.complete("TX1", "sig-1")
        await kms.close()


class TestKMSStore:
    async def test_store_request(self):
        def handler(request: httpx.Request):
            assert request.method == "POST"
            assert request.url.host == "kms.test"
            assert request.url.path == "/v3/kms"
            assert request.headers["X-API-Key"] == "kms-key"
            assert json.loads(request.content) == {
                "chain": "ALGO",
                "serializedTransaction": "aabb",
                "hashes": ["sig-1"],
                "index": 4,
            }
            return httpx.Response(200, json={"signatureId": "pending-1"})

        kms = await _connected(handler)
        assert await kms.store("aabb", "ALGO", ["sig-1"], 4) == "pending-1"
        await kms.close()

    async def test_store_without_index(self):
        def handler(request: httpx.Request):
            assert "index" not in json.loads(request.content)
            return httpx.Response(201, json={"signatureId": "pending-2"})

        kms = await _connected(handler)
        assert await kms.store("aabb", "ALGO", ["sig-1"]) == "pending-2"
        await kms.close()

    async def test_store_error(self):
        kms = await _connected(lambda request: httpx.Response(403, text="forbidden"))

        with pytest.raises(KMSError, match="forbidden") as exc_info:
            await kms.store("aabb", "ALGO", ["sig-1"])
        assert exc_info.value.code == "kms-error"
        await kms.close()

    async def test_store_network_error(self):
        def handler(request: httpx.Request):
            raise httpx.ConnectError("refused")

        kms = await _connected(handler)
        with pytest.raises(KMSError, match="refused"):
            await kms.store("aabb", "ALGO", ["sig-1"])
        await kms.close()


class TestKMSComplete:
    async def test_complete_request(self):
        def handler(request: httpx.Request):
            assert request.method == "PUT"
            assert request.url.path == "/v3/kms/sig-1/TX1"
            return httpx.Response(204)

        kms = await _connected(handler)
        await kms.complete("TX1", "sig-1")
        await kms.close()

    async def test_complete_error(self):
        kms = await _connected(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(KMSError, match="KMS complete failed"):
            await kms.complete("TX1", "sig-1")
        await kms.close()
