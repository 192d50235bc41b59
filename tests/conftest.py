"""Shared test fixtures for the algo-gateway test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from algo_gateway.api.app import create_app
from algo_gateway.config.settings import AppConfig, KMSConfig, NodeConfig, ThirdPartyConfig
from algo_gateway.engine.service import AlgoService

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def node_config() -> NodeConfig:
    """Node endpoints pointing at fake hosts, testnet selected."""
    return NodeConfig(
        testnet=True,
        testnet_algod_urls=["https://algod.test"],
        testnet_indexer_urls=["https://indexer.test"],
        mainnet_algod_urls=["https://algod.main"],
        mainnet_indexer_urls=["https://indexer.main"],
    )


@pytest.fixture
def app_config(node_config: NodeConfig) -> AppConfig:
    """Provide a test AppConfig with safe defaults."""
    return AppConfig(
        debug=True,
        node=node_config,
        third_party=ThirdPartyConfig(testnet_api_key="test-key", mainnet_api_key="main-key"),
        kms=KMSConfig(enabled=False, url="https://kms.test"),
    )


@pytest.fixture
def fake_service() -> MagicMock:
    """AlgoService stand-in; every coroutine method is an AsyncMock."""
    return MagicMock(spec=AlgoService)


@pytest.fixture
def test_client(app_config: AppConfig, fake_service: MagicMock) -> Iterator[TestClient]:
    """TestClient over an app wired to :func:`fake_service`."""
    app = create_app(config=app_config, service=fake_service)
    with TestClient(app) as client:
        yield client
