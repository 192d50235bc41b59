"""Node endpoint resolution by role and network."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from algo_gateway.chain.models import NodeRole
from algo_gateway.errors.chain_errors import NodeError

if TYPE_CHECKING:
    from algo_gateway.config.settings import NodeConfig


class EndpointResolver(Protocol):
    """Resolves base URLs for algod / indexer nodes."""

    async def is_testnet(self) -> bool: ...

    async def resolve(self, role: NodeRole, *, testnet: bool) -> list[str]: ...


class ConfiguredEndpointResolver:
    """Endpoint resolver backed by static :class:`NodeConfig` URL lists."""

    def __init__(self, config: NodeConfig) -> None:
        self._config = config

    async def is_testnet(self) -> bool:
        return self._config.testnet

    async def resolve(self, role: NodeRole, *, testnet: bool) -> list[str]:
        """Return the ordered base URLs for *role* on the given network.

        Raises:
            NodeError: If no URL is configured.
        """
        network = "testnet" if testnet else "mainnet"
        urls: list[str] = getattr(self._config, f"{network}_{role.value}_urls")
        if not urls:
            msg = f"no {role.value} node configured for {network}"
            raise NodeError(msg, status_code=500)
        return [url.rstrip("/") for url in urls]
