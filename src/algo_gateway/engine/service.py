"""AlgoService — the gateway's service interface.

Composes endpoint resolution, the algod / indexer clients, the KMS delegate
and the :class:`BroadcastEngine` into the operations exposed over HTTP:
wallet generation, send/broadcast, balance and block/transaction queries,
and raw node proxying.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from algo_gateway.chain.algod.client import AlgodClient
from algo_gateway.chain.indexer.client import IndexerClient
from algo_gateway.chain.models import (
    NodeRole,
    SignedTransactionPayload,
    StoredTransaction,
)
from algo_gateway.chain.normalizer import map_block, map_transaction, micro_to_whole
from algo_gateway.chain.resolver import ConfiguredEndpointResolver
from algo_gateway.engine import wallet
from algo_gateway.engine.broadcast import BroadcastEngine
from algo_gateway.engine.transactions import prepare_signed_transaction
from algo_gateway.errors.chain_errors import KMSError, QueryFailed

if TYPE_CHECKING:
    from decimal import Decimal

    from algo_gateway.chain.models import BroadcastOutcome
    from algo_gateway.chain.resolver import EndpointResolver
    from algo_gateway.config.settings import AppConfig
    from algo_gateway.engine.transactions import AlgoTransaction
    from algo_gateway.kms.client import KeyManagementDelegate, KMSClient
    from algo_gateway.metrics.collector import GatewayMetrics

logger = logging.getLogger(__name__)

# Currency tag sent to the KMS for deferred transactions
CURRENCY = "ALGO"


@dataclass
class ProxyRequest:
    """The parts of an inbound request forwarded to a node."""

    method: str
    url: str
    body: Any = field(default=None)
    content_type: str | None = None


class AlgoService:
    """Algorand gateway operations.

    Usage::

        service = AlgoService(config)
        await service.initialize()
        try:
            outcome = await service.broadcast(tx_hex)
        finally:
            await service.close()
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        resolver: EndpointResolver | None = None,
        kms: KeyManagementDelegate | None = None,
        metrics: GatewayMetrics | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            config: Application configuration.
            resolver: Endpoint resolver; defaults to the configured node URLs.
            kms: KMS delegate; when omitted one is built from ``config.kms``
                by :meth:`initialize`.
            metrics: Optional metrics sink.
            transport: httpx transport shared by every outbound client.
        """
        self._config = config
        self._resolver = resolver or ConfiguredEndpointResolver(config.node)
        self._kms = kms
        self._owned_kms: KMSClient | None = None
        self._metrics = metrics
        self._transport = transport
        self._broadcaster = self._build_broadcaster()

    async def initialize(self) -> None:
        """Connect the KMS client when deferred signing is enabled."""
        if self._kms is not None or not self._config.kms.enabled:
            return
        from algo_gateway.kms.client import KMSClient

        self._owned_kms = KMSClient(self._config.kms, transport=self._transport)
        await self._owned_kms.connect()
        self._kms = self._owned_kms
        self._broadcaster = self._build_broadcaster()
        logger.info("KMS client connected to %s", self._config.kms.url)

    async def close(self) -> None:
        """Close the KMS client if this service created it."""
        if self._owned_kms is not None:
            await self._owned_kms.close()
            self._owned_kms = None
            self._kms = None

    @property
    def broadcaster(self) -> BroadcastEngine:
        return self._broadcaster

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def generate_wallet(self, mnem: str | None = None) -> wallet.Wallet:
        return wallet.generate_wallet(mnem)

    async def generate_address(self, secret: str) -> str:
        return wallet.generate_address(secret)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_transaction(self, tx: AlgoTransaction) -> BroadcastOutcome | StoredTransaction:
        """Build and sign *tx*, then broadcast it or queue it in the KMS."""
        async with self._algod() as algod:
            tx_data = await prepare_signed_transaction(algod, tx)
        return await self.broadcast_or_store(
            SignedTransactionPayload(tx_data, signature_id=tx.signature_id, index=tx.index)
        )

    async def broadcast_or_store(
        self, payload: SignedTransactionPayload
    ) -> BroadcastOutcome | StoredTransaction:
        """Queue *payload* for KMS signing when it has a signature id, else broadcast it."""
        if payload.signature_id:
            kms = self._require_kms()
            signature_id = await kms.store(
                payload.transaction_data, CURRENCY, [payload.signature_id], payload.index
            )
            return StoredTransaction(signature_id)
        return await self.broadcast(payload.transaction_data)

    async def broadcast(self, tx_data: str, signature_id: str | None = None) -> BroadcastOutcome:
        """Submit a signed transaction and wait for confirmation."""
        return await self._broadcaster.broadcast(tx_data, signature_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_balance(self, address: str) -> Decimal:
        """Account balance in whole ALGO."""
        async with self._query("balance", "Failed Algo get balance"):
            async with self._algod() as algod:
                info = await algod.account_information(address)
            return micro_to_whole(info.get("amount", 0))

    async def get_current_block(self, testnet: bool | None = None) -> int:
        """Latest round, as reported by the suggested transaction params."""
        async with self._query("current_block", "Failed Algo get current block"):
            async with self._algod(testnet) as algod:
                params = await algod.transaction_params()
            return params.last_round

    async def get_block(self, round_number: int) -> dict[str, Any]:
        async with self._query("block", "Failed Algo get block by round number"):
            async with self._indexer() as indexer:
                block = await indexer.lookup_block(round_number)
            return map_block(block)

    async def get_transaction(self, tx_id: str) -> dict[str, Any]:
        async with self._query("transaction", "Failed Algo get transaction by transaction id"):
            async with self._indexer() as indexer:
                wrapper = await indexer.lookup_transaction_by_id(tx_id)
            return map_transaction(wrapper["transaction"])

    async def get_pay_transactions(
        self,
        from_time: str,
        to_time: str,
        limit: str | None = None,
        next_token: str | None = None,
        testnet: bool | None = None,
    ) -> dict[str, Any]:
        """Payment transactions between *from_time* and *to_time*, one page."""
        async with self._query(
            "pay_transactions", "Failed Algo get pay transactions by from and to"
        ):
            if testnet is None:
                testnet = await self._resolver.is_testnet()
            api_key = self._config.third_party.api_key(testnet=testnet)
            async with self._indexer(testnet) as indexer:
                res = await indexer.search_pay_transactions(
                    from_time, to_time, limit=limit, next_token=next_token, api_key=api_key
                )
            return {
                "nextToken": res.get("next-token"),
                "transactions": [map_transaction(tx) for tx in res.get("transactions", [])],
            }

    # ------------------------------------------------------------------
    # Proxy
    # ------------------------------------------------------------------

    async def node_method(self, request: ProxyRequest, key: str, role: NodeRole) -> Any:
        """Forward *request* to a *role* node, returning its body verbatim.

        The path after ``/{key}/`` is appended to the node's base URL and
        *key* is sent as the ``X-API-Key`` credential.
        """
        try:
            testnet = await self._resolver.is_testnet()
            base_url = (await self._resolver.resolve(role, testnet=testnet))[0]
            _, _, path = request.url.partition(f"/{key}/")
            headers = {"content-type": "application/json", "X-API-Key": key}
            kwargs: dict[str, Any] = {}
            if isinstance(request.body, bytes):
                # Non-JSON bodies (msgpack, TEAL source) go through unparsed
                kwargs["content"] = request.body
                if request.content_type:
                    headers["content-type"] = request.content_type
            elif request.body:
                kwargs["json"] = request.body

            async with httpx.AsyncClient(
                base_url=base_url,
                headers=headers,
                timeout=self._config.node.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(request.method or "GET", path, **kwargs)
                response.raise_for_status()
        except Exception:
            logger.exception("Proxying %s %s to %s node failed", request.method, request.url, role)
            raise

        try:
            return response.json()
        except ValueError:
            return response.text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_broadcaster(self) -> BroadcastEngine:
        return BroadcastEngine(
            self._resolver,
            self._kms,
            algod_factory=self._algod_client,
            metrics=self._metrics,
        )

    def _algod_client(self, base_url: str) -> AlgodClient:
        return AlgodClient(
            base_url,
            token=self._config.node.api_token,
            timeout=self._config.node.timeout,
            transport=self._transport,
        )

    @asynccontextmanager
    async def _algod(self, testnet: bool | None = None) -> AsyncIterator[AlgodClient]:
        if testnet is None:
            testnet = await self._resolver.is_testnet()
        base_url = (await self._resolver.resolve(NodeRole.ALGOD, testnet=testnet))[0]
        client = self._algod_client(base_url)
        await client.connect()
        try:
            yield client
        finally:
            await client.close()

    @asynccontextmanager
    async def _indexer(self, testnet: bool | None = None) -> AsyncIterator[IndexerClient]:
        if testnet is None:
            testnet = await self._resolver.is_testnet()
        base_url = (await self._resolver.resolve(NodeRole.INDEXER, testnet=testnet))[0]
        client = IndexerClient(
            base_url,
            token=self._config.node.api_token,
            timeout=self._config.node.timeout,
            transport=self._transport,
        )
        await client.connect()
        try:
            yield client
        finally:
            await client.close()

    @asynccontextmanager
    async def _query(self, operation: str, failure: str) -> AsyncIterator[None]:
        """Time a read and turn any failure into :class:`QueryFailed`."""
        tracker = self._metrics.track_query(operation) if self._metrics else nullcontext()
        try:
            with tracker:
                yield
        except Exception:
            logger.exception(failure)
            raise QueryFailed(failure) from None

    def _require_kms(self) -> KeyManagementDelegate:
        if self._kms is None:
            msg = "KMS is not configured"
            raise KMSError(msg, status_code=503)
        return self._kms
