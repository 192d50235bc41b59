"""Tests for AlgoService — real clients over an httpx mock transport."""

from __future__ import annotations

import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from algosdk import account

from algo_gateway.chain.models import (
    BroadcastOutcome,
    NodeRole,
    SignedTransactionPayload,
    StoredTransaction,
)
from algo_gateway.engine.service import AlgoService, ProxyRequest
from algo_gateway.engine.transactions import AlgoTransaction
from algo_gateway.engine.wallet import private_key_to_secret
from algo_gateway.errors.chain_errors import KMSError, QueryFailed
from algo_gateway.metrics.collector import GatewayMetrics

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_PARAMS = {
    "consensus-version": "v38",
    "fee": 0,
    "genesis-hash": "SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI=",
    "genesis-id": "testnet-v1.0",
    "last-round": 40_000_000,
    "min-fee": 1000,
}


class _Nodes:
    """Routes mock requests to canned responses keyed by ``(host, path)``."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.url.host, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": f"no route {request.url.path}"})
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _service(app_config, nodes: _Nodes, **kwargs) -> AlgoService:
    return AlgoService(app_config, transport=nodes.transport, **kwargs)


def _fake_kms(signature_id: str = "pending-1"):
    kms = MagicMock()
    kms.store = AsyncMock(return_value=signature_id)
    kms.complete = AsyncMock()
    return kms


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestServiceLifecycle:
    async def test_initialize_without_kms_when_disabled(self, app_config):
        service = _service(app_config, _Nodes({}))
        await service.initialize()
        with pytest.raises(KMSError, match="not configured") as exc_info:
            await service.broadcast_or_store(SignedTransactionPayload("aa", signature_id="s"))
        assert exc_info.value.status_code == 503
        await service.close()

    async def test_initialize_connects_kms(self, app_config):
        app_config.kms.enabled = True
        nodes = _Nodes(
            {("kms.test", "/v3/kms"): httpx.Response(200, json={"signatureId": "pending-9"})}
        )
        service = _service(app_config, nodes)
        await service.initialize()

        result = await service.broadcast_or_store(
            SignedTransactionPayload("aabb", signature_id="sig-1", index=2)
        )

        assert result == StoredTransaction("pending-9")
        assert json.loads(nodes.requests[0].content)["index"] == 2
        await service.close()

    async def test_injected_kms_is_kept(self, app_config):
        kms = _fake_kms()
        app_config.kms.enabled = True
        service = _service(app_config, _Nodes({}), kms=kms)
        await service.initialize()
        await service.broadcast_or_store(SignedTransactionPayload("aabb", signature_id="sig-1"))
        kms.store.assert_awaited_once_with("aabb", "ALGO", ["sig-1"], None)
        await service.close()


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


class TestServiceWallets:
    async def test_generate_wallet_and_address(self, app_config):
        service = _service(app_config, _Nodes({}))
        wallet = await service.generate_wallet()
        assert await service.generate_address(wallet.secret) == wallet.address


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


class TestServiceSend:
    async def test_send_with_private_key_broadcasts(self, app_config):
        nodes = _Nodes(
            {
                ("algod.test", "/v2/transactions/params"): httpx.Response(200, json=_PARAMS),
                ("algod.test", "/v2/transactions"): httpx.Response(200, json={"txId": "TX1"}),
                ("algod.test", "/v2/status"): httpx.Response(200, json={"last-round": 5}),
                ("algod.test", "/v2/transactions/pending/TX1"): httpx.Response(
                    200, json={"confirmed-round": 6, "pool-error": ""}
                ),
            }
        )
        private_key, _ = account.generate_account()
        _, receiver = account.generate_account()
        service = _service(app_config, nodes)

        result = await service.send_transaction(
            AlgoTransaction(
                from_private_key=private_key_to_secret(private_key), to=receiver, amount="1"
            )
        )

        assert isinstance(result, BroadcastOutcome)
        assert result.to_dict() == {"txId": "TX1"}
        submit = next(r for r in nodes.requests if r.method == "POST")
        assert submit.headers["Content-Type"] == "application/x-binary"
        assert submit.content

    async def test_send_with_signature_id_stores(self, app_config):
        nodes = _Nodes(
            {("algod.test", "/v2/transactions/params"): httpx.Response(200, json=_PARAMS)}
        )
        kms = _fake_kms("pending-7")
        _, sender = account.generate_account()
        _, receiver = account.generate_account()
        service = _service(app_config, nodes, kms=kms)

        result = await service.send_transaction(
            AlgoTransaction(
                signature_id="sig-1", from_address=sender, to=receiver, amount="1", index=0
            )
        )

        assert result.to_dict() == {"signatureId": "pending-7"}
        tx_data, chain, hashes, index = kms.store.await_args.args
        assert bytes.fromhex(tx_data)
        assert (chain, hashes, index) == ("ALGO", ["sig-1"], 0)
        assert all(r.method == "GET" for r in nodes.requests)

    async def test_broadcast_reconciles_with_kms(self, app_config):
        nodes = _Nodes(
            {
                ("algod.test", "/v2/transactions"): httpx.Response(200, json={"txId": "TX1"}),
                ("algod.test", "/v2/status"): httpx.Response(200, json={"last-round": 5}),
                ("algod.test", "/v2/transactions/pending/TX1"): httpx.Response(
                    200, json={"confirmed-round": 6}
                ),
            }
        )
        kms = _fake_kms()
        service = _service(app_config, nodes, kms=kms)

        outcome = await service.broadcast("aabb", "sig-1")

        assert outcome.to_dict() == {"txId": "TX1"}
        kms.complete.assert_awaited_once_with("TX1", "sig-1")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestServiceQueries:
    async def test_balance_in_whole_units(self, app_config):
        nodes = _Nodes(
            {
                ("algod.test", "/v2/accounts/ADDR"): httpx.Response(
                    200, json={"address": "ADDR", "amount": 1_500_000}
                )
            }
        )
        assert await _service(app_config, nodes).get_balance("ADDR") == Decimal("1.5")

    async def test_balance_failure(self, app_config):
        service = _service(app_config, _Nodes({}))

        with pytest.raises(QueryFailed) as exc_info:
            await service.get_balance("ADDR")
        assert exc_info.value.message == "Failed Algo get balance"
        assert exc_info.value.code == "algo.error"
        assert exc_info.value.__cause__ is None

    async def test_current_block_honours_network(self, app_config):
        nodes = _Nodes(
            {
                ("algod.test", "/v2/transactions/params"): httpx.Response(200, json=_PARAMS),
                ("algod.main", "/v2/transactions/params"): httpx.Response(
                    200, json={**_PARAMS, "last-round": 50_000_000}
                ),
            }
        )
        service = _service(app_config, nodes)
        assert await service.get_current_block() == 40_000_000
        assert await service.get_current_block(testnet=False) == 50_000_000

    async def test_get_block(self, app_config):
        nodes = _Nodes(
            {
                ("indexer.test", "/v2/blocks/42"): httpx.Response(
                    200,
                    json={
                        "round": 42,
                        "transactions": [{"id": "TX1", "fee": 1000}],
                        "txn-counter": 9,
                    },
                )
            }
        )
        block = await _service(app_config, nodes).get_block(42)
        assert block["round"] == 42
        assert block["txnc"] == 9
        assert block["txns"][0]["fee"] == Decimal("0.001")

    async def test_get_block_failure(self, app_config):
        with pytest.raises(QueryFailed, match="get block by round number"):
            await _service(app_config, _Nodes({})).get_block(42)

    async def test_get_transaction(self, app_config):
        nodes = _Nodes(
            {
                ("indexer.test", "/v2/transactions/TX1"): httpx.Response(
                    200,
                    json={
                        "current-round": 50,
                        "transaction": {
                            "id": "TX1",
                            "fee": 1000,
                            "payment-transaction": {"amount": 2_000_000, "receiver": "R"},
                        },
                    },
                )
            }
        )
        tx = await _service(app_config, nodes).get_transaction("TX1")
        assert tx["id"] == "TX1"
        assert tx["paymentTransaction"]["amount"] == Decimal("2")

    async def test_get_transaction_failure(self, app_config):
        with pytest.raises(QueryFailed, match="get transaction by transaction id"):
            await _service(app_config, _Nodes({})).get_transaction("TX1")

    async def test_pay_transactions_testnet_key(self, app_config):
        nodes = _Nodes(
            {
                ("indexer.test", "/v2/transactions"): httpx.Response(
                    200,
                    json={"next-token": "cursor-2", "transactions": [{"id": "A", "fee": 1000}]},
                )
            }
        )
        page = await _service(app_config, nodes).get_pay_transactions(
            "2024-01-01T00:00:00Z", "2024-01-02T00:00:00Z", limit="5", next_token="cursor-1"
        )

        assert page["nextToken"] == "cursor-2"
        assert [tx["id"] for tx in page["transactions"]] == ["A"]
        request = nodes.requests[0]
        assert request.headers["X-API-Key"] == "test-key"
        assert request.url.params["next"] == "cursor-1"
        assert request.url.params["limit"] == "5"

    async def test_pay_transactions_mainnet_key(self, app_config):
        nodes = _Nodes(
            {("indexer.main", "/v2/transactions"): httpx.Response(200, json={"transactions": []})}
        )
        page = await _service(app_config, nodes).get_pay_transactions("a", "b", testnet=False)

        assert page == {"nextToken": None, "transactions": []}
        assert nodes.requests[0].headers["X-API-Key"] == "main-key"

    async def test_pay_transactions_failure(self, app_config):
        with pytest.raises(QueryFailed, match="get pay transactions"):
            await _service(app_config, _Nodes({})).get_pay_transactions("a", "b")

    async def test_queries_tracked(self, app_config):
        metrics = GatewayMetrics()
        nodes = _Nodes(
            {("algod.test", "/v2/accounts/ADDR"): httpx.Response(200, json={"amount": 0})}
        )
        await _service(app_config, nodes, metrics=metrics).get_balance("ADDR")
        assert (
            metrics.registry.get_sample_value(
                "algo_query_histogram_count", {"operation": "balance"}
            )
            == 1.0
        )


# ---------------------------------------------------------------------------
# Proxy
# ---------------------------------------------------------------------------


class TestServiceNodeMethod:
    async def test_forwards_path_query_and_key(self, app_config):
        nodes = _Nodes(
            {("indexer.test", "/v2/accounts/ABC"): httpx.Response(200, json={"amount": 7})}
        )
        request = ProxyRequest("GET", "/v3/algorand/node/indexer/key-1/v2/accounts/ABC?round=3")

        body = await _service(app_config, nodes).node_method(request, "key-1", NodeRole.INDEXER)

        assert body == {"amount": 7}
        forwarded = nodes.requests[0]
        assert forwarded.url.host == "indexer.test"
        assert forwarded.url.params["round"] == "3"
        assert forwarded.headers["X-API-Key"] == "key-1"

    async def test_forwards_json_body(self, app_config):
        nodes = _Nodes({("algod.test", "/v2/teal/compile"): httpx.Response(200, text="ok")})
        request = ProxyRequest(
            "POST", "/v3/algorand/node/algod/key-1/v2/teal/compile", {"source": "int 1"}
        )

        body = await _service(app_config, nodes).node_method(request, "key-1", NodeRole.ALGOD)

        assert body == "ok"
        assert nodes.requests[0].method == "POST"
        assert json.loads(nodes.requests[0].content) == {"source": "int 1"}

    async def test_forwards_binary_body_unparsed(self, app_config):
        nodes = _Nodes(
            {("algod.test", "/v2/transactions"): httpx.Response(200, json={"txId": "TX1"})}
        )
        request = ProxyRequest(
            "POST",
            "/v3/algorand/node/algod/key-1/v2/transactions",
            b"\x82\xa3sig\xc4",
            "application/x-binary",
        )

        body = await _service(app_config, nodes).node_method(request, "key-1", NodeRole.ALGOD)

        assert body == {"txId": "TX1"}
        forwarded = nodes.requests[0]
        assert forwarded.content == b"\x82\xa3sig\xc4"
        assert forwarded.headers["content-type"] == "application/x-binary"
        assert forwarded.headers["X-API-Key"] == "key-1"

    async def test_upstream_error_propagates(self, app_config):
        request = ProxyRequest("GET", "/v3/algorand/node/algod/key-1/v2/missing")

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await _service(app_config, _Nodes({})).node_method(request, "key-1", NodeRole.ALGOD)
        assert exc_info.value.response.status_code == 404
