"""Algod HTTP client — submit, pending info, status, accounts, params.

Provides an async HTTP client for the algod v2 REST API:
- POST /v2/transactions — Submit raw signed transaction bytes
- GET /v2/transactions/pending/{txid} — Pending transaction information
- GET /v2/status — Node status (last round)
- GET /v2/status/wait-for-block-after/{round} — Block until a round completes
- GET /v2/accounts/{address} — Account information
- GET /v2/transactions/params — Suggested transaction parameters
"""

from __future__ import annotations

from typing import Any

import httpx

from algo_gateway.chain._http import error_detail, upstream_status
from algo_gateway.chain.models import NodeStatus, PendingTransactionInfo, TransactionParams
from algo_gateway.errors.chain_errors import NodeError, SubmissionFailed

# wait-for-block-after returns within about a minute on every algod release
_WAIT_TIMEOUT = 90.0


class AlgodClient:
    """Async HTTP client for an algod node.

    Usage::

        algod = AlgodClient("https://testnet-api.algonode.cloud")
        await algod.connect()
        try:
            tx_id = await algod.send_raw_transaction(tx_hex)
        finally:
            await algod.close()
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the algod client.

        Args:
            base_url: Node base URL.
            token: Optional ``X-Algo-API-Token`` value.
            timeout: Default request timeout in seconds.
            transport: Optional httpx transport (tests use ``MockTransport``).
        """
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            headers["X-Algo-API-Token"] = self._token

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def send_raw_transaction(self, tx_data: str) -> str:
        """Submit a signed transaction.

        Args:
            tx_data: Hex encoding of the signed msgpack transaction bytes.

        Returns:
            The provisional transaction id reported by the node.

        Raises:
            SubmissionFailed: On malformed data, HTTP or node errors.
        """
        client = self._ensure_connected()

        try:
            raw = bytes.fromhex(tx_data)
        except ValueError as exc:
            msg = f"Transaction data is not valid hex: {exc}"
            raise SubmissionFailed(msg, status_code=400) from exc

        try:
            response = await client.post(
                "/v2/transactions",
                content=raw,
                headers={"Content-Type": "application/x-binary"},
            )
        except httpx.HTTPError as exc:
            raise SubmissionFailed(f"Algod submission failed: {exc}") from exc

        if response.status_code != 200:
            msg = f"Algod submission failed ({response.status_code}): {error_detail(response)}"
            raise SubmissionFailed(msg, status_code=upstream_status(response))
        try:
            return response.json()["txId"]
        except (ValueError, KeyError, TypeError) as exc:
            raise SubmissionFailed("Algod submission response carried no txId") from exc

    async def pending_transaction_information(self, tx_id: str) -> PendingTransactionInfo:
        """Get pending information for a submitted transaction."""
        data = await self._get(
            f"/v2/transactions/pending/{tx_id}", "pending info", params={"format": "json"}
        )
        return PendingTransactionInfo.from_dict(data)

    async def status(self) -> NodeStatus:
        """Get the node's current status."""
        return NodeStatus.from_dict(await self._get("/v2/status", "status"))

    async def status_after_block(self, round_number: int) -> NodeStatus:
        """Block until the node has completed *round_number*."""
        data = await self._get(
            f"/v2/status/wait-for-block-after/{round_number}",
            "status after block",
            timeout=_WAIT_TIMEOUT,
        )
        return NodeStatus.from_dict(data)

    async def account_information(self, address: str) -> dict[str, Any]:
        """Get raw account information (``amount`` is in micro-units)."""
        return await self._get(f"/v2/accounts/{address}", "account information")

    async def transaction_params(self) -> TransactionParams:
        """Get suggested parameters for a new transaction."""
        return TransactionParams.from_dict(
            await self._get("/v2/transactions/params", "transaction params")
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            msg = "Algod client not connected. Call connect() first."
            raise NodeError(msg, status_code=500)
        return self._client

    async def _get(
        self,
        path: str,
        operation: str,
        *,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        client = self._ensure_connected()
        kwargs: dict[str, Any] = {"params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await client.get(path, **kwargs)
        except httpx.HTTPError as exc:
            raise NodeError(f"Algod {operation} failed: {exc}") from exc

        if response.status_code != 200:
            msg = f"Algod {operation} failed ({response.status_code}): {error_detail(response)}"
            raise NodeError(msg, status_code=upstream_status(response))
        return response.json()
