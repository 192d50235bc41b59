"""Indexer HTTP client — block, transaction and payment search lookups.

Async HTTP client for the Algorand indexer v2 REST API:
- GET /v2/blocks/{round}
- GET /v2/transactions/{txid}
- GET /v2/transactions?tx-type=pay&after-time=..&before-time=..
"""

from __future__ import annotations

from typing import Any

import httpx

from algo_gateway.chain._http import error_detail, upstream_status
from algo_gateway.errors.chain_errors import NodeError


class IndexerClient:
    """Async HTTP client for an Algorand indexer.

    Usage::

        indexer = IndexerClient("https://testnet-idx.algonode.cloud")
        await indexer.connect()
        try:
            block = await indexer.lookup_block(1000)
        finally:
            await indexer.close()
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._token:
            headers["X-Indexer-API-Token"] = self._token

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

    async def lookup_block(self, round_number: int) -> dict[str, Any]:
        """Get a raw block by round number."""
        return await self._get(f"/v2/blocks/{round_number}", "block lookup")

    async def lookup_transaction_by_id(self, tx_id: str) -> dict[str, Any]:
        """Get the raw transaction wrapper (``{"transaction": ...}``) by id."""
        return await self._get(f"/v2/transactions/{tx_id}", "transaction lookup")

    async def search_pay_transactions(
        self,
        after_time: str,
        before_time: str,
        *,
        limit: str | int | None = None,
        next_token: str | None = None,
        api_key: str = "",
    ) -> dict[str, Any]:
        """Search payment transactions inside a time window.

        Args:
            after_time: RFC 3339 lower bound.
            before_time: RFC 3339 upper bound.
            limit: Page size.
            next_token: Pagination cursor from a previous page's ``next-token``.
            api_key: Third-party ``X-API-Key`` for the current network.

        Returns:
            Raw indexer response with ``transactions`` and ``next-token``.
        """
        params: dict[str, Any] = {
            "tx-type": "pay",
            "after-time": after_time,
            "before-time": before_time,
        }
        if limit:
            params["limit"] = limit
        if next_token:
            params["next"] = next_token
        headers = {"X-API-Key": api_key} if api_key else None
        return await self._get(
            "/v2/transactions", "payment search", params=params, headers=headers
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "Indexer client not connected. Call connect() first."
            raise NodeError(msg, status_code=500)
        return self._client

    async def _get(
        self,
        path: str,
        operation: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        client = self._ensure_connected()

        try:
            response = await client.get(path, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise NodeError(f"Indexer {operation} failed: {exc}") from exc

        if response.status_code != 200:
            msg = f"Indexer {operation} failed ({response.status_code}): {error_detail(response)}"
            raise NodeError(msg, status_code=upstream_status(response))
        return response.json()
