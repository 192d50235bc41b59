"""KMS HTTP client — store pending transactions, complete signed ones.

Async HTTP client for the key-management REST API:
- POST /v3/kms — Queue an unsigned transaction for remote signing
- PUT /v3/kms/{signatureId}/{txId} — Mark a queued transaction as broadcast
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx

from algo_gateway.errors.chain_errors import KMSError

if TYPE_CHECKING:
    from algo_gateway.config.settings import KMSConfig


class KeyManagementDelegate(Protocol):
    """Deferred signing collaborator."""

    async def store(
        self,
        tx_data: str,
        chain: str,
        signature_ids: list[str],
        index: int | None = None,
    ) -> str: ...

    async def complete(self, tx_id: str, signature_id: str) -> None: ...


class KMSClient:
    """Async HTTP client for the key-management subsystem.

    Usage::

        kms = KMSClient(config.kms)
        await kms.connect()
        try:
            signature_id = await kms.store(tx_hex, "ALGO", ["sig-1"])
        finally:
            await kms.close()
    """

    def __init__(
        self, config: KMSConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["X-API-Key"] = self._config.api_key

        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers=headers,
            timeout=self._config.timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def store(
        self,
        tx_data: str,
        chain: str,
        signature_ids: list[str],
        index: int | None = None,
    ) -> str:
        """Queue a serialized transaction for signing.

        Args:
            tx_data: Serialized unsigned transaction.
            chain: Currency tag of the chain (``ALGO``).
            signature_ids: Signature identifiers of the signing keys.
            index: Key index within a KMS-managed wallet.

        Returns:
            The signature id the KMS assigned to the pending transaction.

        Raises:
            KMSError: On HTTP or API errors.
        """
        client = self._ensure_connected()

        body: dict[str, object] = {
            "chain": chain,
            "serializedTransaction": tx_data,
            "hashes": signature_ids,
        }
        if index is not None:
            body["index"] = index

        try:
            response = await client.post("/v3/kms", json=body)
        except httpx.HTTPError as exc:
            raise KMSError(f"KMS store failed: {exc}") from exc

        if response.status_code not in (200, 201):
            raise KMSError(f"KMS store failed ({response.status_code}): {response.text}")
        return response.json()["signatureId"]

    async def complete(self, tx_id: str, signature_id: str) -> None:
        """Tell the KMS that *signature_id* was broadcast as *tx_id*.

        Raises:
            KMSError: On HTTP or API errors.
        """
        client = self._ensure_connected()

        try:
            response = await client.put(f"/v3/kms/{signature_id}/{tx_id}")
        except httpx.HTTPError as exc:
            raise KMSError(f"KMS complete failed: {exc}") from exc

        if response.status_code not in (200, 204):
            raise KMSError(f"KMS complete failed ({response.status_code}): {response.text}")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "KMS client not connected. Call connect() first."
            raise KMSError(msg, status_code=500)
        return self._client
