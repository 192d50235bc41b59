"""API request/response Pydantic schemas.

These define the HTTP contract only; routes map between them and the
service's domain types.
"""

from __future__ import annotations

from decimal import Decimal  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error body ``{"code": "...", "message": "..."}``."""

    code: str
    message: str


# ---------------------------------------------------------------------------
# Wallets
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    """GET /v3/algorand/wallet."""

    address: str
    secret: str
    mnemonic: str


class PrivateKeyRequest(BaseModel):
    """POST /v3/algorand/wallet/priv."""

    secret: str = Field(..., min_length=1)


class AddressResponse(BaseModel):
    address: str


# ---------------------------------------------------------------------------
# Broadcast
# ---------------------------------------------------------------------------


class BroadcastRequest(BaseModel):
    """POST /v3/algorand/broadcast — an already signed transaction."""

    tx_data: str = Field(..., alias="txData", min_length=1)
    signature_id: str | None = Field(None, alias="signatureId")

    model_config = {"populate_by_name": True}


class TransactionHashResponse(BaseModel):
    """Broadcast result. ``failed`` is set when KMS completion failed after confirmation."""

    tx_id: str = Field(alias="txId")
    failed: bool | None = None

    model_config = {"populate_by_name": True}


class SignatureIdResponse(BaseModel):
    signature_id: str = Field(alias="signatureId")

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Balance in whole ALGO."""

    balance: Decimal = Field(
        description="Whole ALGO as a decimal string, e.g. \"1.5\"",
        json_schema_extra={"examples": ["1.5"]},
    )


class PayTransactionsResponse(BaseModel):
    """A page of payment records; amounts and fees are decimal strings."""

    next_token: str | None = Field(None, alias="nextToken")
    transactions: list[dict[str, Any]]

    model_config = {"populate_by_name": True}
