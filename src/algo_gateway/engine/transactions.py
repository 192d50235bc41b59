"""Payment transaction construction and signing.

Builds an ``algosdk`` payment transaction from suggested node parameters and
either signs it with a private key or serializes it unsigned for the KMS.
Both paths return the hex encoding of the msgpack bytes.
"""

from __future__ import annotations

import base64
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Self

from algosdk import account, encoding, transaction
from pydantic import BaseModel, Field, model_validator

from algo_gateway.chain.models import MICRO_UNITS
from algo_gateway.engine.wallet import secret_to_private_key
from algo_gateway.errors.gateway_errors import InvalidTransactionError

if TYPE_CHECKING:
    from algo_gateway.chain.algod.client import AlgodClient

# Rounds a new transaction stays valid for
VALIDITY_WINDOW = 1000


class AlgoTransaction(BaseModel):
    """A payment to build, sign and send.

    Exactly one of ``from_private_key`` (inline signing) or ``signature_id``
    (deferred KMS signing) must be set. Amounts are in whole ALGO.
    """

    from_private_key: str | None = Field(None, alias="fromPrivateKey")
    signature_id: str | None = Field(None, alias="signatureId")
    index: int | None = Field(None, ge=0)
    from_address: str | None = Field(None, alias="from")
    to: str
    amount: str
    fee: str = "0.001"
    note: str | None = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_signer(self) -> Self:
        if bool(self.from_private_key) == bool(self.signature_id):
            msg = "exactly one of fromPrivateKey or signatureId is required"
            raise ValueError(msg)
        if self.signature_id and not self.from_address:
            msg = "from is required when signing through the KMS"
            raise ValueError(msg)
        return self


def to_micro_units(value: str, field: str) -> int:
    """Convert a whole-unit decimal string to an integer micro-unit amount.

    Raises:
        InvalidTransactionError: If *value* is negative, not a number, or
            finer than one micro-unit.
    """
    try:
        micro = Decimal(value) * MICRO_UNITS
    except InvalidOperation as exc:
        raise InvalidTransactionError(f"{field} is not a number: {value!r}") from exc
    if not micro.is_finite() or micro < 0 or micro != micro.to_integral_value():
        raise InvalidTransactionError(f"{field} must be a non-negative multiple of 0.000001")
    return int(micro)


def build_payment(tx: AlgoTransaction, params: transaction.SuggestedParams) -> transaction.PaymentTxn:
    """Build the unsigned payment for *tx*."""
    if tx.from_private_key:
        sender = account.address_from_private_key(secret_to_private_key(tx.from_private_key))
    else:
        sender = tx.from_address or ""

    for label, address in (("from", sender), ("to", tx.to)):
        if not encoding.is_valid_address(address):
            raise InvalidTransactionError(f"{label} is not a valid Algorand address")

    params.fee = to_micro_units(tx.fee, "fee")
    return transaction.PaymentTxn(
        sender,
        params,
        tx.to,
        to_micro_units(tx.amount, "amount"),
        note=tx.note.encode() if tx.note else None,
    )


async def suggested_params(algod: AlgodClient) -> transaction.SuggestedParams:
    """Fetch suggested parameters from *algod* as flat-fee ``SuggestedParams``."""
    params = await algod.transaction_params()
    return transaction.SuggestedParams(
        fee=params.min_fee,
        first=params.last_round,
        last=params.last_round + VALIDITY_WINDOW,
        gh=params.genesis_hash,
        gen=params.genesis_id,
        flat_fee=True,
        consensus_version=params.consensus_version,
        min_fee=params.min_fee,
    )


async def prepare_signed_transaction(algod: AlgodClient, tx: AlgoTransaction) -> str:
    """Build *tx* and return it hex-encoded, signed unless it goes to the KMS."""
    payment = build_payment(tx, await suggested_params(algod))
    if tx.signature_id:
        encoded = encoding.msgpack_encode(payment)
    else:
        encoded = encoding.msgpack_encode(
            payment.sign(secret_to_private_key(tx.from_private_key or ""))
        )
    return base64.b64decode(encoded).hex()
