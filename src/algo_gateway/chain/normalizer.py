"""Normalize indexer responses into camelCase records in whole currency units.

Pure functions; the indexer returns kebab-case keys and amounts in
micro-units, API callers get camelCase keys and whole units.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from algo_gateway.chain.models import MICRO_UNITS

# Amount keys inside a payment-transaction object
_PAYMENT_AMOUNT_KEYS = ("amount", "close-amount")


def micro_to_whole(value: int | str | Decimal | None) -> Decimal | None:
    """Convert a micro-unit amount to whole units, exactly."""
    if value is None:
        return None
    return Decimal(value) / MICRO_UNITS


def camel_case(key: str) -> str:
    """``close-remainder-to`` -> ``closeRemainderTo``."""
    head, *rest = key.split("-")
    return head + "".join(part.capitalize() for part in rest)


def _map_payment(payment: dict[str, Any] | None) -> dict[str, Any] | None:
    if not payment:
        return payment
    mapped: dict[str, Any] = {}
    for key, value in payment.items():
        if key in _PAYMENT_AMOUNT_KEYS:
            value = micro_to_whole(value)
        mapped[camel_case(key)] = value
    return mapped


def map_transaction(tx: dict[str, Any]) -> dict[str, Any]:
    """Project an indexer transaction into a normalized transaction record."""
    closing_amount = tx.get("closing-amount")
    return {
        "closeRewards": tx.get("close-rewards"),
        "closingAmount": micro_to_whole(closing_amount) if closing_amount else closing_amount,
        "confirmedRound": tx.get("confirmed-round"),
        "fee": micro_to_whole(tx.get("fee", 0)),
        "firstValid": tx.get("first-valid"),
        "genesisHash": tx.get("genesis-hash"),
        "genesisId": tx.get("genesis-id"),
        "id": tx.get("id"),
        "intraRoundOffset": tx.get("intra-round-offset"),
        "lastValid": tx.get("last-valid"),
        "note": tx.get("note"),
        "paymentTransaction": _map_payment(tx.get("payment-transaction")),
        "receiverRewards": tx.get("receiver-rewards"),
        "roundTime": tx.get("round-time"),
        "sender": tx.get("sender"),
        "senderRewards": tx.get("sender-rewards"),
        "signature": tx.get("signature"),
        "txType": tx.get("tx-type"),
    }


def map_block(block: dict[str, Any]) -> dict[str, Any]:
    """Project an indexer block into a normalized block record."""
    return {
        "genesisHash": block.get("genesis-hash"),
        "genesisId": block.get("genesis-id"),
        "previousBlockHash": block.get("previous-block-hash"),
        "rewards": block.get("rewards"),
        "round": block.get("round"),
        "seed": block.get("seed"),
        "timestamp": block.get("timestamp"),
        "txns": [map_transaction(tx) for tx in block.get("transactions") or []],
        "txn": block.get("transactions-root"),
        "txnc": block.get("txn-counter"),
        "upgradeState": block.get("upgrade-state"),
        "upgradeVote": block.get("upgrade-vote"),
    }
