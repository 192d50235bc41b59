"""Chain data models — node roles, pending info, broadcast outcomes.

Data classes representing algod responses and the results of the
broadcast-and-confirm protocol.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

# Micro-units (microAlgos) per whole currency unit
MICRO_UNITS = Decimal(1_000_000)


class NodeRole(enum.StrEnum):
    """Class of node endpoint to resolve."""

    ALGOD = "algod"  # submission node
    INDEXER = "indexer"


class ConfirmationResult(enum.StrEnum):
    """Terminal state of the confirmation polling loop."""

    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    PENDING_EXHAUSTED = "PENDING_EXHAUSTED"

    @property
    def is_confirmed(self) -> bool:
        return self is ConfirmationResult.CONFIRMED


class OutcomeKind(enum.StrEnum):
    """Kinds of successful broadcast."""

    CONFIRMED = "confirmed"
    CONFIRMED_WITH_RECONCILIATION_FAILURE = "confirmed_with_reconciliation_failure"


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SignedTransactionPayload:
    """An already-signed transaction ready for broadcast.

    Attributes:
        transaction_data: Hex encoding of the signed msgpack transaction.
        signature_id: KMS signature identifier for deferred signing.
        index: Position of the key within a KMS-managed wallet.
    """

    transaction_data: str
    signature_id: str | None = None
    index: int | None = None


# ---------------------------------------------------------------------------
# Algod responses
# ---------------------------------------------------------------------------


@dataclass
class NodeStatus:
    """Subset of ``GET /v2/status``."""

    last_round: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NodeStatus:
        return cls(last_round=data.get("last-round", 0))


@dataclass
class PendingTransactionInfo:
    """Algod pending transaction information.

    Attributes:
        confirmed_round: Round the transaction was committed in, 0 if not yet.
        pool_error: Non-empty when the transaction was evicted from the pool.
        txn: Raw signed transaction as returned by the node.
    """

    confirmed_round: int = 0
    pool_error: str = ""
    txn: dict[str, Any] = field(default_factory=dict)

    @property
    def is_confirmed(self) -> bool:
        return bool(self.confirmed_round)

    @property
    def is_rejected(self) -> bool:
        return bool(self.pool_error)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingTransactionInfo:
        return cls(
            confirmed_round=data.get("confirmed-round") or 0,
            pool_error=data.get("pool-error") or "",
            txn=data.get("txn", {}),
        )


@dataclass
class TransactionParams:
    """Suggested parameters from ``GET /v2/transactions/params``."""

    min_fee: int = 1000
    last_round: int = 0
    genesis_hash: str = ""
    genesis_id: str = ""
    consensus_version: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionParams:
        return cls(
            min_fee=data.get("min-fee", 1000),
            last_round=data.get("last-round", 0),
            genesis_hash=data.get("genesis-hash", ""),
            genesis_id=data.get("genesis-id", ""),
            consensus_version=data.get("consensus-version", ""),
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastOutcome:
    """Result of a broadcast whose transaction was confirmed on-chain.

    ``CONFIRMED_WITH_RECONCILIATION_FAILURE`` means funds moved but the KMS
    was not told; the caller has to reconcile out-of-band.
    """

    kind: OutcomeKind
    tx_id: str

    @classmethod
    def confirmed(cls, tx_id: str) -> BroadcastOutcome:
        return cls(OutcomeKind.CONFIRMED, tx_id)

    @classmethod
    def reconciliation_failed(cls, tx_id: str) -> BroadcastOutcome:
        return cls(OutcomeKind.CONFIRMED_WITH_RECONCILIATION_FAILURE, tx_id)

    @property
    def failed(self) -> bool:
        """True when KMS completion failed after confirmation."""
        return self.kind is OutcomeKind.CONFIRMED_WITH_RECONCILIATION_FAILURE

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the connector's wire shape."""
        if self.failed:
            return {"txId": self.tx_id, "failed": True}
        return {"txId": self.tx_id}


@dataclass(frozen=True)
class StoredTransaction:
    """Result of handing an unsigned transaction to the KMS."""

    signature_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"signatureId": self.signature_id}
