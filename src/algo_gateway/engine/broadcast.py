"""Broadcast-and-confirm engine.

Submits signed transaction bytes to an algod node, polls for inclusion for a
bounded number of rounds, and reports a confirmed deferred-signing
transaction back to the KMS.

Outcomes of :meth:`BroadcastEngine.broadcast`:

- ``BroadcastOutcome(CONFIRMED)`` — confirmed, and the KMS (if involved) was
  told about it;
- ``BroadcastOutcome(CONFIRMED_WITH_RECONCILIATION_FAILURE)`` — confirmed
  on-chain, but completing the KMS record failed;
- ``SubmissionFailed`` raised — the node did not accept the bytes;
- ``ConfirmationNotReached`` raised — accepted, but rejected from the pool
  or still pending once the attempts ran out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from algo_gateway.chain.algod.client import AlgodClient
from algo_gateway.chain.models import BroadcastOutcome, ConfirmationResult, NodeRole
from algo_gateway.errors.chain_errors import ConfirmationNotReached, SubmissionFailed
from algo_gateway.metrics.collector import (
    OUTCOME_CONFIRMED,
    OUTCOME_NOT_CONFIRMED,
    OUTCOME_RECONCILIATION_FAILED,
    OUTCOME_SUBMISSION_FAILED,
)

if TYPE_CHECKING:
    from algo_gateway.chain.resolver import EndpointResolver
    from algo_gateway.kms.client import KeyManagementDelegate
    from algo_gateway.metrics.collector import GatewayMetrics

logger = logging.getLogger(__name__)

# Poll attempts before giving up on a submitted transaction. Assumes
# acceptance within two rounds under normal conditions; tunable per engine.
CONFIRMATION_ATTEMPTS = 2

AlgodFactory = Callable[[str], AlgodClient]


class BroadcastEngine:
    """Submit signed transactions and wait for their confirmation.

    Collaborators are injected; the engine keeps no state between calls.
    """

    def __init__(
        self,
        resolver: EndpointResolver,
        kms: KeyManagementDelegate | None = None,
        *,
        algod_factory: AlgodFactory = AlgodClient,
        max_attempts: int = CONFIRMATION_ATTEMPTS,
        metrics: GatewayMetrics | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            resolver: Resolves the algod endpoint to submit to.
            kms: Delegate completing deferred-signing transactions.
            algod_factory: Builds an :class:`AlgodClient` from a base URL.
            max_attempts: Pending-info polls before giving up.
            metrics: Optional metrics sink.
        """
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self._resolver = resolver
        self._kms = kms
        self._algod_factory = algod_factory
        self._max_attempts = max_attempts
        self._metrics = metrics

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def broadcast(
        self,
        tx_data: str,
        signature_id: str | None = None,
        *,
        testnet: bool | None = None,
    ) -> BroadcastOutcome:
        """Submit *tx_data* and wait until it is confirmed.

        Args:
            tx_data: Hex-encoded signed transaction.
            signature_id: KMS signature id when the transaction was signed
                through the deferred-signing workflow.
            testnet: Network override; defaults to the resolver's network.

        Returns:
            The outcome of a confirmed transaction.

        Raises:
            SubmissionFailed: The node refused the transaction.
            ConfirmationNotReached: The transaction was not confirmed.
        """
        logger.info("Broadcast tx for ALGO with data '%s'", tx_data)
        if self._metrics is None:
            return await self._broadcast(tx_data, signature_id, testnet)
        with self._metrics.track_broadcast():
            return await self._broadcast(tx_data, signature_id, testnet)

    async def _broadcast(
        self, tx_data: str, signature_id: str | None, testnet: bool | None
    ) -> BroadcastOutcome:
        if testnet is None:
            testnet = await self._resolver.is_testnet()
        base_url = (await self._resolver.resolve(NodeRole.ALGOD, testnet=testnet))[0]

        algod = self._algod_factory(base_url)
        await algod.connect()
        try:
            try:
                tx_id = await algod.send_raw_transaction(tx_data)
            except SubmissionFailed:
                logger.exception("Submission of ALGO transaction failed")
                self._record(OUTCOME_SUBMISSION_FAILED)
                raise
            result = await self.wait_for_confirmation(algod, tx_id)
        finally:
            await algod.close()

        if not result.is_confirmed:
            logger.error("ALGO transaction %s not confirmed: %s", tx_id, result)
            self._record(OUTCOME_NOT_CONFIRMED)
            raise ConfirmationNotReached(tx_id)

        if signature_id:
            try:
                await self._complete(tx_id, signature_id)
            except Exception:
                logger.exception(
                    "Transaction %s confirmed but KMS completion of %s failed",
                    tx_id,
                    signature_id,
                )
                self._record(OUTCOME_RECONCILIATION_FAILED)
                return BroadcastOutcome.reconciliation_failed(tx_id)

        self._record(OUTCOME_CONFIRMED)
        return BroadcastOutcome.confirmed(tx_id)

    async def wait_for_confirmation(self, algod: AlgodClient, tx_id: str) -> ConfirmationResult:
        """Poll *algod* until *tx_id* is confirmed, rejected, or attempts run out.

        Each pending poll that is neither confirmed nor rejected advances the
        round cursor and blocks until the node reports that round complete.
        """
        round_cursor = (await algod.status()).last_round
        attempts_remaining = self._max_attempts

        while attempts_remaining > 0:
            info = await algod.pending_transaction_information(tx_id)
            if info.is_confirmed:
                logger.debug("Transaction %s confirmed in round %d", tx_id, info.confirmed_round)
                return ConfirmationResult.CONFIRMED
            if info.is_rejected:
                logger.warning("Transaction %s rejected: %s", tx_id, info.pool_error)
                return ConfirmationResult.REJECTED

            round_cursor += 1
            attempts_remaining -= 1
            await algod.status_after_block(round_cursor)

        return ConfirmationResult.PENDING_EXHAUSTED

    async def _complete(self, tx_id: str, signature_id: str) -> None:
        if self._kms is None:
            msg = "no KMS configured to complete deferred transactions"
            raise RuntimeError(msg)
        await self._kms.complete(tx_id, signature_id)

    def _record(self, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_outcome(outcome)
