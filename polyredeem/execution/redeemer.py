"""Claim settled Polymarket positions on-chain.

After a market resolves, winning conditional tokens must be redeemed
to convert them back to USDC. This module submits redeemPositions on the
ConditionalTokens contract and waits for the transaction to be mined.
"""

from __future__ import annotations

from typing import Any

from polyredeem.core.logging import get_logger, log_redemption_event
from polyredeem.errors import RedemptionError
from polyredeem.execution.contracts import CTF_ADDRESS, build_redeem_calldata, hex_to_int
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.execution.transactions import TransactionSender
from polyredeem.models.redemption import Receipt

logger = get_logger(__name__)


class Redeemer:
    """Redeems resolved conditional tokens back to USDC.

    Makes exactly one attempt per call. Any rejection, revert or missing
    receipt is raised as ``RedemptionError``; the caller decides what to
    do with it.
    """

    def __init__(
        self,
        rpc: PolygonRPC,
        sender: TransactionSender,
        receipt_timeout: float = 60.0,
    ) -> None:
        self._rpc = rpc
        self._sender = sender
        self._receipt_timeout = receipt_timeout

    async def redeem(self, condition_id: str, outcome_slots: int = 2) -> Receipt:
        """Redeem every outcome slot of a resolved market.

        Args:
            condition_id: The market's condition identifier (hex string).
            outcome_slots: Number of outcomes the condition was prepared with.

        Returns:
            Receipt of the mined transaction.

        Raises:
            RedemptionError: The transaction could not be sent, reverted,
                or was not mined within the receipt timeout.
        """
        if not condition_id:
            raise RedemptionError(condition_id, "empty condition id")

        call_data = build_redeem_calldata(condition_id, outcome_slots)
        log_redemption_event("submit", condition_id, via_safe=self._sender.uses_safe)

        try:
            tx_hash = await self._sender.send(CTF_ADDRESS, call_data)
        except Exception as exc:
            logger.error(
                "redeem.send_failed",
                condition_id=condition_id[:16],
                error=str(exc)[:200],
            )
            log_redemption_event("failed", condition_id, error=str(exc)[:200])
            raise RedemptionError(condition_id, f"transaction rejected: {exc}") from exc

        logger.info(
            "redeem.tx_sent",
            condition_id=condition_id[:16],
            tx_hash=tx_hash,
            via_safe=self._sender.uses_safe,
        )

        try:
            receipt = await self._rpc.wait_for_receipt(tx_hash, timeout=self._receipt_timeout)
        except Exception as exc:
            log_redemption_event("failed", condition_id, tx_hash=tx_hash, error=str(exc)[:200])
            raise RedemptionError(
                condition_id, f"receipt lookup failed: {exc}", tx_hash=tx_hash,
            ) from exc

        if receipt is None:
            log_redemption_event("failed", condition_id, tx_hash=tx_hash, error="receipt_timeout")
            raise RedemptionError(
                condition_id,
                f"not confirmed within {self._receipt_timeout:.0f}s (tx {tx_hash})",
                tx_hash=tx_hash,
            )

        if hex_to_int(receipt.get("status", "0x0")) != 1:
            logger.error("redeem.tx_reverted", condition_id=condition_id[:16], tx_hash=tx_hash)
            log_redemption_event("failed", condition_id, tx_hash=tx_hash, error="reverted")
            raise RedemptionError(condition_id, f"transaction reverted (tx {tx_hash})", tx_hash=tx_hash)

        log_redemption_event("confirmed", condition_id, tx_hash=tx_hash)
        return _to_receipt(tx_hash, receipt, via_safe=self._sender.uses_safe)


def _to_receipt(tx_hash: str, raw: dict[str, Any], via_safe: bool) -> Receipt:
    block = raw.get("blockNumber")
    gas = raw.get("gasUsed")
    return Receipt(
        tx_hash=tx_hash,
        block_number=hex_to_int(block) if block else None,
        gas_used=hex_to_int(gas) if gas else None,
        via_safe=via_safe,
    )
