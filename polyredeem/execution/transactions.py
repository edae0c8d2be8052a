"""Transaction signing and submission, direct from the EOA or via a Safe.

Uses eth_abi + eth_account over the shared PolygonRPC client, so web3 is
not needed.
"""

from __future__ import annotations

from typing import Any

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_defunct

from polyredeem.core.logging import get_logger
from polyredeem.execution.contracts import (
    CHAIN_ID,
    EXEC_TX_SEL,
    GET_TX_HASH_SEL,
    NONCE_SEL,
    ZERO_ADDRESS,
    decode_uint,
    to_checksum,
)
from polyredeem.execution.rpc import PolygonRPC

logger = get_logger(__name__)

_DEFAULT_GAS_LIMIT = 500_000
_GAS_PRICE_BUMP = 1.2

_SAFE_TX_TYPES = [
    "address", "uint256", "bytes", "uint8",
    "uint256", "uint256", "uint256",
    "address", "address",
]


class TransactionSender:
    """Signs and sends contract calls for one account.

    When ``funder`` is set the tokens live in a 1-of-1 Gnosis Safe owned by
    the EOA and every call is wrapped in ``execTransaction``.
    """

    def __init__(
        self,
        rpc: PolygonRPC,
        private_key: str,
        funder: str | None = None,
        chain_id: int = CHAIN_ID,
        gas_limit: int = _DEFAULT_GAS_LIMIT,
    ) -> None:
        if not private_key:
            msg = "POLYMARKET_PRIVATE_KEY required for on-chain transactions"
            raise ValueError(msg)
        self._rpc = rpc
        self._account = Account.from_key(private_key)
        self._funder = to_checksum(funder) if funder else None
        self._chain_id = chain_id
        self._gas_limit = gas_limit

        logger.info(
            "tx_sender.init",
            eoa=self._account.address[:10] + "...",
            holder=self.holder[:10] + "...",
            use_safe=self.uses_safe,
        )

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def holder(self) -> str:
        """The address that holds the conditional tokens."""
        return self._funder or self._account.address

    @property
    def uses_safe(self) -> bool:
        return self._funder is not None

    async def send(self, to: str, call_data: bytes) -> str:
        """Send a call to ``to`` the configured way; returns the tx hash."""
        if self._funder:
            return await self._send_via_safe(to, call_data)
        return await self._send_direct_tx(to, call_data)

    async def _send_direct_tx(self, to: str, call_data: bytes) -> str:
        """Send a transaction directly from the EOA."""
        nonce = await self._rpc.get_nonce(self._account.address)
        gas_price = int(await self._rpc.get_gas_price() * _GAS_PRICE_BUMP)

        tx: dict[str, Any] = {
            "to": to_checksum(to),
            "data": call_data,
            "gas": self._gas_limit,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": self._chain_id,
            "value": 0,
        }
        signed = self._account.sign_transaction(tx)
        return await self._rpc.send_raw_transaction(signed.raw_transaction)

    async def _send_via_safe(self, to: str, call_data: bytes) -> str:
        """Execute a call through a 1-of-1 Gnosis Safe.

        1. Read the Safe nonce
        2. Ask the Safe for the tx hash
        3. Sign it eth_sign style (v += 4)
        4. Call execTransaction from the EOA
        """
        assert self._funder is not None
        safe_addr = self._funder
        to_addr = to_checksum(to)
        zero_addr = to_checksum(ZERO_ADDRESS)

        safe_nonce = decode_uint(await self._rpc.eth_call(safe_addr, NONCE_SEL))

        get_hash_data = GET_TX_HASH_SEL + encode(
            [*_SAFE_TX_TYPES, "uint256"],
            [to_addr, 0, call_data, 0, 0, 0, 0, zero_addr, zero_addr, safe_nonce],
        )
        safe_tx_hash = (await self._rpc.eth_call(safe_addr, get_hash_data))[:32]

        signed_msg = self._account.sign_message(encode_defunct(primitive=safe_tx_hash))
        v = signed_msg.v + 4  # eth_sign indicator for Gnosis Safe
        signature = (
            signed_msg.r.to_bytes(32, "big")
            + signed_msg.s.to_bytes(32, "big")
            + v.to_bytes(1, "big")
        )

        exec_data = EXEC_TX_SEL + encode(
            [*_SAFE_TX_TYPES, "bytes"],
            [to_addr, 0, call_data, 0, 0, 0, 0, zero_addr, zero_addr, signature],
        )
        return await self._send_direct_tx(safe_addr, exec_data)
