"""Polygon contract addresses, selectors and ABI encoding helpers."""

from __future__ import annotations

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

CHAIN_ID = 137

CTF_ADDRESS = "0x4D97DCd97eC945f40cF65F87097ACe5EA0476045"
USDC_ADDRESS = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
CTF_EXCHANGE = "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"
NEG_RISK_CTF_EXCHANGE = "0xC5d563A36AE78145C45a50134d48A1215220f80a"
NEG_RISK_ADAPTER = "0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = b"\x00" * 32

MAX_UINT256 = 2**256 - 1

# ConditionalTokens (ERC1155)
BALANCE_OF_SEL = function_signature_to_4byte_selector("balanceOf(address,uint256)")
REDEEM_SEL = function_signature_to_4byte_selector(
    "redeemPositions(address,bytes32,bytes32,uint256[])",
)
PAYOUT_DENOMINATOR_SEL = function_signature_to_4byte_selector("payoutDenominator(bytes32)")
PAYOUT_NUMERATORS_SEL = function_signature_to_4byte_selector(
    "payoutNumerators(bytes32,uint256)",
)
OUTCOME_SLOT_COUNT_SEL = function_signature_to_4byte_selector("getOutcomeSlotCount(bytes32)")
COLLECTION_ID_SEL = function_signature_to_4byte_selector(
    "getCollectionId(bytes32,bytes32,uint256)",
)
POSITION_ID_SEL = function_signature_to_4byte_selector("getPositionId(address,bytes32)")

# ERC20
ALLOWANCE_SEL = function_signature_to_4byte_selector("allowance(address,address)")
APPROVE_SEL = function_signature_to_4byte_selector("approve(address,uint256)")

# Gnosis Safe
NONCE_SEL = function_signature_to_4byte_selector("nonce()")
GET_TX_HASH_SEL = function_signature_to_4byte_selector(
    "getTransactionHash(address,uint256,bytes,uint8,uint256,uint256,uint256,address,address,uint256)",
)
EXEC_TX_SEL = function_signature_to_4byte_selector(
    "execTransaction(address,uint256,bytes,uint8,uint256,uint256,uint256,address,address,bytes)",
)


def to_checksum(addr: str) -> str:
    """Convert address to checksummed format."""
    return to_checksum_address(addr)


def condition_bytes(condition_id: str) -> bytes:
    """Convert a hex condition id to 32 raw bytes."""
    return bytes.fromhex(condition_id.replace("0x", "").zfill(64))


def hex_to_int(hex_str: str | None) -> int:
    """Convert hex string (with or without 0x) to int."""
    return int(hex_str, 16) if hex_str and hex_str != "0x" else 0


def decode_uint(raw: bytes) -> int:
    """Decode the first 32-byte word of an eth_call result."""
    if len(raw) < 32:
        return 0
    return int.from_bytes(raw[:32], "big")


def index_set(outcome_index: int) -> int:
    """Bitmask naming a single outcome slot."""
    return 1 << outcome_index


def build_redeem_calldata(condition_id: str, outcome_slots: int = 2) -> bytes:
    """Build ConditionalTokens.redeemPositions call data.

    redeemPositions(address collateralToken, bytes32 parentCollectionId,
                    bytes32 conditionId, uint256[] indexSets)

    Every outcome slot is passed; losing slots pay out nothing.
    """
    return REDEEM_SEL + encode(
        ["address", "bytes32", "bytes32", "uint256[]"],
        [
            to_checksum(USDC_ADDRESS),
            ZERO_BYTES32,
            condition_bytes(condition_id),
            [index_set(i) for i in range(outcome_slots)],
        ],
    )
