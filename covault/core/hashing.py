"""
Operation and recovery identifiers.

These mirror the ledger's own derivation. The ledger's value is the one
used for lookups; the local derivation only cross-checks it.
"""

from typing import Sequence

from eth_abi import encode
from eth_abi.packed import encode_packed
from eth_utils import keccak

from ..abi.interface import hex_to_bytes, normalize_input, to_hex


def compute_transaction_hash(to: str, value: int, data: str, nonce: int) -> str:
    """keccak256(encodePacked(to, value, data, nonce))"""
    packed = encode_packed(
        ["address", "uint256", "bytes", "uint256"],
        [normalize_input("address", to), int(value), hex_to_bytes(data), int(nonce)],
    )
    return to_hex(keccak(packed))


def compute_recovery_hash(wallet: str, new_owners: Sequence[str], new_threshold: int, nonce: int) -> str:
    """keccak256(abi.encode(wallet, newOwners, newThreshold, nonce))"""
    encoded = encode(
        ["address", "address[]", "uint256", "uint256"],
        [
            normalize_input("address", wallet),
            normalize_input("address[]", list(new_owners)),
            int(new_threshold),
            int(nonce),
        ],
    )
    return to_hex(keccak(encoded))
