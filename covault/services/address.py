"""Helpers for validating and comparing addresses and operation hashes."""

from __future__ import annotations

import re
from typing import Iterable, List

from eth_utils import is_address, is_checksum_address, to_checksum_address

from ..core.errors import InvalidArgumentError
from ..core.models import ZERO_ADDRESS

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


def is_valid_address(address: str | None) -> bool:
    """Well-formed hex address; mixed-case input must carry a valid checksum."""

    if not address or not _EVM_ADDRESS_RE.match(address):
        return False
    body = address[2:]
    if body.islower() or body.isupper():
        return is_address(address)
    return is_checksum_address(address)


def validate_address(address: str | None, label: str = "address") -> str:
    """Return the checksummed address or raise InvalidArgumentError."""

    candidate = (address or "").strip()
    if not is_valid_address(candidate):
        raise InvalidArgumentError(f"Invalid {label}: {address!r}")
    return to_checksum_address(candidate)


def validate_addresses(addresses: Iterable[str], label: str = "address") -> List[str]:
    return [validate_address(address, label) for address in addresses]


def validate_tx_hash(tx_hash: str | None) -> str:
    """Normalize a 32-byte hash to lowercase ``0x`` form."""

    candidate = (tx_hash or "").strip()
    if candidate and not candidate.startswith("0x"):
        candidate = "0x" + candidate
    if not _HASH_RE.match(candidate):
        raise InvalidArgumentError(f"Invalid transaction hash: {tx_hash!r}")
    return candidate.lower()


def same_address(a: str | None, b: str | None) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def is_zero_address(address: str | None) -> bool:
    return not address or address.lower() == ZERO_ADDRESS
