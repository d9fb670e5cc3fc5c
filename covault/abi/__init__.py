"""
Contract ABI codec and the wallet and module definitions.
"""

from .definitions import (
    DAILY_LIMIT_ABI,
    DAILY_LIMIT_INTERFACE,
    MULTISIG_WALLET_ABI,
    MULTISIG_WALLET_INTERFACE,
    SOCIAL_RECOVERY_ABI,
    SOCIAL_RECOVERY_INTERFACE,
    WHITELIST_ABI,
    WHITELIST_INTERFACE,
)
from .interface import (
    AbiParam,
    ContractInterface,
    ErrorFragment,
    EventFragment,
    FunctionFragment,
    hex_to_bytes,
    to_hex,
)

__all__ = [
    "AbiParam",
    "ContractInterface",
    "DAILY_LIMIT_ABI",
    "DAILY_LIMIT_INTERFACE",
    "ErrorFragment",
    "EventFragment",
    "FunctionFragment",
    "MULTISIG_WALLET_ABI",
    "MULTISIG_WALLET_INTERFACE",
    "SOCIAL_RECOVERY_ABI",
    "SOCIAL_RECOVERY_INTERFACE",
    "WHITELIST_ABI",
    "WHITELIST_INTERFACE",
    "hex_to_bytes",
    "to_hex",
]
