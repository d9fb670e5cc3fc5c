"""
Typed bindings for the on-chain contracts covault coordinates.
"""

from .base import BoundContract
from .daily_limit_module import DailyLimitModule
from .recovery_module import SocialRecoveryModule
from .wallet import MultisigWallet
from .whitelist_module import WhitelistModule

__all__ = [
    "BoundContract",
    "DailyLimitModule",
    "MultisigWallet",
    "SocialRecoveryModule",
    "WhitelistModule",
]
