from typing import Optional

from ..abi.definitions import WHITELIST_INTERFACE
from ..core.decoding import ErrorDecoder
from ..providers.base import RemoteLedger, Signer
from .base import BoundContract


class WhitelistModule(BoundContract):
    """Per-wallet whitelist of destinations, each with an optional per-transaction cap."""

    def __init__(
        self,
        ledger: RemoteLedger,
        address: str,
        signer: Optional[Signer] = None,
        decoder: Optional[ErrorDecoder] = None,
    ):
        super().__init__(ledger, address, WHITELIST_INTERFACE, signer, decoder)

    async def is_whitelisted(self, wallet: str, address: str) -> bool:
        return bool(await self.call("isWhitelisted", wallet, address))

    async def whitelist_limit(self, wallet: str, address: str) -> int:
        return int(await self.call("getWhitelistLimit", wallet, address))
