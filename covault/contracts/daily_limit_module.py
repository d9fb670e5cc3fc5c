from typing import Optional

from ..abi.definitions import DAILY_LIMIT_INTERFACE
from ..core.decoding import ErrorDecoder
from ..core.models import DailyLimit
from ..providers.base import RemoteLedger, Signer
from .base import BoundContract


class DailyLimitModule(BoundContract):
    def __init__(
        self,
        ledger: RemoteLedger,
        address: str,
        signer: Optional[Signer] = None,
        decoder: Optional[ErrorDecoder] = None,
    ):
        super().__init__(ledger, address, DAILY_LIMIT_INTERFACE, signer, decoder)

    async def get_daily_limit(self, wallet: str) -> DailyLimit:
        limit, spent, last_reset = await self.call("getDailyLimit", wallet)
        return DailyLimit(limit=limit, spent=spent, last_reset=last_reset)

    async def remaining_limit(self, wallet: str) -> int:
        return int(await self.call("getRemainingLimit", wallet))

    async def time_until_reset(self, wallet: str) -> int:
        """Seconds until the spent amount rolls over; 0 once the period has passed."""
        return int(await self.call("getTimeUntilReset", wallet))
