from typing import List, Optional

from ..abi.definitions import SOCIAL_RECOVERY_INTERFACE
from ..core.decoding import ErrorDecoder
from ..core.models import RecoveryConfig, RecoveryRequest
from ..providers.base import RemoteLedger, Signer
from .base import BoundContract


class SocialRecoveryModule(BoundContract):
    """Typed reads over the social recovery module. Every read is per wallet."""

    def __init__(
        self,
        ledger: RemoteLedger,
        address: str,
        signer: Optional[Signer] = None,
        decoder: Optional[ErrorDecoder] = None,
    ):
        super().__init__(ledger, address, SOCIAL_RECOVERY_INTERFACE, signer, decoder)

    async def get_recovery_config(self, wallet: str) -> RecoveryConfig:
        guardians, threshold, period = await self.call("getRecoveryConfig", wallet)
        return RecoveryConfig(guardians=list(guardians), threshold=threshold, recovery_period=period)

    async def is_guardian(self, wallet: str, address: str) -> bool:
        return bool(await self.call("isGuardian", wallet, address))

    async def get_recovery(self, wallet: str, recovery_hash: str) -> RecoveryRequest:
        new_owners, new_threshold, approval_count, execution_time, executed = await self.call(
            "getRecovery", wallet, recovery_hash
        )
        return RecoveryRequest(
            hash=recovery_hash.lower(),
            new_owners=list(new_owners),
            new_threshold=new_threshold,
            approval_count=approval_count,
            execution_time=execution_time,
            executed=executed,
        )

    async def approval_flag(self, wallet: str, recovery_hash: str, guardian: str) -> bool:
        """Raw approval flag; may be stale after a cancellation."""
        return bool(await self.call("recoveryApprovals", wallet, recovery_hash, guardian))

    async def recovery_nonce(self, wallet: str) -> int:
        return int(await self.call("recoveryNonces", wallet))

    async def get_recovery_hash(self, wallet: str, new_owners: List[str], new_threshold: int) -> str:
        return (await self.call("getRecoveryHashForCurrentNonce", wallet, new_owners, new_threshold)).lower()
