from typing import List, Optional

from ..abi.definitions import MULTISIG_WALLET_INTERFACE
from ..core.decoding import ErrorDecoder
from ..core.models import PendingOperation
from ..providers.base import RemoteLedger, Signer
from .base import BoundContract


class MultisigWallet(BoundContract):
    """Typed reads over the multisig wallet contract."""

    def __init__(
        self,
        ledger: RemoteLedger,
        address: str,
        signer: Optional[Signer] = None,
        decoder: Optional[ErrorDecoder] = None,
    ):
        super().__init__(ledger, address, MULTISIG_WALLET_INTERFACE, signer, decoder)

    async def is_owner(self, address: str) -> bool:
        return bool(await self.call("isOwner", address))

    async def get_owners(self) -> List[str]:
        return list(await self.call("getOwners"))

    async def threshold(self) -> int:
        return int(await self.call("threshold"))

    async def nonce(self) -> int:
        return int(await self.call("nonce"))

    async def is_module_enabled(self, module: str) -> bool:
        return bool(await self.call("modules", module))

    async def get_transaction_hash(self, to: str, value: int, data: str, nonce: int) -> str:
        return (await self.call("getTransactionHash", to, value, data, nonce)).lower()

    async def get_transaction(self, tx_hash: str) -> PendingOperation:
        to, value, data, executed, cancelled, num_approvals, timestamp, proposer = await self.call(
            "getTransaction", tx_hash
        )
        return PendingOperation(
            hash=tx_hash.lower(),
            to=to,
            value=value,
            data=data,
            proposer=proposer,
            num_approvals=num_approvals,
            timestamp=timestamp,
            executed=executed,
            cancelled=cancelled,
        )

    async def has_approved(self, tx_hash: str, owner: str) -> bool:
        return bool(await self.call("hasApproved", tx_hash, owner))
