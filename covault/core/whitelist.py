"""
Whitelist Coordinator

Whitelisted destinations can receive value (and calldata) from any single
owner without approvals. Each entry carries a per-transaction cap, where 0
means unlimited.

Adding and removing entries are multisig proposals.
"""

import logging
from typing import List, Optional, Sequence

from ..contracts.whitelist_module import WhitelistModule
from ..logging_config import vault_operation
from ..services.address import is_valid_address, validate_address, validate_addresses
from .errors import CoordinationError, InvalidArgumentError, NotAuthorizedError, SubmissionRevertedError
from .gas import STANDARD
from .models import ExecutionCheck, Receipt, WhitelistEntry
from .modules import ModuleCoordinator
from .submission import receipt_has_event
from .transactions import Payload, normalize_payload

logger = logging.getLogger(__name__)


class WhitelistCoordinator(ModuleCoordinator):
    label = "Whitelist"
    address_setting = "whitelist_module_address"
    binding = WhitelistModule

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def is_whitelisted(self, address: str) -> bool:
        return await self.module.is_whitelisted(self.wallet_address, validate_address(address))

    async def get_limit(self, address: str) -> int:
        return await self.module.whitelist_limit(self.wallet_address, validate_address(address))

    async def _entry(self, address: str) -> Optional[WhitelistEntry]:
        address = validate_address(address)
        if not await self.module.is_whitelisted(self.wallet_address, address):
            return None
        return WhitelistEntry(address=address, limit=await self.module.whitelist_limit(self.wallet_address, address))

    async def get_whitelisted_addresses(self) -> List[WhitelistEntry]:
        """
        Current whitelist, in first-seen order.

        AddressWhitelisted logs nominate candidates; each one is re-read, so
        removed entries drop out and re-added ones carry their current cap.
        """
        return await self.reconciler.reconcile(
            self.module,
            "AddressWhitelisted",
            "addr",
            fetch=self._entry,
            keep=lambda entry: entry is not None,
            filters={"wallet": self.wallet_address},
        )

    async def can_execute(self, destination: str, value: int) -> ExecutionCheck:
        """Dry check for ``execute_to_whitelist``; never raises for ledger failures."""
        if not is_valid_address(destination):
            return ExecutionCheck(False, "Invalid address format")
        destination = validate_address(destination)

        try:
            if not await self.is_enabled():
                return ExecutionCheck(False, "Whitelist module not enabled")

            entry = await self._entry(destination)
            if entry is None:
                return ExecutionCheck(False, "Address not whitelisted")
            if not entry.allows(value):
                return ExecutionCheck(False, f"Value exceeds whitelist limit of {entry.limit}")

            if await self.wallet_balance() < value:
                return ExecutionCheck(False, "Insufficient balance")
        except CoordinationError as e:
            return ExecutionCheck(False, e.message)

        return ExecutionCheck(True)

    # ------------------------------------------------------------------
    # Configuration proposals
    # ------------------------------------------------------------------

    @vault_operation
    async def propose_add(self, address: str, limit: int = 0) -> str:
        address = validate_address(address, "whitelist address")
        if limit < 0:
            raise InvalidArgumentError("Whitelist limit cannot be negative")
        return await self._propose("addToWhitelist", self.wallet_address, address, limit)

    @vault_operation
    async def propose_remove(self, address: str) -> str:
        address = validate_address(address, "whitelist address")
        if not await self.module.is_whitelisted(self.wallet_address, address):
            raise InvalidArgumentError("Address is not whitelisted", details={"address": address})
        return await self._propose("removeFromWhitelist", self.wallet_address, address)

    @vault_operation
    async def propose_batch_add(self, addresses: Sequence[str], limits: Sequence[int]) -> str:
        """
        Propose whitelisting several addresses in one multisig operation.

        Args:
            addresses: Destinations to whitelist
            limits: Per-transaction cap for each address, same order
        """
        addresses = validate_addresses(addresses, "whitelist address")
        if len(addresses) != len(limits):
            raise InvalidArgumentError(
                f"Array length mismatch: {len(addresses)} addresses, {len(limits)} limits"
            )
        if not addresses:
            raise InvalidArgumentError("At least one address is required")
        if any(limit < 0 for limit in limits):
            raise InvalidArgumentError("Whitelist limit cannot be negative")
        return await self._propose("batchAddToWhitelist", self.wallet_address, addresses, list(limits))

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    @vault_operation
    async def execute_to_whitelist(self, destination: str, value: int = 0, payload: Optional[Payload] = None) -> Receipt:
        """Send ``value`` wei and ``payload`` to a whitelisted destination without approvals."""
        self._require_signer()
        destination = validate_address(destination, "destination address")
        data = normalize_payload(payload)
        if value < 0:
            raise InvalidArgumentError("Value cannot be negative")

        entry = await self._entry(destination)
        if entry is None:
            raise NotAuthorizedError(
                f"Address {destination} is not whitelisted", details={"address": destination}
            )
        if not entry.allows(value):
            raise InvalidArgumentError(
                f"Transaction value {value} exceeds whitelist limit {entry.limit}",
                details={"value": value, "limit": entry.limit},
            )
        await self._require_balance(value)

        receipt = await self._simulate_and_submit(
            "execute to whitelist",
            "executeToWhitelist",
            STANDARD,
            self.wallet_address,
            destination,
            value,
            data,
            context="Possible causes: insufficient balance or module not enabled.",
        )

        if not receipt_has_event(
            receipt, self.interface, "WhitelistTransactionExecuted", "to", destination, address=self.module_address
        ):
            raise SubmissionRevertedError(
                "Whitelist transfer confirmed but no execution was recorded", receipt=receipt
            )

        logger.info(f"Sent {value} wei to whitelisted {destination} ({receipt.tx_hash})")
        return receipt
