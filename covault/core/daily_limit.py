"""
Daily Limit Coordinator

A wallet with the daily limit module enabled lets any single owner send
native value without approvals, as long as the total sent since the last
reset stays within the configured limit. The period rolls over 24 hours
after the last reset.

Setting or resetting the limit is a multisig proposal.
"""

import logging

from ..contracts.daily_limit_module import DailyLimitModule
from ..logging_config import vault_operation
from ..services.address import validate_address
from .errors import CoordinationError, InvalidArgumentError, SubmissionRevertedError
from .gas import STANDARD
from .models import DailyLimit, ExecutionCheck, Receipt
from .modules import ModuleCoordinator
from .submission import receipt_has_event

logger = logging.getLogger(__name__)


class DailyLimitCoordinator(ModuleCoordinator):
    label = "Daily limit"
    address_setting = "daily_limit_module_address"
    binding = DailyLimitModule

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_daily_limit(self) -> DailyLimit:
        return await self.module.get_daily_limit(self.wallet_address)

    async def get_remaining_limit(self) -> int:
        return await self.module.remaining_limit(self.wallet_address)

    async def get_time_until_reset(self) -> int:
        return await self.module.time_until_reset(self.wallet_address)

    async def can_execute(self, value: int) -> ExecutionCheck:
        """Dry check for ``execute_below_limit``; never raises for ledger failures."""
        try:
            if not await self.is_enabled():
                return ExecutionCheck(False, "Daily limit module not enabled")

            limit = await self.get_daily_limit()
            if not limit.is_configured:
                return ExecutionCheck(False, "Daily limit not configured")

            remaining = await self.get_remaining_limit()
            if remaining < value:
                return ExecutionCheck(
                    False, f"Transaction value exceeds remaining daily limit of {remaining} wei"
                )

            if await self.wallet_balance() < value:
                return ExecutionCheck(False, "Insufficient balance")
        except CoordinationError as e:
            return ExecutionCheck(False, e.message)

        return ExecutionCheck(True)

    # ------------------------------------------------------------------
    # Configuration proposals
    # ------------------------------------------------------------------

    @vault_operation
    async def propose_set_daily_limit(self, limit: int) -> str:
        """
        Propose ``setDailyLimit`` as a multisig operation.

        A limit of 0 disables spending through the module.

        Returns:
            Hash of the multisig proposal
        """
        if limit < 0:
            raise InvalidArgumentError("Daily limit cannot be negative")
        return await self._propose("setDailyLimit", self.wallet_address, limit)

    @vault_operation
    async def propose_reset_daily_limit(self) -> str:
        return await self._propose("resetDailyLimit", self.wallet_address)

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    @vault_operation
    async def execute_below_limit(self, destination: str, value: int) -> Receipt:
        """Send ``value`` wei to ``destination`` without multisig approvals."""
        self._require_signer()
        destination = validate_address(destination, "destination address")
        if value < 0:
            raise InvalidArgumentError("Value cannot be negative")

        await self._require_balance(value)

        receipt = await self._simulate_and_submit(
            "execute below limit",
            "executeBelowLimit",
            STANDARD,
            self.wallet_address,
            destination,
            value,
            context="Possible causes: exceeds daily limit, insufficient balance, or module not enabled.",
        )

        if not receipt_has_event(
            receipt, self.interface, "TransactionExecuted", "to", destination, address=self.module_address
        ):
            raise SubmissionRevertedError(
                "Daily limit transfer confirmed but no execution was recorded", receipt=receipt
            )

        logger.info(f"Sent {value} wei to {destination} under the daily limit ({receipt.tx_hash})")
        return receipt
