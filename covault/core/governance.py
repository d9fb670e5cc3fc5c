"""
Owner Governance

Changes to the vault itself (owners, threshold, modules) are calls from the
vault to itself, so each one is a multisig proposal. Module configuration
that requires ``msg.sender == wallet`` is proposed the same way.
"""

import logging
from typing import Any, Sequence

from ..abi.interface import ContractInterface
from ..services.address import same_address, validate_address
from .errors import DuplicateOperationError, InvalidArgumentError, WouldViolateInvariantError
from .transactions import TransactionCoordinator

logger = logging.getLogger(__name__)


class OwnerGovernance:
    def __init__(self, transactions: TransactionCoordinator):
        self.transactions = transactions

    @property
    def wallet(self):
        return self.transactions.wallet

    async def _propose_self_call(self, function: str, *args: Any) -> str:
        data = self.transactions.interface.encode_function_data(function, args)
        return await self.transactions.propose(self.transactions.wallet_address, 0, data)

    async def _check_pending_add_owner(self, owner: str) -> None:
        selector = self.transactions.interface.function("addOwner").selector
        for operation in await self.transactions.list_pending():
            if not same_address(operation.to, self.transactions.wallet_address):
                continue
            if not operation.data.startswith(selector):
                continue
            _, args = self.transactions.interface.decode_function_data(operation.data)
            if same_address(args[0], owner):
                raise DuplicateOperationError(
                    operation.hash, operation.num_approvals, operation.threshold or 0
                )

    async def add_owner(self, owner: str) -> str:
        owner = validate_address(owner, "owner address")
        if await self.wallet.is_owner(owner):
            raise InvalidArgumentError("Address is already an owner")
        await self._check_pending_add_owner(owner)
        return await self._propose_self_call("addOwner", owner)

    async def remove_owner(self, owner: str) -> str:
        owner = validate_address(owner, "owner address")
        if not await self.wallet.is_owner(owner):
            raise InvalidArgumentError("Address is not an owner")

        owners = await self.wallet.get_owners()
        threshold = await self.wallet.threshold()
        remaining = len(owners) - 1
        if remaining < threshold:
            raise WouldViolateInvariantError(
                f"Cannot remove owner: would reduce owners to {remaining}, but threshold is {threshold}. "
                f"Lower the threshold first (to {remaining} or less) or add more owners.",
                details={"owners": len(owners), "threshold": threshold},
            )

        logger.info(f"Proposing removal of {owner} ({len(owners)} owners, threshold {threshold})")
        return await self._propose_self_call("removeOwner", owner)

    async def change_threshold(self, new_threshold: int) -> str:
        if new_threshold < 1:
            raise InvalidArgumentError("Threshold must be at least 1")
        owners = await self.wallet.get_owners()
        if new_threshold > len(owners):
            raise InvalidArgumentError(f"Threshold cannot exceed number of owners ({len(owners)})")
        return await self._propose_self_call("changeThreshold", new_threshold)

    async def enable_module(self, module: str) -> str:
        module = validate_address(module, "module address")
        if await self.wallet.is_module_enabled(module):
            raise InvalidArgumentError("Module is already enabled")
        return await self._propose_self_call("enableModule", module)

    async def disable_module(self, module: str) -> str:
        module = validate_address(module, "module address")
        if not await self.wallet.is_module_enabled(module):
            raise InvalidArgumentError("Module is not enabled")
        return await self._propose_self_call("disableModule", module)

    async def propose_module_call(
        self,
        module: str,
        interface: ContractInterface,
        function: str,
        args: Sequence[Any] = (),
    ) -> str:
        """Propose ``module.function(*args)`` as a multisig operation from the vault."""
        module = validate_address(module, "module address")
        data = interface.encode_function_data(function, args)
        return await self.transactions.propose(module, 0, data)
