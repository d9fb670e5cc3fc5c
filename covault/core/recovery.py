"""
Recovery Coordinator

Guardian-driven recovery of a vault through the social recovery module:

    (setup via multisig) -> Initiated -> Approved(n)* -> Executed
                                      -> Cancelled by an owner

``execution_time == 0`` is the only authoritative "cancelled / never
initiated" signal. The module does not clear guardian approval flags on
cancel, so a raw flag is only trusted while the request is live and has a
non-zero approval count.
"""

import logging
from typing import AsyncIterator, List, Optional, Sequence

from ..contracts.recovery_module import SocialRecoveryModule
from ..logging_config import vault_operation
from ..services.address import validate_address, validate_addresses, validate_tx_hash
from .errors import (
    AlreadyApprovedError,
    AlreadyExecutedError,
    InvalidArgumentError,
    Messages,
    NotApprovedError,
    NotAuthorizedError,
    NotFoundError,
    SubmissionRevertedError,
    ThresholdNotMetError,
    TimelockActiveError,
)
from .gas import COMPLEX, RECOVERY_EXECUTE, STANDARD
from .hashing import compute_recovery_hash
from .models import ProgressEvent, ProgressStage, Receipt, RecoveryConfig, RecoveryRequest
from .modules import ModuleCoordinator
from .submission import extract_event_value
from .transactions import drain

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400


class RecoveryCoordinator(ModuleCoordinator):
    label = "Social recovery"
    address_setting = "social_recovery_module_address"
    binding = SocialRecoveryModule

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_guardian(self, address: str) -> None:
        if not await self.module.is_guardian(self.wallet_address, address):
            raise NotAuthorizedError(Messages.NOT_GUARDIAN, details={"address": address})

    async def _require_live(self, recovery_hash: str) -> RecoveryRequest:
        request = await self.module.get_recovery(self.wallet_address, recovery_hash)
        if not request.exists:
            raise NotFoundError(Messages.RECOVERY_NOT_FOUND, details={"hash": recovery_hash})
        if request.executed:
            raise AlreadyExecutedError(Messages.RECOVERY_EXECUTED, details={"hash": recovery_hash})
        return request

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_config(self) -> RecoveryConfig:
        return await self.module.get_recovery_config(self.wallet_address)

    async def is_guardian(self, address: str) -> bool:
        return await self.module.is_guardian(self.wallet_address, validate_address(address))

    async def get_recovery(self, recovery_hash: str) -> RecoveryRequest:
        return await self.module.get_recovery(self.wallet_address, validate_tx_hash(recovery_hash))

    async def has_approved(self, recovery_hash: str, guardian: str) -> bool:
        """
        Whether ``guardian`` has a live approval on the request.

        False when the request is cancelled, never initiated, or executed,
        and when the raw flag is set but the approval count is zero.
        """
        recovery_hash = validate_tx_hash(recovery_hash)
        request = await self.module.get_recovery(self.wallet_address, recovery_hash)
        if not request.exists or request.executed:
            return False

        flag = await self.module.approval_flag(self.wallet_address, recovery_hash, guardian)
        if flag and request.approval_count == 0:
            logger.debug(f"Ignoring stale approval flag for {guardian} on {recovery_hash}")
            return False
        return flag

    async def get_recovery_hash(self, new_owners: Sequence[str], new_threshold: int) -> str:
        owners = validate_addresses(new_owners, "owner address")
        return await self.module.get_recovery_hash(self.wallet_address, owners, new_threshold)

    async def list_pending(self) -> List[RecoveryRequest]:
        return await self.reconciler.reconcile(
            self.module,
            "RecoveryInitiated",
            "recoveryHash",
            fetch=lambda recovery_hash: self.module.get_recovery(self.wallet_address, recovery_hash),
            keep=lambda request: request.is_live,
            filters={"wallet": self.wallet_address},
            sort_key=lambda request: request.execution_time,
        )

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    @vault_operation
    async def setup_config(self, guardians: Sequence[str], threshold: int, period_days: int) -> str:
        """
        Propose the guardian configuration as a multisig operation.

        Returns:
            Hash of the multisig proposal
        """
        unique: List[str] = []
        for guardian in validate_addresses(guardians, "guardian address"):
            if guardian.lower() not in {g.lower() for g in unique}:
                unique.append(guardian)

        if not unique:
            raise InvalidArgumentError("At least one guardian is required")
        if threshold < 1 or threshold > len(unique):
            raise InvalidArgumentError(f"Invalid threshold: must be between 1 and {len(unique)}")
        period_seconds = int(period_days * SECONDS_PER_DAY)
        if period_seconds < SECONDS_PER_DAY:
            raise InvalidArgumentError("Recovery period must be at least 1 day")

        return await self._propose("setupRecovery", self.wallet_address, unique, threshold, period_seconds)

    # ------------------------------------------------------------------
    # Initiate
    # ------------------------------------------------------------------

    async def initiate_stream(self, new_owners: Sequence[str], new_threshold: int) -> AsyncIterator[ProgressEvent]:
        signer = self._require_signer()

        owners = validate_addresses(new_owners, "owner address")
        if not owners:
            raise InvalidArgumentError("At least one new owner is required")
        if len({owner.lower() for owner in owners}) != len(owners):
            raise InvalidArgumentError("Duplicate address in new owners")
        if new_threshold < 1 or new_threshold > len(owners):
            raise InvalidArgumentError(f"Invalid threshold: must be between 1 and {len(owners)}")

        await self._require_guardian(signer.address)

        args = (self.wallet_address, owners, new_threshold)
        estimate = await self.gas_policy.estimate_or_raise(
            self.module.estimate_gas,
            ("initiateRecovery", *args),
            "initiate recovery",
            preset=COMPLEX,
            interface=self.interface,
        )
        nonce = await self.module.recovery_nonce(self.wallet_address)

        receipt: Optional[Receipt] = None
        async for event in self.submitter.stream(
            lambda: self.module.submit("initiateRecovery", *args, gas_limit=estimate.gas_limit),
            "initiate recovery",
            self.interface,
        ):
            if event.stage == ProgressStage.CONFIRMED:
                receipt = event.receipt
            yield event

        self.submitter.ensure_succeeded(receipt, "Transaction")
        recovery_hash = extract_event_value(
            receipt, self.interface, "RecoveryInitiated", "recoveryHash", address=self.module_address
        )

        local_hash = compute_recovery_hash(self.wallet_address, owners, new_threshold, nonce)
        if local_hash != recovery_hash:
            logger.warning(f"Local recovery hash {local_hash} differs from emitted {recovery_hash}")

        request = await self.module.get_recovery(self.wallet_address, recovery_hash)
        if not request.is_live:
            raise SubmissionRevertedError(
                "Recovery confirmed but it is not pending on-chain",
                receipt=receipt,
                details={"hash": recovery_hash},
            )

        logger.info(f"Recovery initiated: {recovery_hash} (executable at {request.execution_time})")
        yield ProgressEvent(ProgressStage.COMPLETED, tx_hash=receipt.tx_hash, receipt=receipt, result=recovery_hash)

    @vault_operation
    async def initiate(self, new_owners: Sequence[str], new_threshold: int) -> str:
        return await drain(self.initiate_stream(new_owners, new_threshold))

    # ------------------------------------------------------------------
    # Approve / revoke
    # ------------------------------------------------------------------

    @vault_operation
    async def approve(self, recovery_hash: str) -> Receipt:
        signer = self._require_signer()
        recovery_hash = validate_tx_hash(recovery_hash)

        await self._require_guardian(signer.address)
        await self._require_live(recovery_hash)
        if await self.has_approved(recovery_hash, signer.address):
            raise AlreadyApprovedError("You have already approved this recovery", details={"hash": recovery_hash})

        receipt = await self._simulate_and_submit(
            "approve recovery", "approveRecovery", STANDARD, self.wallet_address, recovery_hash
        )

        if not await self.has_approved(recovery_hash, signer.address):
            raise SubmissionRevertedError("Recovery approval was not recorded on-chain", receipt=receipt)
        return receipt

    @vault_operation
    async def revoke_approval(self, recovery_hash: str) -> Receipt:
        signer = self._require_signer()
        recovery_hash = validate_tx_hash(recovery_hash)

        await self._require_guardian(signer.address)
        await self._require_live(recovery_hash)
        if not await self.has_approved(recovery_hash, signer.address):
            raise NotApprovedError("You have not approved this recovery", details={"hash": recovery_hash})

        receipt = await self._simulate_and_submit(
            "revoke recovery approval", "revokeRecoveryApproval", STANDARD, self.wallet_address, recovery_hash
        )

        if await self.module.approval_flag(self.wallet_address, recovery_hash, signer.address):
            raise SubmissionRevertedError("Recovery approval still exists on-chain", receipt=receipt)
        return receipt

    # ------------------------------------------------------------------
    # Execute / cancel
    # ------------------------------------------------------------------

    @vault_operation
    async def execute(self, recovery_hash: str) -> Receipt:
        self._require_signer()
        recovery_hash = validate_tx_hash(recovery_hash)

        request = await self._require_live(recovery_hash)
        config = await self.get_config()
        if request.approval_count < config.threshold:
            raise ThresholdNotMetError(
                Messages.not_enough_approvals(request.approval_count, config.threshold),
                current=request.approval_count,
                required=config.threshold,
            )

        now = await self.module.read("block timestamp", self.ledger.get_block_timestamp)
        if now < request.execution_time:
            raise TimelockActiveError(
                f"Recovery period has not elapsed: executable in {request.execution_time - now}s",
                details={"executionTime": request.execution_time, "now": now},
            )

        receipt = await self._simulate_and_submit(
            "execute recovery", "executeRecovery", RECOVERY_EXECUTE, self.wallet_address, recovery_hash
        )

        if not (await self.module.get_recovery(self.wallet_address, recovery_hash)).executed:
            raise SubmissionRevertedError("Recovery confirmed but not executed on-chain", receipt=receipt)
        return receipt

    @vault_operation
    async def cancel(self, recovery_hash: str) -> Receipt:
        signer = self._require_signer()
        recovery_hash = validate_tx_hash(recovery_hash)

        await self._require_owner(signer.address)
        await self._require_live(recovery_hash)

        receipt = await self._simulate_and_submit(
            "cancel recovery", "cancelRecovery", STANDARD, self.wallet_address, recovery_hash
        )

        if (await self.module.get_recovery(self.wallet_address, recovery_hash)).exists:
            raise SubmissionRevertedError("Recovery cancellation not reflected on-chain", receipt=receipt)
        return receipt
