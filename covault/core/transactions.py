"""
Transaction Coordinator

Drives the multisig operation lifecycle for one vault:

    Proposed -> Approved(n)* -> Executed
             -> Cancelled (hash reusable by a fresh proposal)

The ledger enforces every rule; this layer mirrors the rules to fail early
with a precise error, submits, and then re-reads the ledger so it never
reports success for a transition the ledger did not record.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from ..abi.definitions import MULTISIG_WALLET_INTERFACE
from ..abi.interface import hex_to_bytes, to_hex
from ..config import settings
from ..contracts.wallet import MultisigWallet
from ..logging_config import vault_operation
from ..providers.base import RemoteLedger, Signer
from ..services.address import same_address, validate_address, validate_tx_hash
from .decoding import ErrorDecoder
from .errors import (
    AlreadyApprovedError,
    AlreadyCancelledError,
    AlreadyExecutedError,
    DuplicateOperationError,
    InvalidArgumentError,
    Messages,
    NotApprovedError,
    NotAuthorizedError,
    NotFoundError,
    SignerRequiredError,
    SubmissionRevertedError,
    ThresholdNotMetError,
    WouldViolateInvariantError,
)
from .gas import COMPLEX, SELF_CALL, SIMPLE, STANDARD, GasEstimate, GasEstimationPolicy
from .hashing import compute_transaction_hash
from .models import PendingOperation, ProgressEvent, ProgressStage, Receipt, WalletConfig
from .reconciler import EventLogReconciler
from .submission import TransactionSubmitter, extract_event_value, receipt_has_event

logger = logging.getLogger(__name__)

Payload = Union[str, bytes]


def normalize_payload(payload: Optional[Payload]) -> str:
    if payload is None:
        return "0x"
    try:
        return to_hex(hex_to_bytes(payload))
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid payload: {payload!r}") from e


async def drain(stream: AsyncIterator[ProgressEvent]) -> Any:
    """Consume a progress stream and return the result of its completed event."""
    result = None
    async for event in stream:
        if event.stage == ProgressStage.COMPLETED:
            result = event.result
    return result


class TransactionCoordinator:
    def __init__(
        self,
        ledger: RemoteLedger,
        wallet_address: str,
        signer: Optional[Signer] = None,
        *,
        decoder: Optional[ErrorDecoder] = None,
        gas_policy: Optional[GasEstimationPolicy] = None,
        reconciler: Optional[EventLogReconciler] = None,
        submitter: Optional[TransactionSubmitter] = None,
        confirmation_timeout: Optional[float] = None,
    ):
        self.ledger = ledger
        self.wallet_address = validate_address(wallet_address, "wallet address")
        self.signer = signer
        self.decoder = decoder or ErrorDecoder()
        self.gas_policy = gas_policy or GasEstimationPolicy(self.decoder)
        self.reconciler = reconciler or EventLogReconciler()
        self.submitter = submitter or TransactionSubmitter(self.decoder, confirmation_timeout)
        self.wallet = MultisigWallet(ledger, self.wallet_address, signer, self.decoder)
        self.interface = MULTISIG_WALLET_INTERFACE

    def connect(self, signer: Optional[Signer]) -> "TransactionCoordinator":
        """Same vault and collaborators, different signer."""
        return TransactionCoordinator(
            self.ledger,
            self.wallet_address,
            signer,
            decoder=self.decoder,
            gas_policy=self.gas_policy,
            reconciler=self.reconciler,
            submitter=self.submitter,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_signer(self) -> Signer:
        if self.signer is None:
            raise SignerRequiredError()
        return self.signer

    async def _require_owner(self, address: str) -> None:
        if not await self.wallet.is_owner(address):
            raise NotAuthorizedError(
                f"Address {address} is not an owner of this wallet",
                details={"address": address},
            )

    async def _require_live(self, tx_hash: str, action: str) -> PendingOperation:
        operation = await self.wallet.get_transaction(tx_hash)
        if not operation.exists:
            raise NotFoundError(Messages.TX_NOT_FOUND, details={"hash": tx_hash})
        if operation.executed:
            raise AlreadyExecutedError(f"Cannot {action} an executed transaction", details={"hash": tx_hash})
        if operation.cancelled:
            raise AlreadyCancelledError(f"Cannot {action} a cancelled transaction", details={"hash": tx_hash})
        return operation

    async def _estimate(self, preset, function: str, *args: Any) -> GasEstimate:
        return await self.gas_policy.estimate_with_buffer(self.wallet.estimate_gas, (function, *args), preset)

    async def _submit(
        self,
        operation: str,
        function: str,
        *args: Any,
        gas_limit: Optional[int] = None,
        nonce: Optional[int] = None,
    ) -> Receipt:
        return await self.submitter.submit(
            lambda: self.wallet.submit(function, *args, gas_limit=gas_limit, nonce=nonce),
            operation,
            self.interface,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_transaction_hash(self, destination: str, value: int = 0, payload: Optional[Payload] = None) -> str:
        """Hash the ledger would assign to this proposal at the current nonce."""
        data = normalize_payload(payload)
        nonce = await self.wallet.nonce()
        tx_hash = await self.wallet.get_transaction_hash(destination, value, data, nonce)

        local_hash = compute_transaction_hash(destination, value, data, nonce)
        if local_hash != tx_hash:
            logger.warning(f"Local hash {local_hash} differs from ledger hash {tx_hash}; using ledger value")
        return tx_hash

    async def _approval_map(self, tx_hash: str, owners: List[str]) -> Dict[str, bool]:
        approvals: Dict[str, bool] = {}
        for owner in owners:
            approvals[owner.lower()] = await self.wallet.has_approved(tx_hash, owner)
        return approvals

    async def _load(self, tx_hash: str, owners: List[str], threshold: int) -> PendingOperation:
        operation = await self.wallet.get_transaction(tx_hash)
        operation.threshold = threshold
        if operation.exists:
            operation.approvals = await self._approval_map(tx_hash, owners)
        return operation

    async def get_operation(self, tx_hash: str) -> Optional[PendingOperation]:
        """Full snapshot with per-owner approvals; None when it does not exist."""
        tx_hash = validate_tx_hash(tx_hash)
        owners = await self.wallet.get_owners()
        threshold = await self.wallet.threshold()
        operation = await self._load(tx_hash, owners, threshold)
        return operation if operation.exists else None

    async def get_wallet_config(self, modules: Optional[List[str]] = None) -> WalletConfig:
        candidates = modules if modules is not None else settings.candidate_modules()
        enabled = []
        for module in candidates:
            if await self.wallet.is_module_enabled(module):
                enabled.append(validate_address(module, "module address"))
        return WalletConfig(
            address=self.wallet_address,
            owners=await self.wallet.get_owners(),
            threshold=await self.wallet.threshold(),
            modules=enabled,
            nonce=await self.wallet.nonce(),
        )

    async def _list(self, event: str, keep) -> List[PendingOperation]:
        owners = await self.wallet.get_owners()
        threshold = await self.wallet.threshold()
        return await self.reconciler.reconcile(
            self.wallet,
            event,
            "txHash",
            fetch=lambda tx_hash: self._load(tx_hash, owners, threshold),
            keep=keep,
            sort_key=lambda operation: operation.timestamp,
        )

    async def list_pending(self) -> List[PendingOperation]:
        return await self._list("TransactionProposed", lambda op: op.is_live)

    async def list_executed(self) -> List[PendingOperation]:
        return await self._list("TransactionExecuted", lambda op: op.exists and op.executed)

    async def list_cancelled(self) -> List[PendingOperation]:
        return await self._list("TransactionCancelled", lambda op: op.exists and op.cancelled)

    # ------------------------------------------------------------------
    # Propose
    # ------------------------------------------------------------------

    async def propose_stream(
        self,
        destination: str,
        value: int = 0,
        payload: Optional[Payload] = None,
    ) -> AsyncIterator[ProgressEvent]:
        signer = self._require_signer()
        destination = validate_address(destination, "destination")
        if value < 0:
            raise InvalidArgumentError("Value cannot be negative")
        data = normalize_payload(payload)

        await self._require_owner(signer.address)

        tx_hash = await self.get_transaction_hash(destination, value, data)
        existing = await self.wallet.get_transaction(tx_hash)
        overwrite = False
        if existing.exists:
            if existing.executed:
                raise AlreadyExecutedError("This transaction was already executed", details={"hash": tx_hash})
            if not existing.cancelled:
                raise DuplicateOperationError(tx_hash, existing.num_approvals, await self.wallet.threshold())
            logger.info(f"Transaction {tx_hash} exists but is cancelled; re-proposing will overwrite it")
            overwrite = True

        nonce = None
        if same_address(destination, self.wallet_address):
            # Simulating a self-call is unreliable; use the preset and pin the nonce
            gas_limit = SELF_CALL.default_gas
            nonce = await self.wallet.pending_nonce()
        elif overwrite:
            gas_limit = STANDARD.default_gas
        else:
            estimate = await self.gas_policy.estimate_or_raise(
                self.wallet.estimate_gas,
                ("proposeTransaction", destination, value, data),
                "propose transaction",
                preset=STANDARD,
                interface=self.interface,
            )
            gas_limit = estimate.gas_limit

        receipt: Optional[Receipt] = None
        async for event in self.submitter.stream(
            lambda: self.wallet.submit(
                "proposeTransaction", destination, value, data, gas_limit=gas_limit, nonce=nonce
            ),
            "propose transaction",
            self.interface,
        ):
            if event.stage == ProgressStage.CONFIRMED:
                receipt = event.receipt
            yield event

        self.submitter.ensure_succeeded(receipt, "Transaction proposal")
        proposed_hash = extract_event_value(
            receipt, self.interface, "TransactionProposed", "txHash", address=self.wallet_address
        )

        operation = await self.wallet.get_transaction(proposed_hash)
        if not operation.is_live:
            raise SubmissionRevertedError(
                "Proposal confirmed but the transaction is not pending on-chain",
                receipt=receipt,
                details={"hash": proposed_hash},
            )

        logger.info(f"Transaction proposed: {proposed_hash}")
        yield ProgressEvent(ProgressStage.COMPLETED, tx_hash=receipt.tx_hash, receipt=receipt, result=proposed_hash)

    @vault_operation
    async def propose(self, destination: str, value: int = 0, payload: Optional[Payload] = None) -> str:
        """
        Propose a call from the vault.

        Returns:
            The operation hash recovered from the TransactionProposed event
        """
        return await drain(self.propose_stream(destination, value, payload))

    # ------------------------------------------------------------------
    # Approve / revoke
    # ------------------------------------------------------------------

    @vault_operation
    async def approve(self, tx_hash: str) -> Receipt:
        signer = self._require_signer()
        tx_hash = validate_tx_hash(tx_hash)

        await self._require_live(tx_hash, "approve")
        await self._require_owner(signer.address)
        if await self.wallet.has_approved(tx_hash, signer.address):
            raise AlreadyApprovedError(Messages.ALREADY_APPROVED, details={"hash": tx_hash})

        estimate = await self._estimate(STANDARD, "approveTransaction", tx_hash)
        receipt = await self._submit("approve transaction", "approveTransaction", tx_hash, gas_limit=estimate.gas_limit)
        self.submitter.ensure_succeeded(receipt, "Approval")

        if not await self.wallet.has_approved(tx_hash, signer.address):
            raise SubmissionRevertedError("Approval was not recorded on-chain", receipt=receipt)
        return receipt

    @vault_operation
    async def revoke(self, tx_hash: str) -> Receipt:
        signer = self._require_signer()
        tx_hash = validate_tx_hash(tx_hash)

        await self._require_live(tx_hash, "revoke approval for")
        if not await self.wallet.has_approved(tx_hash, signer.address):
            raise NotApprovedError(Messages.NOT_APPROVED, details={"hash": tx_hash})

        estimate = await self._estimate(SIMPLE, "revokeApproval", tx_hash)
        nonce = await self.wallet.pending_nonce()
        receipt = await self._submit(
            "revoke approval", "revokeApproval", tx_hash, gas_limit=estimate.gas_limit, nonce=nonce
        )
        self.submitter.ensure_succeeded(receipt, "Revoke approval transaction")

        if await self.wallet.has_approved(tx_hash, signer.address):
            raise SubmissionRevertedError(
                "Approval revocation may have failed - approval still exists on-chain",
                receipt=receipt,
            )
        return receipt

    # ------------------------------------------------------------------
    # Cancel
    # ------------------------------------------------------------------

    @vault_operation
    async def cancel(self, tx_hash: str) -> Receipt:
        signer = self._require_signer()
        tx_hash = validate_tx_hash(tx_hash)

        operation = await self._require_live(tx_hash, "cancel")
        await self._require_owner(signer.address)

        if not same_address(operation.proposer, signer.address):
            threshold = await self.wallet.threshold()
            if operation.num_approvals < threshold:
                raise ThresholdNotMetError(
                    f"Only the proposer can cancel immediately. To cancel as non-proposer, "
                    f"needs {threshold} approvals (has {operation.num_approvals})",
                    current=operation.num_approvals,
                    required=threshold,
                )

        estimate = await self.gas_policy.estimate_or_raise(
            self.wallet.estimate_gas,
            ("cancelTransaction", tx_hash),
            "cancel transaction",
            preset=STANDARD,
            interface=self.interface,
        )
        receipt = await self._submit("cancel transaction", "cancelTransaction", tx_hash, gas_limit=estimate.gas_limit)

        # The ledger's flag decides, whatever the receipt says
        if not (await self.wallet.get_transaction(tx_hash)).cancelled:
            raise SubmissionRevertedError(
                "Transaction cancellation failed" + (" (reverted)" if receipt.status == 0 else ""),
                receipt=receipt,
            )
        return receipt

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    async def _check_self_call(self, operation: PendingOperation) -> None:
        """Refuse owner-set changes that would leave the vault unusable."""
        try:
            function, args = self.interface.decode_function_data(operation.data)
        except Exception:
            logger.debug(f"Self-call {operation.hash} is not a wallet function; skipping checks")
            return

        if function == "removeOwner":
            owners = await self.wallet.get_owners()
            threshold = await self.wallet.threshold()
            if len(owners) - 1 < threshold:
                raise WouldViolateInvariantError(
                    f"Cannot remove owner: would reduce owners to {len(owners) - 1}, "
                    f"but threshold is {threshold}. Lower the threshold first.",
                    details={"owners": len(owners), "threshold": threshold},
                )
        elif function == "changeThreshold":
            owners = await self.wallet.get_owners()
            new_threshold = args[0]
            if new_threshold < 1 or new_threshold > len(owners):
                raise WouldViolateInvariantError(
                    f"Cannot change threshold to {new_threshold}: must be between 1 and {len(owners)}",
                    details={"owners": len(owners), "threshold": new_threshold},
                )

    @vault_operation
    async def execute(self, tx_hash: str) -> Receipt:
        self._require_signer()
        tx_hash = validate_tx_hash(tx_hash)

        operation = await self._require_live(tx_hash, "execute")
        threshold = await self.wallet.threshold()
        if operation.num_approvals < threshold:
            raise ThresholdNotMetError(
                Messages.not_enough_approvals(operation.num_approvals, threshold),
                current=operation.num_approvals,
                required=threshold,
            )
        if same_address(operation.to, self.wallet_address) and operation.data != "0x":
            await self._check_self_call(operation)

        logger.info(f"Executing {tx_hash} (to {operation.to}, value {operation.value}, approvals {operation.num_approvals})")

        estimate = await self._estimate(COMPLEX, "executeTransaction", tx_hash)
        receipt = await self._submit("execute transaction", "executeTransaction", tx_hash, gas_limit=estimate.gas_limit)
        self.gas_policy.log_gas_usage("executeTransaction", receipt, estimate.gas_limit)
        self.submitter.ensure_succeeded(receipt, "Transaction execution")

        if not (await self.wallet.get_transaction(tx_hash)).executed:
            raise SubmissionRevertedError("Execution confirmed but the transaction is not executed on-chain", receipt=receipt)
        return receipt

    @vault_operation
    async def approve_and_execute(self, tx_hash: str) -> bool:
        """
        Approve and, if that meets the threshold, execute in one submission.

        Returns:
            True if the operation executed, False if it was only approved
        """
        signer = self._require_signer()
        tx_hash = validate_tx_hash(tx_hash)

        operation = await self._require_live(tx_hash, "approve")
        await self._require_owner(signer.address)
        if await self.wallet.has_approved(tx_hash, signer.address):
            raise AlreadyApprovedError(Messages.ALREADY_APPROVED, details={"hash": tx_hash})

        threshold = await self.wallet.threshold()
        logger.info(f"Approving {tx_hash} ({operation.num_approvals}/{threshold} approvals before)")

        estimate = await self._estimate(COMPLEX, "approveAndExecute", tx_hash)
        receipt = await self._submit("approve and execute", "approveAndExecute", tx_hash, gas_limit=estimate.gas_limit)
        self.gas_policy.log_gas_usage("approveAndExecute", receipt, estimate.gas_limit)
        self.submitter.ensure_succeeded(receipt, "Transaction")

        executed = receipt_has_event(
            receipt, self.interface, "TransactionExecuted", "txHash", tx_hash, address=self.wallet_address
        )
        current = await self.wallet.get_transaction(tx_hash)
        if executed and not current.executed:
            raise SubmissionRevertedError(
                "Receipt reports execution but the transaction is not executed on-chain",
                receipt=receipt,
            )
        if not current.executed and not await self.wallet.has_approved(tx_hash, signer.address):
            raise SubmissionRevertedError("Approval was not recorded on-chain", receipt=receipt)
        if current.executed and not executed:
            logger.warning(f"{tx_hash} is executed on-chain but the receipt carried no execution event")

        return current.executed
