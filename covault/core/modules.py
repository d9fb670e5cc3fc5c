"""
Module Coordinator

Common plumbing for coordinators bound to one wallet module. Module
configuration is only accepted from the wallet itself, so every config
change is proposed as a multisig operation; module executions are signed
by a single owner or guardian and submitted straight to the module.
"""

import logging
from typing import Any, Optional, Type

from ..config import settings
from ..contracts.base import BoundContract
from ..providers.base import RemoteLedger, Signer
from ..services.address import validate_address
from .decoding import ErrorDecoder
from .errors import InvalidArgumentError, Messages, NotAuthorizedError, SignerRequiredError
from .gas import GasEstimationPolicy, GasPreset
from .governance import OwnerGovernance
from .models import Receipt
from .reconciler import EventLogReconciler
from .submission import TransactionSubmitter
from .transactions import TransactionCoordinator

logger = logging.getLogger(__name__)


class ModuleCoordinator:
    label = "Module"
    address_setting = ""
    binding: Type[BoundContract] = BoundContract

    def __init__(
        self,
        ledger: RemoteLedger,
        wallet_address: str,
        module_address: Optional[str] = None,
        signer: Optional[Signer] = None,
        *,
        transactions: Optional[TransactionCoordinator] = None,
        decoder: Optional[ErrorDecoder] = None,
        gas_policy: Optional[GasEstimationPolicy] = None,
        reconciler: Optional[EventLogReconciler] = None,
        submitter: Optional[TransactionSubmitter] = None,
    ):
        module_address = module_address or getattr(settings, self.address_setting, "")
        if not module_address:
            raise InvalidArgumentError(f"{self.label} module address not configured")

        self.ledger = ledger
        self.wallet_address = validate_address(wallet_address, "wallet address")
        self.module_address = validate_address(module_address, "module address")
        self.signer = signer
        self.decoder = decoder or ErrorDecoder()
        self.gas_policy = gas_policy or GasEstimationPolicy(self.decoder)
        self.reconciler = reconciler or EventLogReconciler()
        self.submitter = submitter or TransactionSubmitter(self.decoder)
        self.transactions = transactions or TransactionCoordinator(
            ledger,
            self.wallet_address,
            signer,
            decoder=self.decoder,
            gas_policy=self.gas_policy,
            reconciler=self.reconciler,
            submitter=self.submitter,
        )
        self.module = self.binding(ledger, self.module_address, signer, self.decoder)
        self.interface = self.module.interface

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_signer(self) -> Signer:
        if self.signer is None:
            raise SignerRequiredError()
        return self.signer

    async def _require_owner(self, address: str) -> None:
        if not await self.transactions.wallet.is_owner(address):
            raise NotAuthorizedError(Messages.NOT_OWNER, details={"address": address})

    async def _require_balance(self, value: int) -> None:
        balance = await self.wallet_balance()
        if balance < value:
            raise InvalidArgumentError(
                f"Insufficient balance: wallet has {balance}, trying to send {value}",
                details={"balance": balance, "value": value},
            )

    async def _propose(self, function: str, *args: Any) -> str:
        governance = OwnerGovernance(self.transactions)
        return await governance.propose_module_call(self.module_address, self.interface, function, args)

    async def _simulate_and_submit(
        self,
        operation: str,
        function: str,
        preset: GasPreset,
        *args: Any,
        context: str = "",
    ) -> Receipt:
        estimate = await self.gas_policy.estimate_or_raise(
            self.module.estimate_gas,
            (function, *args),
            operation,
            preset=preset,
            interface=self.interface,
        )
        receipt = await self.submitter.submit(
            lambda: self.module.submit(function, *args, gas_limit=estimate.gas_limit),
            operation,
            self.interface,
        )
        self.gas_policy.log_gas_usage(function, receipt, estimate.gas_limit)
        self.submitter.ensure_succeeded(receipt, "Transaction", context)
        return receipt

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def is_enabled(self) -> bool:
        return await self.transactions.wallet.is_module_enabled(self.module_address)

    async def wallet_balance(self) -> int:
        return await self.module.read("wallet balance", self.ledger.get_balance, self.wallet_address)

