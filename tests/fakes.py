"""
In-memory ledger for tests.

FakeChain speaks the same ABI as the real contracts: calls arrive as encoded
calldata, results and events leave ABI-encoded, and reverts carry
Error(string) or custom-error payloads. Coordinators are therefore exercised
through their real codec paths.
"""

import copy
import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from eth_utils import to_checksum_address

from covault.abi.definitions import (
    DAILY_LIMIT_INTERFACE,
    MULTISIG_WALLET_INTERFACE,
    SOCIAL_RECOVERY_INTERFACE,
    WHITELIST_INTERFACE,
)
from covault.core.errors import ConfirmationTimeoutError, LogRangeTooLargeError
from covault.core.hashing import compute_recovery_hash, compute_transaction_hash
from covault.core.models import ZERO_ADDRESS, LogEntry, Receipt
from covault.providers.base import LedgerCallError, RemoteLedger, Signer, SubmissionHandle

ONE_DAY = 86_400


def addr(n: int) -> str:
    return to_checksum_address(f"0x{n:040x}")


WALLET = addr(0x1000)
MODULE = addr(0x2000)
DAILY_MODULE = addr(0x3000)
WHITELIST_MODULE = addr(0x4000)
OWNER_A = addr(0xA1)
OWNER_B = addr(0xB2)
OWNER_C = addr(0xC3)
OUTSIDER = addr(0xDD)
GUARDIAN_1 = addr(0x6001)
GUARDIAN_2 = addr(0x6002)
GUARDIAN_3 = addr(0x6003)
NEW_OWNER_1 = addr(0x7001)
NEW_OWNER_2 = addr(0x7002)
RECIPIENT = addr(0xBEEF)


class Revert(Exception):
    def __init__(self, data: str):
        super().__init__(data)
        self.data = data


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise Revert(MULTISIG_WALLET_INTERFACE.encode_error("Error", [message]))


def _custom(name: str, *args: Any) -> Revert:
    return Revert(SOCIAL_RECOVERY_INTERFACE.encode_error(name, args))


def _same(a: str, b: str) -> bool:
    return a.lower() == b.lower()


@dataclass
class WalletState:
    owners: List[str]
    threshold: int
    nonce: int = 0
    transactions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    approvals: Dict[Tuple[str, str], bool] = field(default_factory=dict)
    modules: Set[str] = field(default_factory=set)


@dataclass
class ModuleState:
    guardians: List[str] = field(default_factory=list)
    threshold: int = 0
    period: int = 0
    nonce: int = 0
    recoveries: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    approvals: Dict[Tuple[str, str], bool] = field(default_factory=dict)


@dataclass
class DailyLimitState:
    limit: int = 0
    spent: int = 0
    last_reset: int = 0


@dataclass
class WhitelistState:
    limits: Dict[str, int] = field(default_factory=dict)


class SignatureRejected(Exception):
    code = 4001

    def __init__(self):
        super().__init__("User rejected the request")
        self.message = "User rejected the request"


class FakeSigner(Signer):
    def __init__(self, address: str, reject: bool = False):
        self._address = address
        self.reject = reject
        self.signed: List[Dict[str, Any]] = []

    @property
    def address(self) -> str:
        return self._address

    async def sign_transaction(self, tx: Dict[str, Any]) -> str:
        if self.reject:
            raise SignatureRejected()
        self.signed.append(tx)
        return "0x" + "00" * 8


class FakeHandle(SubmissionHandle):
    def __init__(self, tx_hash: str, receipt: Receipt, hang: bool = False):
        self.tx_hash = tx_hash
        self.receipt = receipt
        self.hang = hang

    async def wait(self, timeout: Optional[float] = None) -> Receipt:
        if self.hang:
            raise ConfirmationTimeoutError(self.tx_hash, timeout or 0)
        return self.receipt


class FakeChain(RemoteLedger):
    """One multisig wallet plus its social recovery, daily limit and whitelist modules."""

    name = "fake"

    def __init__(self, owners: List[str], threshold: int, wallet: str = WALLET, module: str = MODULE):
        self.wallet_address = wallet
        self.module_address = module
        self.wallet = WalletState(owners=list(owners), threshold=threshold)
        self.recovery = ModuleState()
        self.daily_module = DAILY_MODULE
        self.whitelist_module = WHITELIST_MODULE
        self.daily = DailyLimitState()
        self.whitelist = WhitelistState()
        self.balances: Dict[str, int] = {}
        self.block = 10_000
        self.now = 1_700_000_000
        self.logs: List[LogEntry] = []
        self.sent: List[Dict[str, Any]] = []
        self.estimates: List[str] = []
        self.log_queries: List[int] = []
        self.account_nonces: Dict[str, int] = {}

        # Behaviour switches
        self.range_limit: Optional[int] = None
        self.fail_estimates: Set[str] = set()
        self.force_revert: Set[str] = set()
        self.suppress_logs = False
        self.predecode_logs = False
        self.corrupt_log_data = False
        self.hang = False

        self._tx_counter = itertools.count(1)
        self._pending_logs: List[LogEntry] = []

    def advance(self, seconds: int) -> None:
        self.now += seconds

    def sent_functions(self) -> List[str]:
        return [entry["function"] for entry in self.sent]

    # ------------------------------------------------------------------
    # RemoteLedger
    # ------------------------------------------------------------------

    def _interface_for(self, to: str):
        if _same(to, self.wallet_address):
            return MULTISIG_WALLET_INTERFACE
        if _same(to, self.module_address):
            return SOCIAL_RECOVERY_INTERFACE
        if _same(to, self.daily_module):
            return DAILY_LIMIT_INTERFACE
        if _same(to, self.whitelist_module):
            return WHITELIST_INTERFACE
        return None

    async def call(self, to: str, data: str, from_address: Optional[str] = None) -> str:
        interface = self._interface_for(to)
        name, args = interface.decode_function_data(data)
        values = getattr(self, f"_view_{name}")(*args)
        return interface.encode_function_result(name, values)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        interface = self._interface_for(tx["to"])
        name, _ = interface.decode_function_data(tx["data"])
        self.estimates.append(name)
        if name in self.fail_estimates:
            raise LedgerCallError("gas estimation unavailable")

        snapshot = self._snapshot()
        try:
            self._execute(tx["to"], tx["data"], tx.get("from") or ZERO_ADDRESS)
        except Revert as e:
            raise LedgerCallError("execution reverted", code=3, data=e.data)
        finally:
            self._restore(snapshot)
            self._pending_logs = []
        return 60_000

    async def send_transaction(self, tx: Dict[str, Any], signer: Signer) -> SubmissionHandle:
        await signer.sign_transaction(tx)

        sender = signer.address
        interface = self._interface_for(tx["to"])
        name, args = interface.decode_function_data(tx["data"])
        self.sent.append({
            "function": name,
            "args": args,
            "gas": tx.get("gas"),
            "nonce": tx.get("nonce"),
            "from": sender,
        })
        key = sender.lower()
        self.account_nonces[key] = self.account_nonces.get(key, 0) + 1
        self.block += 1
        tx_hash = f"0x{next(self._tx_counter):064x}"

        status = 1
        logs: List[LogEntry] = []
        if name in self.force_revert:
            status = 0
        else:
            snapshot = self._snapshot()
            try:
                self._execute(tx["to"], tx["data"], sender)
            except Revert:
                self._restore(snapshot)
                status = 0
            else:
                for log in self._pending_logs:
                    log.tx_hash = tx_hash
                    logs.append(log)
                self.logs.extend(logs)
            finally:
                self._pending_logs = []

        receipt_logs = [] if self.suppress_logs else [self._present(log) for log in logs]
        receipt = Receipt(tx_hash=tx_hash, status=status, logs=receipt_logs, gas_used=45_000, block_number=self.block)
        return FakeHandle(tx_hash, receipt, hang=self.hang)

    async def get_logs(
        self,
        address: str,
        topics: List[Optional[str]],
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[LogEntry]:
        self.log_queries.append(self.block - from_block)
        if self.range_limit is not None and self.block - from_block > self.range_limit:
            raise LogRangeTooLargeError(f"query exceeds maximum limit of {self.range_limit} blocks")

        matches = []
        for log in self.logs:
            if not _same(log.address, address):
                continue
            if log.block_number < from_block or (to_block is not None and log.block_number > to_block):
                continue
            if all(
                topic is None or (i < len(log.topics) and log.topics[i].lower() == topic.lower())
                for i, topic in enumerate(topics)
            ):
                matches.append(log)
        return matches

    async def block_number(self) -> int:
        return self.block

    async def get_block_timestamp(self, block: Optional[int] = None) -> int:
        return self.now

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return self.account_nonces.get(address.lower(), 0)

    async def get_balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)

    # ------------------------------------------------------------------
    # Execution plumbing
    # ------------------------------------------------------------------

    def _snapshot(self):
        return copy.deepcopy((self.wallet, self.recovery, self.daily, self.whitelist, self.balances))

    def _restore(self, snapshot) -> None:
        self.wallet, self.recovery, self.daily, self.whitelist, self.balances = snapshot

    def _execute(self, to: str, data: str, sender: str) -> Any:
        interface = self._interface_for(to)
        if interface is None or data in ("", "0x"):
            return None
        name, args = interface.decode_function_data(data)
        return getattr(self, f"_tx_{name}")(sender, *args)

    def _emit(self, contract: str, interface, event: str, **args: Any) -> None:
        topics, data = interface.encode_log(event, args)
        self._pending_logs.append(LogEntry(address=contract, topics=topics, data=data, block_number=self.block))

    def _present(self, log: LogEntry) -> LogEntry:
        shown = copy.copy(log)
        if self.predecode_logs:
            parsed = self._interface_for(log.address).parse_log(log)
            shown.event = parsed.name
            shown.args = parsed.args
        if self.corrupt_log_data:
            shown.data = "0x"
        return shown

    # ------------------------------------------------------------------
    # Wallet: views
    # ------------------------------------------------------------------

    def _is_owner(self, address: str) -> bool:
        return any(_same(owner, address) for owner in self.wallet.owners)

    def _view_isOwner(self, owner):
        return [self._is_owner(owner)]

    def _view_getOwners(self):
        return [list(self.wallet.owners)]

    def _view_threshold(self):
        return [self.wallet.threshold]

    def _view_nonce(self):
        return [self.wallet.nonce]

    def _view_modules(self, module):
        return [module.lower() in self.wallet.modules]

    def _view_getTransactionHash(self, to, value, data, nonce):
        return [compute_transaction_hash(to, value, data, nonce)]

    def _view_getTransaction(self, tx_hash):
        tx = self.wallet.transactions.get(tx_hash.lower())
        if tx is None:
            return [ZERO_ADDRESS, 0, "0x", False, False, 0, 0, ZERO_ADDRESS]
        return [
            tx["to"], tx["value"], tx["data"], tx["executed"], tx["cancelled"],
            tx["num_approvals"], tx["timestamp"], tx["proposer"],
        ]

    def _view_hasApproved(self, tx_hash, owner):
        return [self.wallet.approvals.get((tx_hash.lower(), owner.lower()), False)]

    # ------------------------------------------------------------------
    # Wallet: transactions
    # ------------------------------------------------------------------

    def _emit_wallet(self, event: str, **args: Any) -> None:
        self._emit(self.wallet_address, MULTISIG_WALLET_INTERFACE, event, **args)

    def _get_tx(self, tx_hash: str) -> Dict[str, Any]:
        tx = self.wallet.transactions.get(tx_hash.lower())
        _require(tx is not None, "Transaction does not exist")
        return tx

    def _tx_proposeTransaction(self, sender, to, value, data):
        _require(self._is_owner(sender), "Not an owner")
        tx_hash = compute_transaction_hash(to, value, data, self.wallet.nonce)
        existing = self.wallet.transactions.get(tx_hash)
        if existing is not None:
            _require(existing["cancelled"], "Transaction already exists")
            for key in [k for k in self.wallet.approvals if k[0] == tx_hash]:
                del self.wallet.approvals[key]
        self.wallet.transactions[tx_hash] = {
            "to": to,
            "value": value,
            "data": data,
            "executed": False,
            "cancelled": False,
            "num_approvals": 0,
            "timestamp": self.now,
            "proposer": sender,
        }
        self._emit_wallet("TransactionProposed", txHash=tx_hash, proposer=sender, to=to, value=value, data=data)
        return tx_hash

    def _tx_approveTransaction(self, sender, tx_hash):
        _require(self._is_owner(sender), "Not an owner")
        tx = self._get_tx(tx_hash)
        _require(not tx["executed"], "Transaction already executed")
        _require(not tx["cancelled"], "Transaction cancelled")
        key = (tx_hash.lower(), sender.lower())
        _require(not self.wallet.approvals.get(key), "Already approved")
        self.wallet.approvals[key] = True
        tx["num_approvals"] += 1
        self._emit_wallet("TransactionApproved", txHash=tx_hash, approver=sender)

    def _tx_revokeApproval(self, sender, tx_hash):
        _require(self._is_owner(sender), "Not an owner")
        tx = self._get_tx(tx_hash)
        _require(not tx["executed"], "Transaction already executed")
        _require(not tx["cancelled"], "Transaction cancelled")
        key = (tx_hash.lower(), sender.lower())
        _require(self.wallet.approvals.get(key, False), "Not approved")
        self.wallet.approvals[key] = False
        tx["num_approvals"] -= 1
        self._emit_wallet("ApprovalRevoked", txHash=tx_hash, owner=sender)

    def _tx_cancelTransaction(self, sender, tx_hash):
        _require(self._is_owner(sender), "Not an owner")
        tx = self._get_tx(tx_hash)
        _require(not tx["executed"], "Transaction already executed")
        _require(not tx["cancelled"], "Transaction already cancelled")
        if not _same(sender, tx["proposer"]):
            _require(tx["num_approvals"] >= self.wallet.threshold, "Not enough approvals to cancel")
        tx["cancelled"] = True
        self._emit_wallet("TransactionCancelled", txHash=tx_hash, canceller=sender)

    def _tx_executeTransaction(self, sender, tx_hash):
        _require(self._is_owner(sender), "Not an owner")
        tx = self._get_tx(tx_hash)
        _require(not tx["executed"], "Transaction already executed")
        _require(not tx["cancelled"], "Transaction cancelled")
        _require(tx["num_approvals"] >= self.wallet.threshold, "Not enough approvals")
        tx["executed"] = True
        self.wallet.nonce += 1
        try:
            self._execute(tx["to"], tx["data"], self.wallet_address)
        except Revert as e:
            raise Revert(MULTISIG_WALLET_INTERFACE.encode_error("TransactionExecutionFailed", [e.data]))
        self._emit_wallet("TransactionExecuted", txHash=tx_hash, executor=sender)

    def _tx_approveAndExecute(self, sender, tx_hash):
        self._tx_approveTransaction(sender, tx_hash)
        if self._get_tx(tx_hash)["num_approvals"] >= self.wallet.threshold:
            self._tx_executeTransaction(sender, tx_hash)
            return True
        return False

    def _only_wallet(self, sender: str) -> None:
        _require(_same(sender, self.wallet_address), "Only wallet can call")

    def _tx_addOwner(self, sender, owner):
        self._only_wallet(sender)
        _require(not self._is_owner(owner), "Already an owner")
        self.wallet.owners.append(owner)
        self._emit_wallet("OwnerAdded", owner=owner)

    def _tx_removeOwner(self, sender, owner):
        self._only_wallet(sender)
        _require(self._is_owner(owner), "Not an owner")
        _require(len(self.wallet.owners) - 1 >= self.wallet.threshold, "Cannot go below threshold")
        self.wallet.owners = [o for o in self.wallet.owners if not _same(o, owner)]
        self._emit_wallet("OwnerRemoved", owner=owner)

    def _tx_changeThreshold(self, sender, threshold):
        self._only_wallet(sender)
        _require(1 <= threshold <= len(self.wallet.owners), "Invalid threshold")
        self.wallet.threshold = threshold
        self._emit_wallet("ThresholdChanged", threshold=threshold)

    def _tx_enableModule(self, sender, module):
        self._only_wallet(sender)
        _require(module.lower() not in self.wallet.modules, "Module already enabled")
        self.wallet.modules.add(module.lower())
        self._emit_wallet("ModuleEnabled", module=module)

    def _tx_disableModule(self, sender, module):
        self._only_wallet(sender)
        _require(module.lower() in self.wallet.modules, "Module not enabled")
        self.wallet.modules.discard(module.lower())
        self._emit_wallet("ModuleDisabled", module=module)

    # ------------------------------------------------------------------
    # Recovery module: views
    # ------------------------------------------------------------------

    def _is_guardian(self, address: str) -> bool:
        return any(_same(g, address) for g in self.recovery.guardians)

    def _view_getRecoveryConfig(self, wallet):
        return [list(self.recovery.guardians), self.recovery.threshold, self.recovery.period]

    def _view_isGuardian(self, wallet, guardian):
        return [self._is_guardian(guardian)]

    def _view_getRecovery(self, wallet, recovery_hash):
        rec = self.recovery.recoveries.get(recovery_hash.lower())
        if rec is None:
            return [[], 0, 0, 0, False]
        return [rec["new_owners"], rec["new_threshold"], rec["approval_count"], rec["execution_time"], rec["executed"]]

    def _view_recoveryApprovals(self, wallet, recovery_hash, guardian):
        return [self.recovery.approvals.get((recovery_hash.lower(), guardian.lower()), False)]

    def _view_recoveryNonces(self, wallet):
        return [self.recovery.nonce]

    def _view_getRecoveryHashForCurrentNonce(self, wallet, new_owners, new_threshold):
        return [compute_recovery_hash(wallet, new_owners, new_threshold, self.recovery.nonce)]

    # ------------------------------------------------------------------
    # Recovery module: transactions
    # ------------------------------------------------------------------

    def _emit_module(self, event: str, **args: Any) -> None:
        self._emit(self.module_address, SOCIAL_RECOVERY_INTERFACE, event, **args)

    def _live_recovery(self, recovery_hash: str) -> Dict[str, Any]:
        rec = self.recovery.recoveries.get(recovery_hash.lower())
        if rec is None or rec["execution_time"] == 0:
            raise _custom("RecoveryNotInitiated")
        if rec["executed"]:
            raise _custom("RecoveryAlreadyExecuted")
        return rec

    def _tx_setupRecovery(self, sender, wallet, guardians, threshold, period):
        if not _same(sender, wallet):
            raise _custom("MustBeCalledByWallet")
        if not guardians or threshold < 1 or threshold > len(guardians):
            raise _custom("InvalidThreshold")
        if period < ONE_DAY:
            raise _custom("InvalidRecoveryPeriod")
        self.recovery.guardians = list(guardians)
        self.recovery.threshold = threshold
        self.recovery.period = period
        self._emit_module("RecoverySetup", wallet=wallet, guardians=guardians, threshold=threshold, recoveryPeriod=period)

    def _tx_initiateRecovery(self, sender, wallet, new_owners, new_threshold):
        if not self._is_guardian(sender):
            raise _custom("NotAGuardian")
        if not new_owners:
            raise _custom("NewOwnersRequired")
        if new_threshold < 1 or new_threshold > len(new_owners):
            raise _custom("InvalidThreshold")
        recovery_hash = compute_recovery_hash(wallet, new_owners, new_threshold, self.recovery.nonce)
        self.recovery.nonce += 1
        self.recovery.recoveries[recovery_hash] = {
            "new_owners": list(new_owners),
            "new_threshold": new_threshold,
            "approval_count": 0,
            "execution_time": self.now + self.recovery.period,
            "executed": False,
        }
        self._emit_module(
            "RecoveryInitiated",
            wallet=wallet,
            recoveryHash=recovery_hash,
            newOwners=new_owners,
            newThreshold=new_threshold,
            initiator=sender,
        )
        return recovery_hash

    def _tx_approveRecovery(self, sender, wallet, recovery_hash):
        if not self._is_guardian(sender):
            raise _custom("NotAGuardian")
        rec = self._live_recovery(recovery_hash)
        key = (recovery_hash.lower(), sender.lower())
        if self.recovery.approvals.get(key):
            raise _custom("AlreadyApproved")
        self.recovery.approvals[key] = True
        rec["approval_count"] += 1
        self._emit_module("RecoveryApproved", wallet=wallet, recoveryHash=recovery_hash, guardian=sender)

    def _tx_revokeRecoveryApproval(self, sender, wallet, recovery_hash):
        if not self._is_guardian(sender):
            raise _custom("NotAGuardian")
        rec = self._live_recovery(recovery_hash)
        key = (recovery_hash.lower(), sender.lower())
        if not self.recovery.approvals.get(key):
            raise _custom("NotApproved")
        self.recovery.approvals[key] = False
        rec["approval_count"] -= 1
        self._emit_module("RecoveryApprovalRevoked", wallet=wallet, recoveryHash=recovery_hash, guardian=sender)

    def _tx_executeRecovery(self, sender, wallet, recovery_hash):
        rec = self._live_recovery(recovery_hash)
        if rec["approval_count"] < self.recovery.threshold:
            raise _custom("NotEnoughApprovals", rec["approval_count"], self.recovery.threshold)
        if self.now < rec["execution_time"]:
            raise _custom("RecoveryPeriodNotElapsed")
        rec["executed"] = True
        self.wallet.owners = list(rec["new_owners"])
        self.wallet.threshold = rec["new_threshold"]
        self._emit_module(
            "RecoveryExecuted",
            wallet=wallet,
            recoveryHash=recovery_hash,
            newOwners=rec["new_owners"],
            newThreshold=rec["new_threshold"],
        )

    def _tx_cancelRecovery(self, sender, wallet, recovery_hash):
        if not self._is_owner(sender):
            raise _custom("NotAnOwner")
        self._live_recovery(recovery_hash)
        # Approval flags are left behind on purpose, as the deployed module does
        del self.recovery.recoveries[recovery_hash.lower()]
        self._emit_module("RecoveryCancelled", wallet=wallet, recoveryHash=recovery_hash)

    # ------------------------------------------------------------------
    # Spending modules: shared
    # ------------------------------------------------------------------

    def _require_enabled(self, module: str) -> None:
        _require(module.lower() in self.wallet.modules, "Module not enabled")

    def _transfer(self, to: str, value: int) -> None:
        wallet = self.wallet_address.lower()
        balance = self.balances.get(wallet, 0)
        _require(balance >= value, "Module transaction failed")
        self.balances[wallet] = balance - value
        self.balances[to.lower()] = self.balances.get(to.lower(), 0) + value

    # ------------------------------------------------------------------
    # Daily limit module
    # ------------------------------------------------------------------

    def _period_over(self) -> bool:
        return self.now >= self.daily.last_reset + ONE_DAY

    def _view_getDailyLimit(self, wallet):
        return [self.daily.limit, self.daily.spent, self.daily.last_reset]

    def _view_getRemainingLimit(self, wallet):
        if self._period_over():
            return [self.daily.limit]
        return [max(0, self.daily.limit - self.daily.spent)]

    def _view_getTimeUntilReset(self, wallet):
        if self._period_over():
            return [0]
        return [self.daily.last_reset + ONE_DAY - self.now]

    def _emit_daily(self, event: str, **args: Any) -> None:
        self._emit(self.daily_module, DAILY_LIMIT_INTERFACE, event, **args)

    def _tx_setDailyLimit(self, sender, wallet, limit):
        self._only_wallet(sender)
        self._require_enabled(self.daily_module)
        self.daily.limit = limit
        if self.daily.last_reset == 0:
            self.daily.last_reset = self.now
        self._emit_daily("DailyLimitSet", wallet=wallet, limit=limit)

    def _tx_resetDailyLimit(self, sender, wallet):
        self._only_wallet(sender)
        self._require_enabled(self.daily_module)
        self.daily.spent = 0
        self.daily.last_reset = self.now
        self._emit_daily("DailyLimitReset", wallet=wallet)

    def _tx_executeBelowLimit(self, sender, wallet, to, value):
        _require(self._is_owner(sender), "Not an owner")
        self._require_enabled(self.daily_module)
        _require(int(to, 16) != 0, "Invalid destination")
        _require(self.daily.limit > 0, "Daily limit not set")
        if self._period_over():
            self.daily.spent = 0
            self.daily.last_reset = self.now
        _require(self.daily.spent + value <= self.daily.limit, "Exceeds daily limit")
        self.daily.spent += value
        self._transfer(to, value)
        self._emit_daily("TransactionExecuted", wallet=wallet, to=to, value=value)

    # ------------------------------------------------------------------
    # Whitelist module
    # ------------------------------------------------------------------

    def _view_isWhitelisted(self, wallet, address):
        return [address.lower() in self.whitelist.limits]

    def _view_getWhitelistLimit(self, wallet, address):
        return [self.whitelist.limits.get(address.lower(), 0)]

    def _emit_whitelist(self, event: str, **args: Any) -> None:
        self._emit(self.whitelist_module, WHITELIST_INTERFACE, event, **args)

    def _whitelist(self, wallet: str, address: str, limit: int) -> None:
        _require(int(address, 16) != 0, "Invalid address")
        self.whitelist.limits[address.lower()] = limit
        self._emit_whitelist("AddressWhitelisted", wallet=wallet, addr=address, limit=limit)

    def _tx_addToWhitelist(self, sender, wallet, address, limit):
        self._only_wallet(sender)
        self._require_enabled(self.whitelist_module)
        self._whitelist(wallet, address, limit)

    def _tx_removeFromWhitelist(self, sender, wallet, address):
        self._only_wallet(sender)
        self._require_enabled(self.whitelist_module)
        _require(address.lower() in self.whitelist.limits, "Address not whitelisted")
        del self.whitelist.limits[address.lower()]
        self._emit_whitelist("AddressRemovedFromWhitelist", wallet=wallet, addr=address)

    def _tx_batchAddToWhitelist(self, sender, wallet, addresses, limits):
        self._only_wallet(sender)
        self._require_enabled(self.whitelist_module)
        _require(len(addresses) == len(limits), "Array length mismatch")
        for address, limit in zip(addresses, limits):
            self._whitelist(wallet, address, limit)

    def _tx_executeToWhitelist(self, sender, wallet, to, value, data):
        _require(self._is_owner(sender), "Not an owner")
        self._require_enabled(self.whitelist_module)
        _require(to.lower() in self.whitelist.limits, "Address not whitelisted")
        limit = self.whitelist.limits[to.lower()]
        _require(limit == 0 or value <= limit, "Exceeds whitelist limit")
        self._transfer(to, value)
        self._emit_whitelist("WhitelistTransactionExecuted", wallet=wallet, to=to, value=value)


# ----------------------------------------------------------------------
# Builders
# ----------------------------------------------------------------------

def make_chain(owners=(OWNER_A, OWNER_B, OWNER_C), threshold: int = 2) -> FakeChain:
    return FakeChain(list(owners), threshold)


def configure_guardians(chain: FakeChain, guardians, threshold: int, period: int = ONE_DAY) -> None:
    """Install a guardian config directly, skipping the multisig round-trip."""
    chain.recovery.guardians = list(guardians)
    chain.recovery.threshold = threshold
    chain.recovery.period = period


def enable_modules(chain: FakeChain, *modules: str) -> None:
    """Mark modules enabled directly, skipping the multisig round-trip."""
    for module in modules:
        chain.wallet.modules.add(module.lower())


def fund_wallet(chain: FakeChain, amount: int) -> None:
    chain.balances[chain.wallet_address.lower()] = amount
