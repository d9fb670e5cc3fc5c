"""
Coordination models and types.

Every entity here is a disposable snapshot of state owned by the ledger.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class OperationStatus(str, Enum):
    """Lifecycle of a multisig operation."""
    PENDING = "pending"          # Proposed, collecting approvals
    READY = "ready"              # Approvals >= threshold, not executed
    EXECUTED = "executed"        # Terminal
    CANCELLED = "cancelled"      # Terminal, hash reusable by a new proposal
    NOT_FOUND = "not_found"


@dataclass
class PendingOperation:
    """A proposed vault operation as read from the ledger."""
    hash: str
    to: str
    value: int = 0
    data: str = "0x"
    proposer: str = ZERO_ADDRESS
    num_approvals: int = 0
    timestamp: int = 0
    executed: bool = False
    cancelled: bool = False
    approvals: Dict[str, bool] = field(default_factory=dict)
    threshold: Optional[int] = None     # Snapshot taken alongside the read

    @property
    def exists(self) -> bool:
        return self.to.lower() != ZERO_ADDRESS

    @property
    def is_live(self) -> bool:
        return self.exists and not self.executed and not self.cancelled

    @property
    def status(self) -> OperationStatus:
        if not self.exists:
            return OperationStatus.NOT_FOUND
        if self.executed:
            return OperationStatus.EXECUTED
        if self.cancelled:
            return OperationStatus.CANCELLED
        if self.threshold is not None and self.num_approvals >= self.threshold:
            return OperationStatus.READY
        return OperationStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "to": self.to,
            "value": str(self.value),
            "data": self.data,
            "proposer": self.proposer,
            "numApprovals": self.num_approvals,
            "threshold": self.threshold,
            "timestamp": self.timestamp,
            "executed": self.executed,
            "cancelled": self.cancelled,
            "status": self.status.value,
            "approvals": dict(self.approvals),
        }


@dataclass
class RecoveryRequest:
    """A guardian-initiated recovery as read from the recovery module."""
    hash: str
    new_owners: List[str] = field(default_factory=list)
    new_threshold: int = 0
    approval_count: int = 0
    execution_time: int = 0            # 0 means cancelled or never initiated
    executed: bool = False
    approvals: Dict[str, bool] = field(default_factory=dict)

    @property
    def exists(self) -> bool:
        return self.execution_time != 0

    @property
    def is_live(self) -> bool:
        return self.exists and not self.executed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "newOwners": list(self.new_owners),
            "newThreshold": self.new_threshold,
            "approvalCount": self.approval_count,
            "executionTime": self.execution_time,
            "executed": self.executed,
            "approvals": dict(self.approvals),
        }


@dataclass
class RecoveryConfig:
    """Guardian configuration for one wallet."""
    guardians: List[str] = field(default_factory=list)
    threshold: int = 0
    recovery_period: int = 0           # Seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.guardians) and self.threshold > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "guardians": list(self.guardians),
            "threshold": self.threshold,
            "recoveryPeriod": self.recovery_period,
        }


@dataclass
class WalletConfig:
    """Owners, threshold and enabled modules. Never cached across operations."""
    address: str
    owners: List[str] = field(default_factory=list)
    threshold: int = 0
    modules: List[str] = field(default_factory=list)
    nonce: int = 0

    def is_owner(self, address: str) -> bool:
        return address.lower() in {owner.lower() for owner in self.owners}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "owners": list(self.owners),
            "threshold": self.threshold,
            "modules": list(self.modules),
            "nonce": self.nonce,
        }


@dataclass
class DailyLimit:
    """Daily spending allowance of a wallet; all amounts in wei."""
    limit: int = 0
    spent: int = 0
    last_reset: int = 0                # Unix seconds

    @property
    def is_configured(self) -> bool:
        return self.limit > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "limit": self.limit,
            "spent": self.spent,
            "lastReset": self.last_reset,
        }


@dataclass
class WhitelistEntry:
    address: str
    limit: int = 0                     # Per-transaction cap in wei; 0 means unlimited

    def allows(self, value: int) -> bool:
        return self.limit == 0 or value <= self.limit

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "limit": self.limit}


@dataclass
class ExecutionCheck:
    """Whether a module execution would go through, and why not."""
    can_execute: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.can_execute

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"canExecute": self.can_execute}
        if self.reason:
            result["reason"] = self.reason
        return result


@dataclass
class LogEntry:
    """
    A raw event log.

    Some transports pre-decode logs; ``event`` and ``args`` carry that
    decoding when present.
    """
    address: str
    topics: List[str]
    data: str = "0x"
    block_number: Optional[int] = None
    tx_hash: Optional[str] = None
    log_index: Optional[int] = None
    event: Optional[str] = None
    args: Optional[Dict[str, Any]] = None


@dataclass
class ParsedLog:
    """A log decoded against a contract interface."""
    name: str
    signature: str
    args: Dict[str, Any]
    log: Optional[LogEntry] = None


@dataclass
class ParsedError:
    """A revert payload decoded against a contract interface."""
    name: str
    signature: str
    args: List[Any]


@dataclass
class Receipt:
    """Confirmation record of a submission."""
    tx_hash: str
    status: Optional[int]              # 1 success, 0 revert, None unknown
    logs: List[LogEntry] = field(default_factory=list)
    gas_used: int = 0
    block_number: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class ProgressStage(str, Enum):
    """Stages reported while a submission is in flight."""
    AWAITING_SIGNATURE = "awaiting_signature"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


@dataclass
class ProgressEvent:
    stage: ProgressStage
    tx_hash: Optional[str] = None
    receipt: Optional[Receipt] = None
    result: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "txHash": self.tx_hash,
            "result": self.result,
        }
