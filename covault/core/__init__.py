"""
Transaction and recovery coordination for multisig vaults.

Provides:
- TransactionCoordinator: propose / approve / revoke / cancel / execute
- RecoveryCoordinator: guardian-driven social recovery
- OwnerGovernance: owner, threshold and module proposals
- DailyLimitCoordinator, WhitelistCoordinator: single-owner spending through modules
- EventLogReconciler, GasEstimationPolicy, ErrorDecoder: shared collaborators
"""

from .errors import (
    AlreadyApprovedError,
    AlreadyCancelledError,
    AlreadyExecutedError,
    ConfirmationTimeoutError,
    CoordinationError,
    DuplicateOperationError,
    ErrorKind,
    EventNotFoundError,
    InvalidArgumentError,
    LogRangeTooLargeError,
    NotApprovedError,
    NotAuthorizedError,
    NotFoundError,
    ReadFailedError,
    SignerRequiredError,
    SimulationFailedError,
    SubmissionRevertedError,
    ThresholdNotMetError,
    TimelockActiveError,
    UserRejectedError,
    WouldViolateInvariantError,
)
from .models import (
    DailyLimit,
    ExecutionCheck,
    LogEntry,
    OperationStatus,
    ParsedLog,
    PendingOperation,
    ProgressEvent,
    ProgressStage,
    Receipt,
    RecoveryConfig,
    RecoveryRequest,
    WalletConfig,
    WhitelistEntry,
)
from .decoding import ErrorDecoder
from .gas import GasEstimate, GasEstimationPolicy, GasPreset, PRESETS
from .reconciler import EventLogReconciler
from .submission import TransactionSubmitter
from .transactions import TransactionCoordinator
from .governance import OwnerGovernance
from .modules import ModuleCoordinator
from .recovery import RecoveryCoordinator
from .daily_limit import DailyLimitCoordinator
from .whitelist import WhitelistCoordinator

__all__ = [
    # Errors
    "AlreadyApprovedError",
    "AlreadyCancelledError",
    "AlreadyExecutedError",
    "ConfirmationTimeoutError",
    "CoordinationError",
    "DuplicateOperationError",
    "ErrorKind",
    "EventNotFoundError",
    "InvalidArgumentError",
    "LogRangeTooLargeError",
    "NotApprovedError",
    "NotAuthorizedError",
    "NotFoundError",
    "ReadFailedError",
    "SignerRequiredError",
    "SimulationFailedError",
    "SubmissionRevertedError",
    "ThresholdNotMetError",
    "TimelockActiveError",
    "UserRejectedError",
    "WouldViolateInvariantError",
    # Models
    "DailyLimit",
    "ExecutionCheck",
    "LogEntry",
    "OperationStatus",
    "ParsedLog",
    "PendingOperation",
    "ProgressEvent",
    "ProgressStage",
    "Receipt",
    "RecoveryConfig",
    "RecoveryRequest",
    "WalletConfig",
    "WhitelistEntry",
    # Components
    "DailyLimitCoordinator",
    "ErrorDecoder",
    "EventLogReconciler",
    "GasEstimate",
    "GasEstimationPolicy",
    "GasPreset",
    "ModuleCoordinator",
    "OwnerGovernance",
    "PRESETS",
    "RecoveryCoordinator",
    "TransactionCoordinator",
    "TransactionSubmitter",
    "WhitelistCoordinator",
]
