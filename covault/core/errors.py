"""
Error Taxonomy

Closed set of tagged errors raised by the coordination layer.
Every error carries a kind, a message, and optionally the decoded revert
reason and the receipt that triggered it, so callers can branch on
``error.kind`` instead of inspecting message strings.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .models import Receipt


class ErrorKind(str, Enum):
    """Kinds of coordination failures."""

    USER_REJECTED = "user_rejected"                  # Signer declined the request
    NOT_AUTHORIZED = "not_authorized"                # Caller is not an owner/guardian
    NOT_FOUND = "not_found"                          # Operation or recovery does not exist
    ALREADY_EXECUTED = "already_executed"
    ALREADY_CANCELLED = "already_cancelled"
    THRESHOLD_NOT_MET = "threshold_not_met"
    WOULD_VIOLATE_INVARIANT = "would_violate_invariant"  # e.g. owner removal under threshold
    SIMULATION_FAILED = "simulation_failed"          # Pre-flight gas simulation rejected
    SUBMISSION_REVERTED = "submission_reverted"      # Submitted but not reflected on-chain
    LOG_RANGE_TOO_LARGE = "log_range_too_large"      # Recovered internally by the reconciler
    INVALID_ARGUMENT = "invalid_argument"
    DUPLICATE = "duplicate"
    ALREADY_APPROVED = "already_approved"
    NOT_APPROVED = "not_approved"
    EVENT_NOT_FOUND = "event_not_found"              # Confirmation lacks the expected event
    CONFIRMATION_TIMEOUT = "confirmation_timeout"
    TIMELOCK_ACTIVE = "timelock_active"
    SIGNER_REQUIRED = "signer_required"
    READ_FAILED = "read_failed"                      # A ledger read could not be completed


class CoordinationError(Exception):
    """
    Base class for every error surfaced by covault.

    Attributes:
        kind: ErrorKind tag
        message: Human-readable message
        reason: Decoded revert reason, when the failure came from the ledger
        receipt: Confirmation record, when a submission was involved
        details: Extra structured context
    """

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        reason: Optional[str] = None,
        receipt: Optional["Receipt"] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.reason = reason
        self.receipt = receipt
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "reason": self.reason,
            "txHash": self.receipt.tx_hash if self.receipt else None,
            "details": self.details,
        }


class UserRejectedError(CoordinationError):
    kind = ErrorKind.USER_REJECTED

    def __init__(self, message: str = "Transaction was rejected by user", **kwargs: Any):
        super().__init__(message, **kwargs)


class NotAuthorizedError(CoordinationError):
    kind = ErrorKind.NOT_AUTHORIZED


class NotFoundError(CoordinationError):
    kind = ErrorKind.NOT_FOUND


class AlreadyExecutedError(CoordinationError):
    kind = ErrorKind.ALREADY_EXECUTED


class AlreadyCancelledError(CoordinationError):
    kind = ErrorKind.ALREADY_CANCELLED


class ThresholdNotMetError(CoordinationError):
    """Not enough approvals for the requested transition."""

    kind = ErrorKind.THRESHOLD_NOT_MET

    def __init__(self, message: str, current: int, required: int, **kwargs: Any):
        details = {"current": current, "required": required, **kwargs.pop("details", {})}
        super().__init__(message, details=details, **kwargs)
        self.current = current
        self.required = required


class WouldViolateInvariantError(CoordinationError):
    kind = ErrorKind.WOULD_VIOLATE_INVARIANT


class SimulationFailedError(CoordinationError):
    kind = ErrorKind.SIMULATION_FAILED


class SubmissionRevertedError(CoordinationError):
    kind = ErrorKind.SUBMISSION_REVERTED


class LogRangeTooLargeError(CoordinationError):
    """Raised by ledgers when a log query window exceeds their limit."""

    kind = ErrorKind.LOG_RANGE_TOO_LARGE


class InvalidArgumentError(CoordinationError):
    kind = ErrorKind.INVALID_ARGUMENT


class DuplicateOperationError(CoordinationError):
    """A live operation with the same parameters already exists."""

    kind = ErrorKind.DUPLICATE

    def __init__(self, existing_hash: str, approvals: int, threshold: int):
        super().__init__(
            f"A transaction with these parameters already exists (hash: {existing_hash}). "
            f"It has {approvals}/{threshold} approvals.",
            details={"hash": existing_hash, "approvals": approvals, "threshold": threshold},
        )
        self.existing_hash = existing_hash
        self.approvals = approvals
        self.threshold = threshold


class AlreadyApprovedError(CoordinationError):
    kind = ErrorKind.ALREADY_APPROVED


class NotApprovedError(CoordinationError):
    kind = ErrorKind.NOT_APPROVED


class EventNotFoundError(CoordinationError):
    """The confirmation record lacks the expected event. Not retryable."""

    kind = ErrorKind.EVENT_NOT_FOUND


class ConfirmationTimeoutError(CoordinationError):
    """
    Gave up waiting for a receipt.

    The submission is still in flight; its outcome is decided by the ledger.
    """

    kind = ErrorKind.CONFIRMATION_TIMEOUT

    def __init__(self, tx_hash: str, timeout_seconds: float):
        super().__init__(
            f"Confirmation timeout after {timeout_seconds}s for {tx_hash}",
            details={"txHash": tx_hash, "timeoutSeconds": timeout_seconds},
        )
        self.tx_hash = tx_hash


class TimelockActiveError(CoordinationError):
    kind = ErrorKind.TIMELOCK_ACTIVE


class ReadFailedError(CoordinationError):
    """A read from the ledger failed; nothing was submitted."""

    kind = ErrorKind.READ_FAILED


class SignerRequiredError(CoordinationError):
    kind = ErrorKind.SIGNER_REQUIRED

    def __init__(self, message: str = "Signer not set. Connect wallet first.", **kwargs: Any):
        super().__init__(message, **kwargs)


# Common state messages shared by the coordinators
class Messages:
    NOT_OWNER = "Only wallet owners can perform this action"
    NOT_GUARDIAN = "Only guardians can perform this action"
    TX_NOT_FOUND = "Transaction does not exist"
    TX_ALREADY_EXECUTED = "Transaction has already been executed"
    TX_CANCELLED = "Transaction has been cancelled"
    ALREADY_APPROVED = "You have already approved this transaction"
    NOT_APPROVED = "You have not approved this transaction"
    RECOVERY_NOT_FOUND = "Recovery has been cancelled or does not exist"
    RECOVERY_EXECUTED = "Recovery has already been executed"

    @staticmethod
    def not_enough_approvals(current: int, required: int) -> str:
        return f"Not enough approvals: {current} / {required} required"
