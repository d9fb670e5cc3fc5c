"""
Error Decoder

Turns heterogeneous ledger and signer failures into readable messages and
tagged CoordinationErrors.

Resolution order:
1. User rejection short-circuits everything else
2. An explicit ``reason`` on the error
3. Revert data decoded through the contract interface
4. Revert data decoded as a bare ABI string
5. The error's own message
"""

import logging
from typing import Any, Dict, Optional, Type

from eth_abi import decode

from ..abi.interface import ContractInterface, hex_to_bytes
from .errors import (
    AlreadyApprovedError,
    AlreadyCancelledError,
    AlreadyExecutedError,
    CoordinationError,
    ErrorKind,
    EventNotFoundError,
    InvalidArgumentError,
    NotApprovedError,
    NotAuthorizedError,
    NotFoundError,
    ReadFailedError,
    SimulationFailedError,
    SubmissionRevertedError,
    TimelockActiveError,
    UserRejectedError,
)

logger = logging.getLogger(__name__)

REJECTION_CODES = ("ACTION_REJECTED", 4001, "4001")
REJECTION_MARKERS = ("rejected", "denied", "cancelled")

# "0x" + selector + one 32-byte word + one 32-byte word
_MIN_STRING_PAYLOAD_HEX = 138

_ERROR_CLASSES: Dict[ErrorKind, Type[CoordinationError]] = {
    ErrorKind.NOT_AUTHORIZED: NotAuthorizedError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.ALREADY_EXECUTED: AlreadyExecutedError,
    ErrorKind.ALREADY_CANCELLED: AlreadyCancelledError,
    ErrorKind.SIMULATION_FAILED: SimulationFailedError,
    ErrorKind.SUBMISSION_REVERTED: SubmissionRevertedError,
    ErrorKind.INVALID_ARGUMENT: InvalidArgumentError,
    ErrorKind.ALREADY_APPROVED: AlreadyApprovedError,
    ErrorKind.NOT_APPROVED: NotApprovedError,
    ErrorKind.EVENT_NOT_FOUND: EventNotFoundError,
    ErrorKind.TIMELOCK_ACTIVE: TimelockActiveError,
    ErrorKind.READ_FAILED: ReadFailedError,
}


def _message_of(error: Any) -> Optional[str]:
    message = getattr(error, "message", None)
    if message:
        return str(message)
    if isinstance(error, BaseException) and error.args:
        return str(error)
    return None


def _data_of(error: Any) -> Optional[str]:
    """Revert data as hex; nodes nest it in several shapes."""
    data = getattr(error, "data", None)
    for _ in range(3):
        if isinstance(data, dict):
            data = data.get("data")
        else:
            break
    if isinstance(data, (bytes, bytearray)):
        return "0x" + bytes(data).hex()
    if isinstance(data, str) and data.startswith("0x"):
        return data
    return None


class ErrorDecoder:
    """Stateless; one instance can be shared by every coordinator."""

    def is_user_rejection(self, error: Any) -> bool:
        if isinstance(error, UserRejectedError):
            return True
        if getattr(error, "code", None) in REJECTION_CODES:
            return True
        message = _message_of(error)
        if message:
            lowered = message.lower()
            return any(marker in lowered for marker in REJECTION_MARKERS)
        return False

    def decode_error_data(self, interface: Optional[ContractInterface], data: Optional[str]) -> Optional[str]:
        if not data or data == "0x":
            return None

        if interface is not None:
            try:
                parsed = interface.parse_error(data)
            except Exception:
                parsed = None
            if parsed is not None:
                if parsed.name == "Error" and parsed.args:
                    return str(parsed.args[0])
                if parsed.args:
                    return f"{parsed.name} - {', '.join(str(arg) for arg in parsed.args)}"
                return parsed.name

        if len(data) > _MIN_STRING_PAYLOAD_HEX:
            try:
                (text,) = decode(["string"], hex_to_bytes(data)[4:])
            except Exception:
                logger.debug(f"Revert data is not an ABI string: {data[:10]}")
            else:
                if text:
                    return text

        return None

    def extract_message(self, error: Any, interface: Optional[ContractInterface] = None) -> str:
        reason = getattr(error, "reason", None)
        if reason:
            return str(reason)

        decoded = self.decode_error_data(interface, _data_of(error))
        if decoded:
            return decoded

        return _message_of(error) or "Unknown error"

    def to_error(
        self,
        error: Any,
        operation: str,
        interface: Optional[ContractInterface] = None,
        kind: ErrorKind = ErrorKind.SUBMISSION_REVERTED,
    ) -> CoordinationError:
        """
        Build the tagged error for a failed ``operation``.

        Errors that are already tagged pass through unchanged.
        """
        if isinstance(error, CoordinationError):
            return error
        # Reads never reach a signer, so only submissions can be user rejections
        if kind != ErrorKind.READ_FAILED and self.is_user_rejection(error):
            return UserRejectedError()

        message = self.extract_message(error, interface)
        error_class = _ERROR_CLASSES.get(kind, SubmissionRevertedError)
        return error_class(
            f"{operation}: {message}",
            kind=kind,
            reason=message,
            details={"code": getattr(error, "code", None)},
        )
