"""
Submission and confirmation.

Wraps a single signed submission as an async stream of ProgressEvents and
pulls identifiers back out of the confirmation record.
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterator, Optional

from ..abi.interface import ContractInterface
from ..config import settings
from ..providers.base import SubmissionHandle
from ..services.address import same_address
from .decoding import ErrorDecoder
from .errors import EventNotFoundError, SubmissionRevertedError
from .models import ProgressEvent, ProgressStage, Receipt

logger = logging.getLogger(__name__)

SubmitFn = Callable[[], Awaitable[SubmissionHandle]]


class TransactionSubmitter:
    def __init__(self, decoder: Optional[ErrorDecoder] = None, confirmation_timeout: Optional[float] = None):
        self.decoder = decoder or ErrorDecoder()
        self.confirmation_timeout = confirmation_timeout or settings.confirmation_timeout_seconds

    async def stream(
        self,
        submit_fn: SubmitFn,
        operation: str,
        interface: Optional[ContractInterface] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Yield awaiting_signature, submitted and confirmed events.

        Abandoning the iterator stops tracking only; a broadcast submission
        stays in flight and the ledger decides its outcome.
        """
        yield ProgressEvent(ProgressStage.AWAITING_SIGNATURE)

        handle: Optional[SubmissionHandle] = None
        confirmed = False
        try:
            try:
                handle = await submit_fn()
            except Exception as e:
                raise self.decoder.to_error(e, f"Failed to {operation}", interface) from e

            logger.info(f"{operation}: submitted {handle.tx_hash}")
            yield ProgressEvent(ProgressStage.SUBMITTED, tx_hash=handle.tx_hash)

            receipt = await handle.wait(self.confirmation_timeout)
            confirmed = True
            logger.info(f"{operation}: confirmed {handle.tx_hash} (status {receipt.status})")
            yield ProgressEvent(ProgressStage.CONFIRMED, tx_hash=handle.tx_hash, receipt=receipt)
        finally:
            if handle is not None and not confirmed:
                logger.warning(f"{operation}: stopped tracking {handle.tx_hash}; it may still be mined")

    async def submit(
        self,
        submit_fn: SubmitFn,
        operation: str,
        interface: Optional[ContractInterface] = None,
    ) -> Receipt:
        receipt: Optional[Receipt] = None
        async for event in self.stream(submit_fn, operation, interface):
            if event.stage == ProgressStage.CONFIRMED:
                receipt = event.receipt
        if receipt is None:
            raise SubmissionRevertedError(f"{operation}: no confirmation was received")
        return receipt

    @staticmethod
    def ensure_succeeded(receipt: Receipt, operation: str, context: str = "") -> None:
        if receipt.status == 0:
            suffix = f" {context}" if context else ""
            raise SubmissionRevertedError(f"{operation} reverted.{suffix}", receipt=receipt)


def _event_args(
    receipt: Receipt,
    interface: ContractInterface,
    event: str,
    address: Optional[str] = None,
) -> Iterator[Dict[str, Any]]:
    """
    Args of every ``event`` in the receipt, trying in turn: transport
    pre-decoded fields, interface decoding, and raw topic matching.

    With ``address`` set, logs emitted by any other contract are ignored.
    """
    fragment = interface.event(event)
    indexed = [p.name for p in fragment.inputs if p.indexed]

    for log in receipt.logs:
        if address is not None and not same_address(log.address, address):
            continue

        if log.event == event and log.args:
            yield log.args
            continue

        try:
            parsed = interface.parse_log(log)
        except Exception as e:
            logger.debug(f"Could not decode log in {receipt.tx_hash}: {e}")
            parsed = None
        if parsed is not None:
            if parsed.name == event:
                yield parsed.args
            continue

        if log.topics and log.topics[0].lower() == fragment.topic:
            yield {name: topic for name, topic in zip(indexed, log.topics[1:])}


def extract_event_value(
    receipt: Receipt,
    interface: ContractInterface,
    event: str,
    arg: str,
    address: Optional[str] = None,
) -> Any:
    """First value of ``arg`` across ``event`` logs; EventNotFoundError if none."""
    for args in _event_args(receipt, interface, event, address):
        value = args.get(arg)
        if value is not None:
            return value.lower() if isinstance(value, str) else value
    raise EventNotFoundError(
        f"Could not find {event} event in transaction receipt",
        receipt=receipt,
        details={"event": event, "arg": arg},
    )


def receipt_has_event(
    receipt: Receipt,
    interface: ContractInterface,
    event: str,
    arg: Optional[str] = None,
    value: Optional[str] = None,
    address: Optional[str] = None,
) -> bool:
    for args in _event_args(receipt, interface, event, address):
        if arg is None:
            return True
        found = args.get(arg)
        if isinstance(found, str) and value is not None and found.lower() == value.lower():
            return True
    return False
