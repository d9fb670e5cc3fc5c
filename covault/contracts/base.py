"""
Contract binding.

Pairs a ContractInterface with an address, a ledger and an optional signer.
"""

import copy
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from ..abi.interface import ContractInterface
from ..core.decoding import ErrorDecoder
from ..core.errors import ErrorKind, SignerRequiredError
from ..core.models import ParsedLog
from ..providers.base import RemoteLedger, Signer, SubmissionHandle

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="BoundContract")
R = TypeVar("R")


class BoundContract:
    def __init__(
        self,
        ledger: RemoteLedger,
        address: str,
        interface: ContractInterface,
        signer: Optional[Signer] = None,
        decoder: Optional[ErrorDecoder] = None,
    ):
        self.ledger = ledger
        self.address = address
        self.interface = interface
        self.signer = signer
        self.decoder = decoder or ErrorDecoder()

    def connect(self: T, signer: Optional[Signer]) -> T:
        """Same contract, different signer."""
        bound = copy.copy(self)
        bound.signer = signer
        return bound

    @property
    def signer_address(self) -> Optional[str]:
        return self.signer.address if self.signer else None

    def require_signer(self) -> Signer:
        if self.signer is None:
            raise SignerRequiredError()
        return self.signer

    def encode(self, name: str, *args: Any) -> str:
        return self.interface.encode_function_data(name, args)

    async def read(self, what: str, fn: Callable[..., Awaitable[R]], *args: Any) -> R:
        """Run a ledger read; any failure surfaces as a tagged ReadFailedError."""
        try:
            return await fn(*args)
        except Exception as e:
            raise self.decoder.to_error(
                e, f"Failed to read {what}", self.interface, kind=ErrorKind.READ_FAILED
            ) from e

    async def call(self, name: str, *args: Any) -> Any:
        data = self.encode(name, *args)

        async def _call() -> Any:
            raw = await self.ledger.call(self.address, data, self.signer_address)
            return self.interface.decode_function_result(name, raw)

        return await self.read(name, _call)

    def _tx(self, name: str, args: Any, value: int = 0) -> Dict[str, Any]:
        tx: Dict[str, Any] = {"to": self.address, "data": self.encode(name, *args), "value": value}
        if self.signer is not None:
            tx["from"] = self.signer.address
        return tx

    async def estimate_gas(self, name: str, *args: Any) -> int:
        """Simulate ``name(*args)`` from the signer; raises on revert."""
        return await self.ledger.estimate_gas(self._tx(name, args))

    async def submit(
        self,
        name: str,
        *args: Any,
        gas_limit: Optional[int] = None,
        nonce: Optional[int] = None,
    ) -> SubmissionHandle:
        signer = self.require_signer()
        tx = self._tx(name, args)
        if gas_limit is not None:
            tx["gas"] = gas_limit
        if nonce is not None:
            tx["nonce"] = nonce
        logger.debug(f"Submitting {name} to {self.address} (gas={gas_limit}, nonce={nonce})")
        return await self.ledger.send_transaction(tx, signer)

    async def pending_nonce(self) -> int:
        address = self.require_signer().address
        return await self.read("pending nonce", self.ledger.get_transaction_count, address, "pending")

    async def query_events(
        self,
        event: str,
        filters: Optional[Dict[str, Any]] = None,
        window: Optional[int] = None,
    ) -> List[ParsedLog]:
        """
        Fetch and decode ``event`` logs emitted by this contract.

        Args:
            event: Event name
            filters: Values for indexed params, by name
            window: Number of most recent blocks to scan (all history when None)
        """
        fragment = self.interface.event(event)
        filters = filters or {}

        topics: List[Optional[str]] = [fragment.topic]
        for param in fragment.inputs:
            if not param.indexed:
                continue
            value = filters.get(param.name)
            topics.append(None if value is None else self.interface.encode_topic(param.type, value))
        while topics and topics[-1] is None:
            topics.pop()

        from_block = 0
        if window is not None:
            latest = await self.read("block number", self.ledger.block_number)
            from_block = max(0, latest - window)

        logs = await self.read(f"{event} logs", self.ledger.get_logs, self.address, topics, from_block)

        parsed: List[ParsedLog] = []
        for log in logs:
            if log.event and log.args is not None:
                parsed.append(ParsedLog(name=log.event, signature=log.event, args=dict(log.args), log=log))
                continue
            decoded = self.interface.parse_log(log)
            if decoded is not None:
                parsed.append(decoded)
        return parsed
