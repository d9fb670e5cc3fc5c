from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.models import LogEntry, Receipt


class LedgerCallError(Exception):
    """
    A request rejected by the ledger.

    Carries whatever the transport exposed: an RPC error code, raw revert
    data, and a reason string when the node already decoded one.
    """

    def __init__(
        self,
        message: str,
        code: Optional[Any] = None,
        data: Optional[Any] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
        self.reason = reason


class SubmissionHandle(ABC):
    """A submitted transaction that can be waited on"""

    tx_hash: str

    @abstractmethod
    async def wait(self, timeout: Optional[float] = None) -> Receipt:
        """Block until the receipt is available or raise ConfirmationTimeoutError"""
        pass


class Signer(ABC):
    """Signs transactions on behalf of one account"""

    @property
    @abstractmethod
    def address(self) -> str:
        pass

    @abstractmethod
    async def sign_transaction(self, tx: Dict[str, Any]) -> str:
        """Return the raw signed transaction as hex. Raise when the user declines."""
        pass


class RemoteLedger(ABC):
    """Request/response access to the chain holding authoritative state"""

    name: str = "ledger"

    @abstractmethod
    async def call(self, to: str, data: str, from_address: Optional[str] = None) -> str:
        """Execute a read-only call and return the raw return data"""
        pass

    @abstractmethod
    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        """Simulate a transaction and return the gas it would use"""
        pass

    @abstractmethod
    async def send_transaction(self, tx: Dict[str, Any], signer: Signer) -> SubmissionHandle:
        """Sign with ``signer`` and broadcast"""
        pass

    @abstractmethod
    async def get_logs(
        self,
        address: str,
        topics: List[Optional[str]],
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[LogEntry]:
        """Query event logs; raises LogRangeTooLargeError for oversize windows"""
        pass

    @abstractmethod
    async def block_number(self) -> int:
        pass

    @abstractmethod
    async def get_block_timestamp(self, block: Optional[int] = None) -> int:
        """Timestamp of ``block`` (latest when omitted)"""
        pass

    @abstractmethod
    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Native balance of ``address`` in wei at the latest block"""
        pass
