"""
JSON-RPC ledger provider.

Talks to an EVM node over HTTP with httpx. Transport errors surface as
LedgerCallError so the ErrorDecoder can turn them into tagged errors.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.errors import ConfirmationTimeoutError, LogRangeTooLargeError
from ..core.models import LogEntry, Receipt
from .base import LedgerCallError, RemoteLedger, Signer, SubmissionHandle

logger = logging.getLogger(__name__)

# Substrings nodes use when a log query spans too many blocks or results
_RANGE_ERROR_MARKERS = (
    "exceeds maximum limit",
    "block range",
    "query returned more than",
    "limit exceeded",
    "range too large",
)
_RANGE_ERROR_CODES = (-32005,)


def is_range_error(error: Any) -> bool:
    message = str(getattr(error, "message", error)).lower()
    if any(marker in message for marker in _RANGE_ERROR_MARKERS):
        return True
    return getattr(error, "code", None) in _RANGE_ERROR_CODES


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


def parse_log(raw: Dict[str, Any]) -> LogEntry:
    return LogEntry(
        address=raw.get("address", ""),
        topics=list(raw.get("topics", [])),
        data=raw.get("data", "0x"),
        block_number=_to_int(raw.get("blockNumber")),
        tx_hash=raw.get("transactionHash"),
        log_index=_to_int(raw.get("logIndex")),
    )


def parse_receipt(raw: Dict[str, Any]) -> Receipt:
    return Receipt(
        tx_hash=raw["transactionHash"],
        status=_to_int(raw.get("status")),
        logs=[parse_log(entry) for entry in raw.get("logs", [])],
        gas_used=_to_int(raw.get("gasUsed")) or 0,
        block_number=_to_int(raw.get("blockNumber")),
    )


class RpcSubmissionHandle(SubmissionHandle):
    """Polls eth_getTransactionReceipt until the submission is mined."""

    def __init__(self, ledger: "JsonRpcLedger", tx_hash: str):
        self.ledger = ledger
        self.tx_hash = tx_hash

    async def wait(self, timeout: Optional[float] = None) -> Receipt:
        timeout = timeout if timeout is not None else self.ledger.confirmation_timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            try:
                raw = await self.ledger._rpc_call("eth_getTransactionReceipt", [self.tx_hash])
                if raw:
                    receipt = parse_receipt(raw)
                    logger.info(
                        f"Transaction mined: {self.tx_hash} "
                        f"(block {receipt.block_number}, status {receipt.status})"
                    )
                    return receipt
            except (httpx.HTTPError, LedgerCallError) as e:
                logger.warning(f"Error checking transaction status: {e}")

            if loop.time() >= deadline:
                raise ConfirmationTimeoutError(self.tx_hash, timeout)
            await asyncio.sleep(self.ledger.poll_interval)


class JsonRpcLedger(RemoteLedger):
    """RemoteLedger over JSON-RPC."""

    name = "json-rpc"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        chain_id: Optional[int] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        confirmation_timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        self.rpc_url = rpc_url or settings.rpc_url
        if not self.rpc_url:
            raise ValueError("No RPC URL configured; set RPC_URL or pass rpc_url")
        self.chain_id = chain_id if chain_id is not None else settings.chain_id
        self.confirmation_timeout = confirmation_timeout or settings.confirmation_timeout_seconds
        self.poll_interval = poll_interval or settings.confirmation_poll_interval_seconds
        self._client = client or httpx.AsyncClient(timeout=float(settings.request_timeout_seconds))
        self._request_id = 0

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the node."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }

        response = await self._client.post(self.rpc_url, json=payload)
        response.raise_for_status()
        result = response.json()

        if "error" in result:
            error = result["error"] or {}
            raise LedgerCallError(
                error.get("message", "RPC error"),
                code=error.get("code"),
                data=error.get("data"),
            )

        return result.get("result")

    async def call(self, to: str, data: str, from_address: Optional[str] = None) -> str:
        call_obj: Dict[str, Any] = {"to": to, "data": data}
        if from_address:
            call_obj["from"] = from_address
        return await self._rpc_call("eth_call", [call_obj, "latest"])

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        call_obj = {key: tx[key] for key in ("from", "to", "data") if tx.get(key)}
        if tx.get("value"):
            call_obj["value"] = hex(tx["value"])
        return int(await self._rpc_call("eth_estimateGas", [call_obj]), 16)

    async def send_transaction(self, tx: Dict[str, Any], signer: Signer) -> SubmissionHandle:
        prepared = dict(tx)
        prepared.setdefault("value", 0)
        prepared["chainId"] = self.chain_id
        if prepared.get("nonce") is None:
            prepared["nonce"] = await self.get_transaction_count(signer.address, "pending")
        if prepared.get("gasPrice") is None:
            prepared["gasPrice"] = int(await self._rpc_call("eth_gasPrice", []), 16)
        prepared.pop("from", None)

        raw_tx = await signer.sign_transaction(prepared)
        tx_hash = await self._rpc_call("eth_sendRawTransaction", [raw_tx])
        logger.info(f"Transaction submitted: {tx_hash}")
        return RpcSubmissionHandle(self, tx_hash)

    async def get_logs(
        self,
        address: str,
        topics: List[Optional[str]],
        from_block: int,
        to_block: Optional[int] = None,
    ) -> List[LogEntry]:
        params = {
            "address": address,
            "topics": topics,
            "fromBlock": hex(from_block),
            "toBlock": hex(to_block) if to_block is not None else "latest",
        }
        try:
            raw_logs = await self._rpc_call("eth_getLogs", [params])
        except LedgerCallError as e:
            if is_range_error(e):
                raise LogRangeTooLargeError(e.message, details={"fromBlock": from_block}) from e
            raise
        return [parse_log(entry) for entry in raw_logs or []]

    async def block_number(self) -> int:
        return int(await self._rpc_call("eth_blockNumber", []), 16)

    async def get_block_timestamp(self, block: Optional[int] = None) -> int:
        tag = hex(block) if block is not None else "latest"
        raw = await self._rpc_call("eth_getBlockByNumber", [tag, False])
        if not raw:
            raise LedgerCallError(f"Block {tag} not found")
        return int(raw["timestamp"], 16)

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(await self._rpc_call("eth_getTransactionCount", [address, block]), 16)

    async def get_balance(self, address: str) -> int:
        return int(await self._rpc_call("eth_getBalance", [address, "latest"]), 16)

    async def close(self) -> None:
        await self._client.aclose()
