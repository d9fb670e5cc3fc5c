from .base import LedgerCallError, RemoteLedger, Signer, SubmissionHandle
from .rpc import JsonRpcLedger, RpcSubmissionHandle, is_range_error
from .signer import LocalAccountSigner

__all__ = [
    "JsonRpcLedger",
    "LedgerCallError",
    "LocalAccountSigner",
    "RemoteLedger",
    "RpcSubmissionHandle",
    "Signer",
    "SubmissionHandle",
    "is_range_error",
]
