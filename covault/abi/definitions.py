"""
ABI definitions for the multisig wallet and its modules: social recovery,
daily limit and whitelist.
"""

from typing import Any, Dict, List, Sequence, Tuple

from .interface import ContractInterface

Param = Tuple[str, str]


def _inputs(params: Sequence[Param], indexed: Sequence[str] = ()) -> List[Dict[str, Any]]:
    return [
        {"name": name, "type": abi_type, "indexed": name in indexed}
        for abi_type, name in params
    ]


def _function(name, inputs=(), outputs=(), mutability="nonpayable") -> Dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": _inputs(inputs),
        "outputs": _inputs(outputs),
        "stateMutability": mutability,
    }


def _view(name, inputs=(), outputs=()) -> Dict[str, Any]:
    return _function(name, inputs, outputs, mutability="view")


def _event(name, inputs, indexed=()) -> Dict[str, Any]:
    return {"type": "event", "name": name, "inputs": _inputs(inputs, indexed), "anonymous": False}


def _error(name, inputs=()) -> Dict[str, Any]:
    return {"type": "error", "name": name, "inputs": _inputs(inputs)}


MULTISIG_WALLET_ABI: List[Dict[str, Any]] = [
    # Reads
    _view("isOwner", [("address", "owner")], [("bool", "")]),
    _view("getOwners", [], [("address[]", "")]),
    _view("threshold", [], [("uint256", "")]),
    _view("nonce", [], [("uint256", "")]),
    _view("modules", [("address", "module")], [("bool", "")]),
    _view(
        "getTransactionHash",
        [("address", "to"), ("uint256", "value"), ("bytes", "data"), ("uint256", "_nonce")],
        [("bytes32", "")],
    ),
    _view(
        "getTransaction",
        [("bytes32", "txHash")],
        [
            ("address", "to"),
            ("uint256", "value"),
            ("bytes", "data"),
            ("bool", "executed"),
            ("bool", "cancelled"),
            ("uint256", "numApprovals"),
            ("uint256", "timestamp"),
            ("address", "proposer"),
        ],
    ),
    _view("hasApproved", [("bytes32", "txHash"), ("address", "owner")], [("bool", "")]),
    # Writes
    _function(
        "proposeTransaction",
        [("address", "to"), ("uint256", "value"), ("bytes", "data")],
        [("bytes32", "")],
    ),
    _function("approveTransaction", [("bytes32", "txHash")]),
    _function("revokeApproval", [("bytes32", "txHash")]),
    _function("cancelTransaction", [("bytes32", "txHash")]),
    _function("executeTransaction", [("bytes32", "txHash")]),
    _function("approveAndExecute", [("bytes32", "txHash")], [("bool", "")]),
    _function("addOwner", [("address", "owner")]),
    _function("removeOwner", [("address", "owner")]),
    _function("changeThreshold", [("uint256", "_threshold")]),
    _function("enableModule", [("address", "module")]),
    _function("disableModule", [("address", "module")]),
    # Events
    _event(
        "TransactionProposed",
        [("bytes32", "txHash"), ("address", "proposer"), ("address", "to"), ("uint256", "value"), ("bytes", "data")],
        indexed=("txHash", "proposer"),
    ),
    _event("TransactionApproved", [("bytes32", "txHash"), ("address", "approver")], indexed=("txHash", "approver")),
    _event("ApprovalRevoked", [("bytes32", "txHash"), ("address", "owner")], indexed=("txHash", "owner")),
    _event("TransactionExecuted", [("bytes32", "txHash"), ("address", "executor")], indexed=("txHash", "executor")),
    _event("TransactionCancelled", [("bytes32", "txHash"), ("address", "canceller")], indexed=("txHash", "canceller")),
    _event("OwnerAdded", [("address", "owner")], indexed=("owner",)),
    _event("OwnerRemoved", [("address", "owner")], indexed=("owner",)),
    _event("ThresholdChanged", [("uint256", "threshold")]),
    _event("ModuleEnabled", [("address", "module")], indexed=("module",)),
    _event("ModuleDisabled", [("address", "module")], indexed=("module",)),
    # Errors
    _error("TransactionExecutionFailed", [("bytes", "returnData")]),
]


SOCIAL_RECOVERY_ABI: List[Dict[str, Any]] = [
    # Reads
    _view(
        "getRecoveryConfig",
        [("address", "wallet")],
        [("address[]", "guardians"), ("uint256", "threshold"), ("uint256", "recoveryPeriod")],
    ),
    _view("isGuardian", [("address", "wallet"), ("address", "guardian")], [("bool", "")]),
    _view(
        "getRecovery",
        [("address", "wallet"), ("bytes32", "recoveryHash")],
        [
            ("address[]", "newOwners"),
            ("uint256", "newThreshold"),
            ("uint256", "approvalCount"),
            ("uint256", "executionTime"),
            ("bool", "executed"),
        ],
    ),
    _view(
        "recoveryApprovals",
        [("address", "wallet"), ("bytes32", "recoveryHash"), ("address", "guardian")],
        [("bool", "")],
    ),
    _view("recoveryNonces", [("address", "wallet")], [("uint256", "")]),
    _view(
        "getRecoveryHashForCurrentNonce",
        [("address", "wallet"), ("address[]", "newOwners"), ("uint256", "newThreshold")],
        [("bytes32", "")],
    ),
    # Writes
    _function(
        "setupRecovery",
        [("address", "wallet"), ("address[]", "guardians"), ("uint256", "threshold"), ("uint256", "recoveryPeriod")],
    ),
    _function(
        "initiateRecovery",
        [("address", "wallet"), ("address[]", "newOwners"), ("uint256", "newThreshold")],
        [("bytes32", "")],
    ),
    _function("approveRecovery", [("address", "wallet"), ("bytes32", "recoveryHash")]),
    _function("revokeRecoveryApproval", [("address", "wallet"), ("bytes32", "recoveryHash")]),
    _function("executeRecovery", [("address", "wallet"), ("bytes32", "recoveryHash")]),
    _function("cancelRecovery", [("address", "wallet"), ("bytes32", "recoveryHash")]),
    # Events
    _event(
        "RecoverySetup",
        [("address", "wallet"), ("address[]", "guardians"), ("uint256", "threshold"), ("uint256", "recoveryPeriod")],
        indexed=("wallet",),
    ),
    _event(
        "RecoveryInitiated",
        [
            ("address", "wallet"),
            ("bytes32", "recoveryHash"),
            ("address[]", "newOwners"),
            ("uint256", "newThreshold"),
            ("address", "initiator"),
        ],
        indexed=("wallet", "recoveryHash"),
    ),
    _event(
        "RecoveryApproved",
        [("address", "wallet"), ("bytes32", "recoveryHash"), ("address", "guardian")],
        indexed=("wallet", "recoveryHash", "guardian"),
    ),
    _event(
        "RecoveryApprovalRevoked",
        [("address", "wallet"), ("bytes32", "recoveryHash"), ("address", "guardian")],
        indexed=("wallet", "recoveryHash", "guardian"),
    ),
    _event(
        "RecoveryExecuted",
        [("address", "wallet"), ("bytes32", "recoveryHash"), ("address[]", "newOwners"), ("uint256", "newThreshold")],
        indexed=("wallet", "recoveryHash"),
    ),
    _event(
        "RecoveryCancelled",
        [("address", "wallet"), ("bytes32", "recoveryHash")],
        indexed=("wallet", "recoveryHash"),
    ),
    # Errors
    _error("NotAGuardian"),
    _error("NewOwnersRequired"),
    _error("InvalidThreshold"),
    _error("RecoveryNotInitiated"),
    _error("RecoveryAlreadyExecuted"),
    _error("AlreadyApproved"),
    _error("NotApproved"),
    _error("NotEnoughApprovals", [("uint256", "current"), ("uint256", "required")]),
    _error("RecoveryPeriodNotElapsed"),
    _error("NotAnOwner"),
    _error("MustBeCalledByWallet"),
    _error("InvalidRecoveryPeriod"),
]


DAILY_LIMIT_ABI: List[Dict[str, Any]] = [
    # Reads
    _view(
        "getDailyLimit",
        [("address", "wallet")],
        [("uint256", "limit"), ("uint256", "spent"), ("uint256", "lastReset")],
    ),
    _view("getRemainingLimit", [("address", "wallet")], [("uint256", "")]),
    _view("getTimeUntilReset", [("address", "wallet")], [("uint256", "")]),
    # Writes
    _function("setDailyLimit", [("address", "wallet"), ("uint256", "limit")]),
    _function("resetDailyLimit", [("address", "wallet")]),
    _function("executeBelowLimit", [("address", "wallet"), ("address", "to"), ("uint256", "value")]),
    # Events
    _event("DailyLimitSet", [("address", "wallet"), ("uint256", "limit")], indexed=("wallet",)),
    _event("DailyLimitReset", [("address", "wallet")], indexed=("wallet",)),
    _event(
        "TransactionExecuted",
        [("address", "wallet"), ("address", "to"), ("uint256", "value")],
        indexed=("wallet", "to"),
    ),
]


WHITELIST_ABI: List[Dict[str, Any]] = [
    # Reads
    _view("isWhitelisted", [("address", "wallet"), ("address", "addr")], [("bool", "")]),
    _view("getWhitelistLimit", [("address", "wallet"), ("address", "addr")], [("uint256", "")]),
    # Writes
    _function("addToWhitelist", [("address", "wallet"), ("address", "addr"), ("uint256", "limit")]),
    _function("removeFromWhitelist", [("address", "wallet"), ("address", "addr")]),
    _function(
        "batchAddToWhitelist",
        [("address", "wallet"), ("address[]", "addresses"), ("uint256[]", "limits")],
    ),
    _function(
        "executeToWhitelist",
        [("address", "wallet"), ("address", "to"), ("uint256", "value"), ("bytes", "data")],
    ),
    # Events
    _event(
        "AddressWhitelisted",
        [("address", "wallet"), ("address", "addr"), ("uint256", "limit")],
        indexed=("wallet", "addr"),
    ),
    _event(
        "AddressRemovedFromWhitelist",
        [("address", "wallet"), ("address", "addr")],
        indexed=("wallet", "addr"),
    ),
    _event(
        "WhitelistTransactionExecuted",
        [("address", "wallet"), ("address", "to"), ("uint256", "value")],
        indexed=("wallet", "to"),
    ),
]


MULTISIG_WALLET_INTERFACE = ContractInterface.from_abi(MULTISIG_WALLET_ABI)
SOCIAL_RECOVERY_INTERFACE = ContractInterface.from_abi(SOCIAL_RECOVERY_ABI)
DAILY_LIMIT_INTERFACE = ContractInterface.from_abi(DAILY_LIMIT_ABI)
WHITELIST_INTERFACE = ContractInterface.from_abi(WHITELIST_ABI)
