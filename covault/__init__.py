"""covault: multisig vault, module and social recovery coordination."""

from .core import (  # noqa: F401
    CoordinationError,
    DailyLimitCoordinator,
    ErrorKind,
    OwnerGovernance,
    RecoveryCoordinator,
    TransactionCoordinator,
    WhitelistCoordinator,
)

__version__ = "0.1.0"
