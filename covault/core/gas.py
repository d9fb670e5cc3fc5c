"""
Gas Estimation Policy

Simulates a call, pads the estimate with a preset buffer and clamps it into
the preset's bounds. Two flavours:

- estimate_with_buffer: never fails, falls back to the preset default
- estimate_or_raise: a failed simulation becomes a SimulationFailedError
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from ..abi.interface import ContractInterface
from .decoding import ErrorDecoder
from .errors import CoordinationError, ErrorKind, SimulationFailedError
from .models import Receipt

logger = logging.getLogger(__name__)

EstimateFn = Callable[..., Awaitable[int]]


@dataclass(frozen=True)
class GasPreset:
    name: str
    buffer_percent: int
    min_gas: int
    max_gas: int
    default_gas: int

    def apply(self, estimated: int) -> int:
        buffered = estimated + (estimated * self.buffer_percent) // 100
        return max(self.min_gas, min(buffered, self.max_gas))


# Simple state change (approve, revoke)
SIMPLE = GasPreset("simple", buffer_percent=50, min_gas=100_000, max_gas=500_000, default_gas=150_000)
# Standard transaction (propose, cancel)
STANDARD = GasPreset("standard", buffer_percent=50, min_gas=200_000, max_gas=1_000_000, default_gas=300_000)
# Execution and module calls
COMPLEX = GasPreset("complex", buffer_percent=100, min_gas=400_000, max_gas=2_000_000, default_gas=500_000)
# Calls from the wallet to itself estimate unreliably
SELF_CALL = GasPreset("self_call", buffer_percent=100, min_gas=200_000, max_gas=500_000, default_gas=200_000)
# Recovery execution rewrites the whole owner set
RECOVERY_EXECUTE = GasPreset(
    "recovery_execute", buffer_percent=100, min_gas=500_000, max_gas=2_000_000, default_gas=1_000_000
)

PRESETS = {p.name: p for p in (SIMPLE, STANDARD, COMPLEX, SELF_CALL, RECOVERY_EXECUTE)}


@dataclass
class GasEstimate:
    gas_limit: int
    estimated: Optional[int] = None     # None when the simulation failed

    @property
    def used_default(self) -> bool:
        return self.estimated is None


class GasEstimationPolicy:
    def __init__(self, decoder: Optional[ErrorDecoder] = None):
        self.decoder = decoder or ErrorDecoder()

    def fallback(self, preset: GasPreset = STANDARD) -> GasEstimate:
        return GasEstimate(gas_limit=preset.default_gas)

    async def estimate_with_buffer(
        self,
        estimate_fn: EstimateFn,
        args: Sequence[Any] = (),
        preset: GasPreset = STANDARD,
    ) -> GasEstimate:
        try:
            estimated = await estimate_fn(*args)
        except Exception as e:
            logger.warning(f"Gas estimation failed, using default {preset.default_gas}: {e}")
            return self.fallback(preset)

        gas_limit = preset.apply(estimated)
        logger.debug(
            f"Gas estimate {estimated}, limit {gas_limit} ({preset.name}, {preset.buffer_percent}% buffer)"
        )
        return GasEstimate(gas_limit=gas_limit, estimated=estimated)

    async def estimate_or_raise(
        self,
        estimate_fn: EstimateFn,
        args: Sequence[Any],
        operation: str,
        preset: Optional[GasPreset] = None,
        interface: Optional[ContractInterface] = None,
    ) -> GasEstimate:
        """
        Simulate before submitting so that reverts surface with a decoded reason.

        Args:
            estimate_fn: Async callable returning the simulated gas
            args: Arguments for estimate_fn
            operation: Verb phrase used in the error ("execute transaction")
            preset: When given, the estimate is buffered and clamped
            interface: Interface used to decode custom errors

        Returns:
            GasEstimate; gas_limit is the raw estimate when no preset is given
        """
        try:
            estimated = await estimate_fn(*args)
        except CoordinationError:
            raise
        except Exception as e:
            message = self.decoder.extract_message(e, interface)
            raise SimulationFailedError(
                f"Cannot {operation}: {message}",
                kind=ErrorKind.SIMULATION_FAILED,
                reason=message,
            ) from e

        logger.debug(f"Gas estimation for {operation} succeeded: {estimated}")
        gas_limit = preset.apply(estimated) if preset else estimated
        return GasEstimate(gas_limit=gas_limit, estimated=estimated)

    def log_gas_usage(self, operation: str, receipt: Optional[Receipt], gas_limit: Optional[int]) -> None:
        if receipt is None or not receipt.gas_used:
            return
        logger.info(f"Actual gas used for {operation}: {receipt.gas_used}")
        if gas_limit and receipt.gas_used > (gas_limit * 95) // 100:
            logger.warning(
                f"Gas usage for {operation} was very close to the limit "
                f"(used {receipt.gas_used}, limit {gas_limit})"
            )
