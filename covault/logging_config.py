"""
Logging for covault.

Every covault module logs through the standard library; ``setup_logging``
routes those records through structlog so they come out as JSON lines (or
colored console lines at DEBUG). Coordinator operations bind the vault they
act on with ``vault_operation``, so each line emitted while an operation
runs carries its wallet, module, operation name and hash.
"""

import functools
import inspect
import logging
import sys
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TextIO

import structlog

from .config import settings

NOISY_LOGGERS = ("httpcore", "httpx")


# ----------------------------------------------------------------------
# Vault context
# ----------------------------------------------------------------------

@contextmanager
def vault_context(**values: Any) -> Iterator[None]:
    """Bind non-None ``values`` to every log line emitted inside the block."""
    bound = {key: value for key, value in values.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def _hash_parameter(func: Callable[..., Any]) -> Optional[str]:
    for name in inspect.signature(func).parameters:
        if name.endswith("hash"):
            return name
    return None


def vault_operation(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorate a coordinator coroutine so its log lines carry the vault context.

    Binds ``wallet``, ``module`` (when the coordinator has one), ``operation``
    and, when the coroutine takes a ``*hash`` argument, ``hash``.
    """
    signature = inspect.signature(func)
    hash_param = _hash_parameter(func)

    @functools.wraps(func)
    async def wrapper(self, *args: Any, **kwargs: Any) -> Any:
        context = {
            "wallet": self.wallet_address,
            "module": getattr(self, "module_address", None),
            "operation": func.__name__,
        }
        if hash_param is not None:
            context["hash"] = signature.bind_partial(self, *args, **kwargs).arguments.get(hash_param)
        with vault_context(**context):
            return await func(self, *args, **kwargs)

    return wrapper


# ----------------------------------------------------------------------
# Setup
# ----------------------------------------------------------------------

def _renderer(json_logs: bool) -> structlog.types.Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(
    log_level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog for covault.

    Args:
        log_level: Override log level (default: from settings.log_level)
        json_logs: Force JSON or console output (default: console at DEBUG only)
        stream: Destination of the log lines (default: stderr)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if json_logs is None:
        json_logs = level != logging.DEBUG

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_logs),
        ],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Receipt polling is chatty at INFO
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
