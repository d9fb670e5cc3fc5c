"""
Event Log Reconciler

Rebuilds pending / executed / cancelled listings from the event log. Logs
only nominate candidates; each candidate is re-read from the ledger and kept
only if its authoritative state matches.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from ..config import settings
from ..contracts.base import BoundContract
from .errors import LogRangeTooLargeError
from .models import ParsedLog

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventLogReconciler:
    def __init__(self, primary_window: Optional[int] = None, fallback_window: Optional[int] = None):
        self.primary_window = primary_window or settings.log_window_blocks
        self.fallback_window = fallback_window or settings.log_fallback_window_blocks

    async def query_window(
        self,
        contract: BoundContract,
        event: str,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[ParsedLog]:
        """
        Logs for ``event`` in the recent window.

        A range rejection is retried once with the fallback window; a second
        rejection yields an empty (incomplete) result rather than an error.
        """
        try:
            return await contract.query_events(event, filters, window=self.primary_window)
        except LogRangeTooLargeError as e:
            logger.warning(
                f"{event} query over {self.primary_window} blocks rejected ({e.message}); "
                f"retrying with {self.fallback_window}"
            )

        try:
            return await contract.query_events(event, filters, window=self.fallback_window)
        except LogRangeTooLargeError as e:
            logger.warning(f"{event} query over {self.fallback_window} blocks rejected ({e.message}); giving up")
            return []

    @staticmethod
    def candidate_hashes(logs: Iterable[ParsedLog], key: str) -> List[str]:
        """Distinct values of ``key``, lowercased, in first-seen order."""
        seen = set()
        hashes: List[str] = []
        for log in logs:
            value = log.args.get(key)
            if not value:
                continue
            normalized = str(value).lower()
            if normalized in seen:
                continue
            seen.add(normalized)
            hashes.append(normalized)
        return hashes

    async def reconcile(
        self,
        contract: BoundContract,
        event: str,
        key: str,
        fetch: Callable[[str], Awaitable[T]],
        keep: Callable[[T], bool],
        filters: Optional[Dict[str, Any]] = None,
        sort_key: Optional[Callable[[T], Any]] = None,
    ) -> List[T]:
        """
        Candidates nominated by ``event`` logs, re-read through ``fetch`` and
        filtered by ``keep``. Newest first when ``sort_key`` is given.
        """
        logs = await self.query_window(contract, event, filters)
        candidates = self.candidate_hashes(logs, key)
        logger.debug(f"{len(candidates)} candidate(s) from {len(logs)} {event} log(s)")

        results: List[T] = []
        for candidate in candidates:
            try:
                item = await fetch(candidate)
            except Exception as e:
                logger.warning(f"Skipping {candidate}: failed to re-read ({e})")
                continue
            if keep(item):
                results.append(item)

        if sort_key is not None:
            results.sort(key=sort_key, reverse=True)
        return results
